"""
forgeguard.guard — Admission gate for credential-creation requests.

Runs the write path in order and stops at the first failing stage:

    sanitize → validate → file gates (if a proof is attached)
             → rate limit → credential ceiling

An admitted request carries the sanitized metadata that the signing layer
should submit. Call record_success() once that submission is confirmed so
that failed or abandoned submissions do not use up rate-limit quota.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from forgeguard.files import ProofFile, compute_proof_hash, scan_file_content, validate_file
from forgeguard.limits import MAX_CREDENTIALS, CredentialLimitValidator
from forgeguard.log import submission_id_var
from forgeguard.rate_limiter import RateLimiter
from forgeguard.sanitizer import sanitize_credential_metadata
from forgeguard.validation import validate_credential_metadata

logger = logging.getLogger(__name__)


class RejectionKind(str, Enum):
    VALIDATION = "validation"  # field-level, fix and resubmit
    SECURITY = "security"  # supply a different file
    RATE_LIMIT = "rate_limit"  # wait until next_allowed_time
    CREDENTIAL_LIMIT = "credential_limit"  # delete credentials first


@dataclass
class AdmissionDecision:
    admitted: bool
    submission_id: str
    metadata: Optional[dict] = None
    rejection: Optional[RejectionKind] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    next_allowed_time: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "admitted": self.admitted,
            "submission_id": self.submission_id,
            "metadata": self.metadata,
            "rejection": self.rejection.value if self.rejection else None,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "next_allowed_time": self.next_allowed_time,
        }


class SubmissionGuard:
    """Gate every locally-originated credential write."""

    def __init__(self, rate_limiter: RateLimiter, max_credentials: int = MAX_CREDENTIALS):
        self.rate_limiter = rate_limiter
        self.credential_limits = CredentialLimitValidator(max_credentials)

    async def admit(
        self,
        candidate: dict,
        current_count: int,
        proof_file: Optional[ProofFile] = None,
        now: Optional[int] = None,
    ) -> AdmissionDecision:
        """Decide whether ``candidate`` may proceed to signing.

        Args:
            candidate: Raw form fields for the new credential
            current_count: Credentials the owner already holds
            proof_file: Optional proof document to check and hash
            now: Current time in epoch milliseconds, for the rate limiter
        """
        submission_id = uuid.uuid4().hex[:8]
        token = submission_id_var.set(submission_id)
        try:
            decision = await self._admit(submission_id, candidate, current_count, proof_file, now)
        finally:
            submission_id_var.reset(token)
        return decision

    async def _admit(self, submission_id, candidate, current_count, proof_file, now):
        def reject(kind: RejectionKind, errors: list[str], **kwargs) -> AdmissionDecision:
            logger.info("Submission rejected",
                        extra={"event": "admission", "rejection": kind.value, "errors": errors})
            return AdmissionDecision(admitted=False, submission_id=submission_id,
                                     rejection=kind, errors=errors, **kwargs)

        if not isinstance(candidate, dict):
            return reject(RejectionKind.VALIDATION, ["Credential metadata must be an object"])

        metadata = sanitize_credential_metadata(candidate)
        result = validate_credential_metadata(metadata)
        if not result.is_valid:
            return reject(RejectionKind.VALIDATION, result.messages())

        if proof_file is not None:
            file_check = validate_file(proof_file)
            if not file_check.is_valid:
                return reject(RejectionKind.SECURITY, [file_check.error])
            scan = await scan_file_content(proof_file)
            if not scan.is_safe:
                return reject(RejectionKind.SECURITY, [scan.error])

            proof_hash = compute_proof_hash(await proof_file.read_bytes())
            declared = metadata.get("proof_hash")
            if declared and declared.lower() != proof_hash:
                return reject(RejectionKind.VALIDATION,
                              ["Proof hash does not match the attached file"])
            metadata["proof_hash"] = proof_hash

        warnings = []
        rate = self.rate_limiter.check_rate_limit(now=now)
        if not rate.allowed:
            return reject(RejectionKind.RATE_LIMIT,
                          ["Rate limit exceeded"],
                          next_allowed_time=rate.next_allowed_time)
        rate_warning = self.rate_limiter.get_warning_message(rate.minute_count, rate.hour_count)
        if rate_warning:
            warnings.append(rate_warning)

        limit = self.credential_limits.check_credential_limit(current_count)
        if not limit.allowed:
            return reject(RejectionKind.CREDENTIAL_LIMIT, [limit.error], warnings=warnings)
        if limit.warning:
            warnings.append(limit.warning)

        logger.info("Submission admitted", extra={"event": "admission", "warnings": warnings})
        return AdmissionDecision(admitted=True, submission_id=submission_id,
                                 metadata=metadata, warnings=warnings)

    def record_success(self, now: Optional[int] = None) -> None:
        """Count a confirmed submission against the rate limit."""
        self.rate_limiter.record_action(now=now)
