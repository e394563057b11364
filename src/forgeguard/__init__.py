"""forgeguard — Trust scoring and submission guarding for professional credentials."""

from forgeguard.models import (
    Credential, CredentialType, Visibility, Tier,
    ScoreBreakdown, TrustScore, TrustScoreStats,
)
from forgeguard.exceptions import ForgeguardError, InvalidJSONError, ConfigError
from forgeguard.scoring import (
    calculate_trust_score, trust_score_stats, score_to_tier, tier_description,
    WEIGHTS, TIER_BOUNDARIES,
)
from forgeguard.sanitizer import (
    sanitize_string, sanitize_url, sanitize_credential_metadata, sanitize_json_input,
)
from forgeguard.validation import (
    MetadataValidator, ValidationResult, FieldError, validate_credential_metadata,
)
from forgeguard.files import (
    FileValidator, ProofFile, FileCheckResult, ContentScanResult,
    validate_file, scan_file_content, compute_proof_hash,
)
from forgeguard.storage import StorageBackend, MemoryBackend, FileBackend, SQLiteBackend
from forgeguard.rate_limiter import RateLimiter, RateLimitStatus, format_time_until_allowed
from forgeguard.limits import CredentialLimitValidator, LimitCheckResult
from forgeguard.guard import SubmissionGuard, AdmissionDecision, RejectionKind
from forgeguard.config import GuardConfig

__version__ = "0.1.0"

__all__ = [
    "Credential",
    "CredentialType",
    "Visibility",
    "Tier",
    "ScoreBreakdown",
    "TrustScore",
    "TrustScoreStats",
    "ForgeguardError",
    "InvalidJSONError",
    "ConfigError",
    "calculate_trust_score",
    "trust_score_stats",
    "score_to_tier",
    "tier_description",
    "WEIGHTS",
    "TIER_BOUNDARIES",
    "sanitize_string",
    "sanitize_url",
    "sanitize_credential_metadata",
    "sanitize_json_input",
    "MetadataValidator",
    "ValidationResult",
    "FieldError",
    "validate_credential_metadata",
    "FileValidator",
    "ProofFile",
    "FileCheckResult",
    "ContentScanResult",
    "validate_file",
    "scan_file_content",
    "compute_proof_hash",
    "StorageBackend",
    "MemoryBackend",
    "FileBackend",
    "SQLiteBackend",
    "RateLimiter",
    "RateLimitStatus",
    "format_time_until_allowed",
    "CredentialLimitValidator",
    "LimitCheckResult",
    "SubmissionGuard",
    "AdmissionDecision",
    "RejectionKind",
    "GuardConfig",
]
