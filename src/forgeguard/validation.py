"""
forgeguard.validation — Schema validation for credential metadata.

Stricter than the sanitizer: disallowed characters in ``name`` and ``issuer``
are rejected, never stripped. All failing fields are reported together.
"""

from __future__ import annotations

import html
import math
import re
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from forgeguard.models import CredentialType, Visibility

NAME_MAX_LENGTH = 100
ISSUER_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
PLATFORM_MAX_LENGTH = 50
EXTERNAL_ID_MAX_LENGTH = 100
RATING_MIN = 0
RATING_MAX = 5

_TEXT_ALLOWLIST = re.compile(r"[a-zA-Z0-9\s\-_.():,&/+'\"@#]+")
_TIMESTAMP_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{3})?Z", re.ASCII)
_PROOF_HASH_PATTERN = re.compile(r"[a-fA-F0-9]{64}")
_URL_SCHEMES = ("http", "https", "ftp")

REQUIRED_MESSAGES = {
    "credential_type": "Credential type is required",
    "name": "Name is required",
    "description": "Description is required",
    "issuer": "Issuer is required",
    "timestamp": "Timestamp is required",
    "visibility": "Visibility is required",
}


# ─── Result types ──────────────────────────────────────────────────

@dataclass
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[FieldError] = field(default_factory=list)

    def messages(self) -> list[str]:
        return [e.message for e in self.errors]

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": [e.to_dict() for e in self.errors]}


# ─── Field rules ───────────────────────────────────────────────────

def _check_text(value: Any, label: str, max_length: int, allowlist: bool = False) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a string")
    # Sanitized text carries entities such as &amp; and &#x2F;; limits apply
    # to the characters they stand for.
    text = html.unescape(value)
    if len(text) < 1:
        raise ValueError(f"{label} is required")
    if len(text) > max_length:
        raise ValueError(f"{label} must be {max_length} characters or less")
    if allowlist and not _TEXT_ALLOWLIST.fullmatch(text):
        raise ValueError(f"{label} contains invalid characters")
    return value


def is_valid_url(value: str) -> bool:
    if any(ch.isspace() for ch in value):
        return False
    try:
        parts = urlsplit(value)
        parts.port
    except ValueError:
        return False
    return parts.scheme.lower() in _URL_SCHEMES and bool(parts.hostname)


class ExtraMetadataSchema(BaseModel):
    """Optional platform details attached to a credential."""
    model_config = ConfigDict(extra="ignore")

    platform: Any = None
    external_id: Any = None
    verification_url: Any = None

    @field_validator("platform")
    @classmethod
    def platform_length(cls, v):
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("Platform must be a string")
        if len(v) > PLATFORM_MAX_LENGTH:
            raise ValueError("Platform name too long")
        return v

    @field_validator("external_id")
    @classmethod
    def external_id_length(cls, v):
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError("External ID must be a string")
        if len(v) > EXTERNAL_ID_MAX_LENGTH:
            raise ValueError("External ID too long")
        return v

    @field_validator("verification_url")
    @classmethod
    def verification_url_syntax(cls, v):
        if v is None:
            return v
        if not isinstance(v, str) or not is_valid_url(v):
            raise ValueError("Invalid verification URL")
        return v


class CredentialMetadataSchema(BaseModel):
    """A credential as submitted for minting: everything except id and owner."""
    model_config = ConfigDict(extra="ignore")

    credential_type: Any
    name: Any
    description: Any
    issuer: Any
    rating: Any = None
    timestamp: Any
    visibility: Any
    proof_hash: Any = None
    metadata: Optional[ExtraMetadataSchema] = None

    @field_validator("credential_type")
    @classmethod
    def known_type(cls, v):
        if v not in [t.value for t in CredentialType]:
            raise ValueError("Invalid credential type")
        return v

    @field_validator("name")
    @classmethod
    def name_rules(cls, v):
        return _check_text(v, "Name", NAME_MAX_LENGTH, allowlist=True)

    @field_validator("description")
    @classmethod
    def description_rules(cls, v):
        return _check_text(v, "Description", DESCRIPTION_MAX_LENGTH)

    @field_validator("issuer")
    @classmethod
    def issuer_rules(cls, v):
        return _check_text(v, "Issuer", ISSUER_MAX_LENGTH, allowlist=True)

    @field_validator("rating")
    @classmethod
    def rating_range(cls, v):
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float)) or math.isnan(v):
            raise ValueError("Rating must be a number")
        if not RATING_MIN <= v <= RATING_MAX:
            raise ValueError("Rating must be between 0 and 5")
        return v

    @field_validator("timestamp")
    @classmethod
    def timestamp_format(cls, v):
        if not isinstance(v, str) or not _TIMESTAMP_PATTERN.fullmatch(v):
            raise ValueError("Invalid timestamp format")
        return v

    @field_validator("visibility")
    @classmethod
    def known_visibility(cls, v):
        if v not in [vis.value for vis in Visibility]:
            raise ValueError("Invalid visibility setting")
        return v

    @field_validator("proof_hash")
    @classmethod
    def proof_hash_format(cls, v):
        if v is None:
            return v
        if not isinstance(v, str) or not _PROOF_HASH_PATTERN.fullmatch(v):
            raise ValueError("Invalid proof hash format")
        return v


# ─── Public API ────────────────────────────────────────────────────

def _to_field_error(err: dict) -> FieldError:
    path = ".".join(str(part) for part in err["loc"]) or "__root__"
    if err["type"] == "missing" and path in REQUIRED_MESSAGES:
        return FieldError(path, REQUIRED_MESSAGES[path])
    if err["type"] == "value_error" and "error" in err.get("ctx", {}):
        return FieldError(path, str(err["ctx"]["error"]))
    return FieldError(path, err["msg"])


def validate_credential_metadata(candidate: Any) -> ValidationResult:
    """Validate a candidate credential and collect every field error."""
    if not isinstance(candidate, dict):
        return ValidationResult(False, [FieldError("__root__", "Credential metadata must be an object")])
    try:
        CredentialMetadataSchema.model_validate(candidate)
    except ValidationError as e:
        return ValidationResult(False, [_to_field_error(err) for err in e.errors()])
    return ValidationResult(True)


class MetadataValidator:
    """Class facade over validate_credential_metadata()."""

    @staticmethod
    def validate(candidate: Any) -> ValidationResult:
        return validate_credential_metadata(candidate)
