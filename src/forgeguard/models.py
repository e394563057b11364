"""
forgeguard.models — Credential, TrustScore and the closed enums they use.

Credentials arrive already fetched from the ledger; nothing here talks to a
network or persists anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


# ─── Enums ─────────────────────────────────────────────────────────

class CredentialType(str, Enum):
    SKILL = "skill"
    REVIEW = "review"
    PAYMENT = "payment"
    CERTIFICATION = "certification"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class Tier(str, Enum):
    """Reputation bands, ordered lowest to highest."""
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"


# ─── Credential ────────────────────────────────────────────────────

@dataclass
class Credential:
    """One attestation about a person, as stored on the ledger."""
    id: str
    owner: str
    credential_type: CredentialType
    name: str
    description: str
    issuer: str
    timestamp: str  # ISO-8601 UTC, millisecond precision
    visibility: Visibility = Visibility.PUBLIC
    rating: Optional[float] = None  # only meaningful for reviews
    proof_hash: Optional[str] = None

    def __post_init__(self):
        self.credential_type = CredentialType(self.credential_type)
        self.visibility = Visibility(self.visibility)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "owner": self.owner,
            "credential_type": self.credential_type.value,
            "name": self.name,
            "description": self.description,
            "issuer": self.issuer,
            "timestamp": self.timestamp,
            "visibility": self.visibility.value,
        }
        if self.rating is not None:
            data["rating"] = self.rating
        if self.proof_hash is not None:
            data["proof_hash"] = self.proof_hash
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credential":
        return cls(
            id=str(data.get("id", "")),
            owner=str(data.get("owner", "")),
            credential_type=data["credential_type"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            issuer=data.get("issuer", ""),
            timestamp=data.get("timestamp", ""),
            visibility=data.get("visibility", Visibility.PUBLIC),
            rating=data.get("rating"),
            proof_hash=data.get("proof_hash"),
        )


# ─── Trust score ───────────────────────────────────────────────────

@dataclass
class ScoreBreakdown:
    review_score: float = 0.0
    skill_score: float = 0.0
    payment_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "review_score": self.review_score,
            "skill_score": self.skill_score,
            "payment_score": self.payment_score,
        }


@dataclass
class TrustScore:
    """Derived view over a credential set. Recomputed on demand, never stored."""
    total: int
    tier: Tier
    breakdown: ScoreBreakdown = field(default_factory=ScoreBreakdown)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "tier": self.tier.value,
            "breakdown": self.breakdown.to_dict(),
        }


@dataclass
class TrustScoreStats:
    trust_score: TrustScore
    credential_counts: dict[str, int]
    average_rating: float
    has_credentials: bool

    def to_dict(self) -> dict:
        return {
            "trust_score": self.trust_score.to_dict(),
            "credential_counts": dict(self.credential_counts),
            "average_rating": self.average_rating,
            "has_credentials": self.has_credentials,
        }


__all__ = [
    "CredentialType",
    "Visibility",
    "Tier",
    "Credential",
    "ScoreBreakdown",
    "TrustScore",
    "TrustScoreStats",
]
