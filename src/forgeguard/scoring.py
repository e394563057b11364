"""
Trust scoring — 3-component weighted reputation score over a credential set.

Components:
  Review   60%  — average review rating, normalised to 0-100
  Skill    30%  — 5 pts per skill + 10 pts per certification, capped at 100
  Payment  10%  — payment volume found in credential text, discounted by age

Score = round(review + skill + payment)
Range: 0-100
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from forgeguard.dates import parse_date_with_diagnostic
from forgeguard.models import (
    Credential,
    CredentialType,
    ScoreBreakdown,
    Tier,
    TrustScore,
    TrustScoreStats,
)

WEIGHTS = {
    "review": 0.60,
    "skill": 0.30,
    "payment": 0.10,
}

TIER_BOUNDARIES = {
    Tier.BRONZE: (0, 25),
    Tier.SILVER: (26, 50),
    Tier.GOLD: (51, 75),
    Tier.PLATINUM: (76, 100),
}

TIER_DESCRIPTIONS = {
    Tier.BRONZE: "Building reputation (0-25 points)",
    Tier.SILVER: "Established freelancer (26-50 points)",
    Tier.GOLD: "Highly trusted professional (51-75 points)",
    Tier.PLATINUM: "Elite freelancer (76-100 points)",
}

# Recency factors for payment credentials, keyed by max age in months
RECENCY_RECENT = 1.0  # within 6 months
RECENCY_MEDIUM = 0.7  # 6-12 months
RECENCY_OLD = 0.5  # over 12 months
DAYS_PER_MONTH = 30

SKILL_POINTS = 5
CERTIFICATION_POINTS = 10
MAX_POINTS = 100

DEFAULT_PAYMENT_VOLUME = 100.0
PAYMENT_VOLUME_UNIT = 1000.0

_DOLLAR_PATTERN = re.compile(r"\$[\d,]+(?:\.\d{2})?", re.ASCII)
_USD_PATTERN = re.compile(r"(\d+(?:,\d{3})*(?:\.\d{2})?)\s*(?:usd|dollars?)", re.ASCII)

CredentialLike = Union[Credential, dict]


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _as_credentials(credentials: Iterable[CredentialLike]) -> list[Credential]:
    return [c if isinstance(c, Credential) else Credential.from_dict(c) for c in credentials]


# ── Components ──

def calculate_review_score(credentials: Iterable[Credential]) -> float:
    """(average rating / 5) × 100 × 0.6; zero when there are no rated reviews."""
    ratings = [
        c.rating for c in credentials
        if c.credential_type == CredentialType.REVIEW and c.rating
    ]
    if not ratings:
        return 0.0
    average = sum(ratings) / len(ratings)
    return (average / 5) * 100 * WEIGHTS["review"]


def calculate_skill_score(credentials: Iterable[Credential]) -> float:
    skills = 0
    certifications = 0
    for c in credentials:
        if c.credential_type == CredentialType.SKILL:
            skills += 1
        elif c.credential_type == CredentialType.CERTIFICATION:
            certifications += 1
    # Cap applies before the weight
    points = min(MAX_POINTS, skills * SKILL_POINTS + certifications * CERTIFICATION_POINTS)
    return points * WEIGHTS["skill"]


def recency_factor(timestamp, now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    issued, _ = parse_date_with_diagnostic(timestamp, now=now)
    months = (now - issued).total_seconds() / (86400 * DAYS_PER_MONTH)
    if months <= 6:
        return RECENCY_RECENT
    if months <= 12:
        return RECENCY_MEDIUM
    return RECENCY_OLD


def extract_payment_volume(credential: Credential) -> float:
    """Dollar amount mentioned in a payment credential's name or description.

    Tries ``$1,000.00`` style first, then ``1000 USD`` / ``1000 dollars``.
    Falls back to a flat $100 when the text names no amount.
    """
    text = f"{credential.name} {credential.description}".lower()

    match = _DOLLAR_PATTERN.search(text)
    if match:
        return _parse_amount(match.group(0).replace("$", ""))

    match = _USD_PATTERN.search(text)
    if match:
        return _parse_amount(match.group(1))

    return DEFAULT_PAYMENT_VOLUME


def _parse_amount(raw: str) -> float:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return 0.0


def calculate_payment_score(credentials: Iterable[Credential], now: Optional[datetime] = None) -> float:
    """MIN(100, (weighted volume / $1000) × 10) × 0.10"""
    now = now or datetime.now(timezone.utc)
    weighted_volume = 0.0
    for c in credentials:
        if c.credential_type != CredentialType.PAYMENT:
            continue
        weighted_volume += extract_payment_volume(c) * recency_factor(c.timestamp, now=now)

    base = min(MAX_POINTS, (weighted_volume / PAYMENT_VOLUME_UNIT) * 10)
    return base * WEIGHTS["payment"]


# ── Tiers ──

def score_to_tier(total: float) -> Tier:
    for tier, (low, high) in TIER_BOUNDARIES.items():
        if low <= total <= high:
            return tier
    return Tier.BRONZE


def tier_description(tier: Union[Tier, str]) -> str:
    try:
        return TIER_DESCRIPTIONS[Tier(tier)]
    except ValueError:
        return "Unknown tier"


# ── Public API ──

def calculate_trust_score(
    credentials: Iterable[CredentialLike], now: Optional[datetime] = None,
) -> TrustScore:
    """Compute the trust score for a credential set.

    Total is rounded from the unrounded components; the breakdown values are
    rounded to two decimals for display only.
    """
    creds = _as_credentials(credentials)
    review = calculate_review_score(creds)
    skill = calculate_skill_score(creds)
    payment = calculate_payment_score(creds, now=now)

    total = int(_round_half_up(review + skill + payment))
    total = min(max(total, 0), 100)

    return TrustScore(
        total=total,
        tier=score_to_tier(total),
        breakdown=ScoreBreakdown(
            review_score=_round_half_up(review, 2),
            skill_score=_round_half_up(skill, 2),
            payment_score=_round_half_up(payment, 2),
        ),
    )


def trust_score_stats(
    credentials: Iterable[CredentialLike], now: Optional[datetime] = None,
) -> TrustScoreStats:
    creds = _as_credentials(credentials)
    counts = {t.value: 0 for t in CredentialType}
    ratings = []
    for c in creds:
        counts[c.credential_type.value] += 1
        if c.credential_type == CredentialType.REVIEW and c.rating:
            ratings.append(c.rating)
    counts["total"] = len(creds)

    average = _round_half_up(sum(ratings) / len(ratings), 2) if ratings else 0.0
    return TrustScoreStats(
        trust_score=calculate_trust_score(creds, now=now),
        credential_counts=counts,
        average_rating=average,
        has_credentials=bool(creds),
    )
