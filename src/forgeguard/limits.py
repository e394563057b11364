"""forgeguard.limits — Per-owner credential count ceiling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

MAX_CREDENTIALS = 500
WARNING_RATIO = 0.9


@dataclass
class LimitCheckResult:
    allowed: bool
    warning: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"allowed": self.allowed, "warning": self.warning, "error": self.error}


class CredentialLimitValidator:
    """Hard ceiling on credentials per owner, with a soft warning at 90%."""

    def __init__(self, max_credentials: int = MAX_CREDENTIALS):
        self.max_credentials = max_credentials

    @property
    def warning_threshold(self) -> float:
        return self.max_credentials * WARNING_RATIO

    def check_credential_limit(self, current_count: int) -> LimitCheckResult:
        if current_count >= self.max_credentials:
            return LimitCheckResult(
                allowed=False,
                error=(f"Maximum credential limit reached ({self.max_credentials}). "
                       f"Please delete some credentials before minting new ones."),
            )
        if current_count >= self.warning_threshold:
            return LimitCheckResult(
                allowed=True,
                warning=f"Approaching credential limit: {current_count}/{self.max_credentials} credentials",
            )
        return LimitCheckResult(allowed=True)

    def check_batch_limit(self, current_count: int, batch_size: int) -> LimitCheckResult:
        """Same policy applied to the count after a multi-credential import."""
        new_total = current_count + batch_size
        if new_total > self.max_credentials:
            return LimitCheckResult(
                allowed=False,
                error=(f"Batch would exceed credential limit. Current: {current_count}, "
                       f"Batch: {batch_size}, Limit: {self.max_credentials}"),
            )
        if new_total >= self.warning_threshold:
            return LimitCheckResult(
                allowed=True,
                warning=(f"Batch will bring you close to the limit: "
                         f"{new_total}/{self.max_credentials} credentials"),
            )
        return LimitCheckResult(allowed=True)
