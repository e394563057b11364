"""Shared fixtures for forgeguard tests."""
from datetime import datetime, timezone

import pytest

from forgeguard.dates import iso_timestamp
from forgeguard.models import Credential
from forgeguard.rate_limiter import RateLimiter
from forgeguard.storage import MemoryBackend

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
NOW_MS = int(NOW.timestamp() * 1000)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the caller's FORGEGUARD_* settings out of the tests."""
    for name in ("FORGEGUARD_MINUTE_LIMIT", "FORGEGUARD_HOUR_LIMIT",
                 "FORGEGUARD_MAX_CREDENTIALS", "FORGEGUARD_STORAGE_PATH",
                 "FORGEGUARD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory():
    return MemoryBackend()


@pytest.fixture
def limiter(memory):
    return RateLimiter(memory)


def make_credential(credential_type="skill", rating=None, name="Python",
                    description="Backend development", timestamp=None, idx=0):
    return Credential(
        id=f"cred-{credential_type}-{idx}",
        owner="5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY",
        credential_type=credential_type,
        name=name,
        description=description,
        issuer="Upwork",
        timestamp=timestamp or iso_timestamp(NOW),
        rating=rating,
    )


@pytest.fixture
def valid_metadata():
    return {
        "credential_type": "skill",
        "name": "Senior Python Developer",
        "description": "Built and maintained payment services for three years.",
        "issuer": "Acme Corp",
        "timestamp": "2025-05-30T09:15:00.123Z",
        "visibility": "public",
    }
