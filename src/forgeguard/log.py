"""
forgeguard.log — Structured JSON logging with submission IDs.

Library modules only call logging.getLogger(__name__); handlers are installed
here, by the CLI or by the host application.
"""

import logging
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

# ─── Context var for submission ID ─────────────────────────────────

submission_id_var: ContextVar[str] = ContextVar("submission_id", default="")


class SubmissionIdFilter(logging.Filter):
    def filter(self, record):
        record.submission_id = submission_id_var.get("")
        return True


def setup_structured_logging(level: str = "INFO") -> logging.Logger:
    """Configure JSON structured logging on the ``forgeguard`` logger."""
    logger = logging.getLogger("forgeguard")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(submission_id)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
        handler.setFormatter(formatter)
        handler.addFilter(SubmissionIdFilter())
        logger.addHandler(handler)

    return logger
