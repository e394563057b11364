"""
forgeguard.files — Proof document checks.

Two gates, both of which must pass before a file is accepted:

- validate_file(): size, MIME type, extension and file-name checks.
- scan_file_content(): injection signatures in text/JSON content, plus
  nesting-depth and array-size limits for JSON.

Neither gate repairs anything. A failure is final for that file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from nacl.encoding import HexEncoder
from nacl.hash import sha256

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MiB
MAX_JSON_DEPTH = 10
MAX_JSON_ARRAY_LENGTH = 1000
_DEPTH_SCAN_CUTOFF = 20

ALLOWED_MIME_TYPES = (
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/gif",
    "text/plain",
    "application/json",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

ALLOWED_EXTENSIONS = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".txt", ".json", ".doc", ".docx",
)

_SUSPICIOUS_NAME_PATTERNS = (
    re.compile(r"\x00"),  # null bytes
    re.compile(r"\.\."),  # path traversal
    re.compile(r'[<>:"|?*]'),  # reserved on Windows
    re.compile(r"^\."),  # hidden files
    re.compile(r"\.(exe|bat|cmd|scr|pif|com)$", re.IGNORECASE),
)
_BARE_DOTFILE = re.compile(r"^\.[a-zA-Z0-9]+$")

_INJECTION_PATTERNS = (
    re.compile(r"<script[^>]*>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"onload\s*=", re.IGNORECASE),
    re.compile(r"onerror\s*=", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"document\.cookie", re.IGNORECASE),
    re.compile(r"window\.location", re.IGNORECASE),
)


# ─── File and results ──────────────────────────────────────────────

@dataclass
class ProofFile:
    """An uploaded proof document.

    Either ``content`` is given up front or the bytes are read lazily from
    ``path`` the first time they are needed.
    """
    name: str
    size: int
    mime_type: str
    content: Optional[bytes] = None
    path: Optional[str] = None

    @classmethod
    def from_bytes(cls, name: str, content: bytes, mime_type: str) -> "ProofFile":
        return cls(name=name, size=len(content), mime_type=mime_type, content=content)

    @classmethod
    def from_path(cls, path: str, mime_type: Optional[str] = None) -> "ProofFile":
        if mime_type is None:
            mime_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        return cls(
            name=os.path.basename(path),
            size=os.path.getsize(path),
            mime_type=mime_type,
            path=path,
        )

    async def read_bytes(self) -> bytes:
        if self.content is None:
            if self.path is None:
                raise ValueError(f"ProofFile {self.name!r} has neither content nor path")
            self.content = await asyncio.to_thread(Path(self.path).read_bytes)
        return self.content

    async def read_text(self) -> str:
        return (await self.read_bytes()).decode("utf-8", errors="replace")


@dataclass
class FileCheckResult:
    is_valid: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "error": self.error}


@dataclass
class ContentScanResult:
    is_safe: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"is_safe": self.is_safe, "error": self.error}


# ─── Structural gate ───────────────────────────────────────────────

def get_file_extension(filename: str) -> str:
    """Lower-cased extension including the dot, or "" when there is none."""
    idx = filename.rfind(".")
    if idx == -1:
        return ""
    return filename[idx:].lower()


def has_suspicious_file_name(filename: str) -> bool:
    # ".txt" and friends are legitimate, not hidden files
    if _BARE_DOTFILE.match(filename):
        return False
    return any(p.search(filename) for p in _SUSPICIOUS_NAME_PATTERNS)


def validate_file(file: ProofFile) -> FileCheckResult:
    if file.size > MAX_FILE_SIZE:
        return FileCheckResult(
            False, f"File size exceeds 5MB limit ({file.size / 1024 / 1024:.2f}MB)",
        )

    if file.mime_type not in ALLOWED_MIME_TYPES:
        return FileCheckResult(
            False,
            f"Unsupported file type: {file.mime_type}. Allowed types: PDF, images, documents",
        )

    extension = get_file_extension(file.name)
    if extension not in ALLOWED_EXTENSIONS:
        return FileCheckResult(False, f"Unsupported file extension: {extension or file.name}")

    if has_suspicious_file_name(file.name):
        logger.warning("Rejected suspicious file name",
                       extra={"event": "security_rejection", "file_name": repr(file.name)})
        return FileCheckResult(False, "File name contains suspicious characters")

    return FileCheckResult(True)


# ─── Content gate ──────────────────────────────────────────────────

def json_depth(obj: Any, depth: int = 0) -> int:
    """Nesting depth of a parsed JSON value; containers count 1, scalars 0."""
    if depth > _DEPTH_SCAN_CUTOFF:
        return depth
    if isinstance(obj, dict):
        children = obj.values()
    elif isinstance(obj, list):
        children = obj
    else:
        return 0
    return 1 + max((json_depth(v, depth + 1) for v in children), default=0)


def has_large_arrays(obj: Any, max_length: int = MAX_JSON_ARRAY_LENGTH) -> bool:
    if isinstance(obj, list):
        if len(obj) > max_length:
            return True
        return any(has_large_arrays(item, max_length) for item in obj)
    if isinstance(obj, dict):
        return any(has_large_arrays(v, max_length) for v in obj.values())
    return False


def _is_scannable(mime_type: str) -> bool:
    return mime_type.startswith("text/") or mime_type == "application/json"


def _scan_text(text: str, is_json: bool) -> ContentScanResult:
    for pattern in _INJECTION_PATTERNS:
        if pattern.search(text):
            return ContentScanResult(False, "File contains potentially malicious content")

    if is_json:
        try:
            parsed = json.loads(text)
        except RecursionError:
            return ContentScanResult(False, "JSON structure too deeply nested")
        except ValueError:
            return ContentScanResult(False, "Invalid JSON format")

        if json_depth(parsed) > MAX_JSON_DEPTH:
            return ContentScanResult(False, "JSON structure too deeply nested")
        if has_large_arrays(parsed, MAX_JSON_ARRAY_LENGTH):
            return ContentScanResult(False, "JSON contains arrays that are too large")

    return ContentScanResult(True)


async def scan_file_content(file: ProofFile) -> ContentScanResult:
    """Scan text and JSON files for injection payloads. Other types pass."""
    if not _is_scannable(file.mime_type):
        return ContentScanResult(True)

    try:
        text = await file.read_text()
    except (OSError, ValueError) as e:
        logger.warning("Failed to read proof file %s: %s", file.name, type(e).__name__)
        return ContentScanResult(False, "Failed to scan file content")

    result = _scan_text(text, is_json=file.mime_type == "application/json")
    if not result.is_safe:
        logger.warning("Rejected proof file content",
                       extra={"event": "security_rejection", "reason": result.error})
    return result


def compute_proof_hash(content: bytes) -> str:
    """Lower-case hex SHA-256 of a proof document, as stored in ``proof_hash``."""
    return sha256(content, encoder=HexEncoder).decode("ascii")


class FileValidator:
    """Class facade grouping both gates and the proof hash."""

    MAX_FILE_SIZE = MAX_FILE_SIZE
    ALLOWED_MIME_TYPES = ALLOWED_MIME_TYPES
    ALLOWED_EXTENSIONS = ALLOWED_EXTENSIONS

    validate_file = staticmethod(validate_file)
    scan_file_content = staticmethod(scan_file_content)
    compute_proof_hash = staticmethod(compute_proof_hash)
