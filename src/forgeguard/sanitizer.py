"""
forgeguard.sanitizer — XSS-safe cleaning of user-entered credential data.

Sanitizing transforms input into a safe form; it never rejects. Rejection is
the validator's job (forgeguard.validation).
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

from forgeguard.exceptions import InvalidJSONError
from forgeguard.models import Visibility

_TAG_PATTERN = re.compile(r"<[^>]*>")
_CONTROL_PATTERN = re.compile(r"[\x00-\x1f\x7f]")

# An "&" that already starts one of our own entities is left alone so that
# sanitizing twice gives the same result as sanitizing once.
_BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|#x27|#x2F);)")

_ENTITIES = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_ENTITY_PATTERN = re.compile("[" + re.escape("".join(_ENTITIES)) + "]")

_ALLOWED_URL_SCHEMES = ("http", "https")
_DEFAULT_PORTS = {"http": 80, "https": 443}
_URL_TAB_OR_NEWLINE = re.compile(r"[\t\n\r]")


def sanitize_string(value: Any) -> str:
    """Strip tags and control characters, entity-encode, trim. Idempotent."""
    if not isinstance(value, str):
        return ""
    text = _TAG_PATTERN.sub("", value)
    text = _CONTROL_PATTERN.sub("", text)
    text = _BARE_AMPERSAND.sub("&amp;", text)
    text = _ENTITY_PATTERN.sub(lambda m: _ENTITIES[m.group(0)], text)
    return text.strip()


def _normalise_netloc(parts, scheme: str) -> str:
    host = parts.hostname  # already lower-cased by urlsplit
    if ":" in host:
        host = f"[{host}]"
    userinfo, _, _ = parts.netloc.rpartition("@")
    netloc = f"{userinfo}@{host}" if userinfo else host
    if parts.port is not None and parts.port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{parts.port}"
    return netloc


def sanitize_url(value: Any) -> str:
    """Return a normalised http(s) URL, or "" for anything else.

    Tabs and newlines are dropped, spaces in the path, query and fragment are
    percent-encoded, the host is lower-cased and a default port is removed.
    """
    if not isinstance(value, str):
        return ""
    text = _URL_TAB_OR_NEWLINE.sub("", value.strip())
    if not re.match(r"^https?://", text, re.IGNORECASE):
        return ""
    if _CONTROL_PATTERN.search(text):
        return ""
    try:
        parts = urlsplit(text)
        parts.port  # raises ValueError for a malformed port
    except ValueError:
        return ""
    scheme = parts.scheme.lower()
    if scheme not in _ALLOWED_URL_SCHEMES or not parts.hostname:
        return ""
    if any(ch.isspace() for ch in parts.netloc):
        return ""
    path, query, fragment = (
        part.replace(" ", "%20") for part in (parts.path or "/", parts.query, parts.fragment)
    )
    return urlunsplit((scheme, _normalise_netloc(parts, scheme), path, query, fragment))


def _sanitize_extra_metadata(extra: Any) -> Optional[dict]:
    if not isinstance(extra, dict):
        return None
    cleaned = {}
    if extra.get("platform"):
        cleaned["platform"] = sanitize_string(extra["platform"])
    if extra.get("external_id"):
        cleaned["external_id"] = sanitize_string(extra["external_id"])
    if extra.get("verification_url"):
        cleaned["verification_url"] = sanitize_url(extra["verification_url"])
    return cleaned


def sanitize_credential_metadata(candidate: dict) -> dict:
    """Sanitize the free-text fields of a would-be credential.

    ``credential_type``, ``rating``, ``timestamp`` and ``proof_hash`` pass
    through untouched; ``visibility`` falls back to public.
    """
    sanitized = dict(candidate)
    for key in ("name", "description", "issuer"):
        sanitized[key] = sanitize_string(candidate.get(key))
    sanitized["visibility"] = (
        Visibility.PRIVATE.value
        if candidate.get("visibility") == Visibility.PRIVATE.value
        else Visibility.PUBLIC.value
    )
    extra = _sanitize_extra_metadata(candidate.get("metadata"))
    if extra is None:
        sanitized.pop("metadata", None)
    else:
        sanitized["metadata"] = extra
    return sanitized


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def deep_sanitize(obj: Any) -> Any:
    if isinstance(obj, str):
        return sanitize_string(obj)
    if isinstance(obj, list):
        return [deep_sanitize(item) for item in obj]
    if isinstance(obj, dict):
        return {sanitize_string(k): deep_sanitize(v) for k, v in obj.items()}
    return obj


def sanitize_json_input(text: str) -> Any:
    """Parse JSON and sanitize every string value and object key.

    Raises InvalidJSONError when ``text`` is not valid JSON.
    """
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError, RecursionError) as e:
        raise InvalidJSONError() from e
    return deep_sanitize(parsed)
