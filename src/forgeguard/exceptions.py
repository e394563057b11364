"""forgeguard.exceptions — the few failures that are raised instead of returned."""


class ForgeguardError(Exception):
    """Base class for forgeguard errors."""


class InvalidJSONError(ForgeguardError, ValueError):
    """Raised by sanitize_json_input when the payload does not parse."""

    def __init__(self, message: str = "Invalid JSON format"):
        super().__init__(message)


class ConfigError(ForgeguardError):
    """A configuration value is missing or out of range."""
