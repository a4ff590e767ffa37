"""
Logging utilities with automatic credential redaction.
Tokens, API keys and connection credentials never reach log output.
"""

import logging
import re
from typing import Any

# Patterns to detect and redact sensitive information
SENSITIVE_PATTERNS = [
    # Session tokens and API keys in JSON payloads
    (re.compile(r'"access_token":\s*"[^"]+'), '"access_token": "[REDACTED]'),
    (re.compile(r'"refresh_token":\s*"[^"]+'), '"refresh_token": "[REDACTED]'),
    (re.compile(r'"api_key":\s*"[^"]+'), '"api_key": "[REDACTED]'),
    (re.compile(r'"apikey":\s*"[^"]+'), '"apikey": "[REDACTED]'),
    (re.compile(r'"secret_key":\s*"[^"]+'), '"secret_key": "[REDACTED]'),
    (re.compile(r'"signedURL":\s*"[^"]+'), '"signedURL": "[REDACTED]'),
    # Resend API keys
    (re.compile(r"\bre_[A-Za-z0-9_]{8,}"), "re_[REDACTED]"),
    # Authorization headers
    (re.compile(r"Authorization:\s*Bearer\s+\S+", re.IGNORECASE), "Authorization: Bearer [REDACTED]"),
    (re.compile(r"Bearer\s+[A-Za-z0-9\-_\.]{16,}"), "Bearer [REDACTED]"),
    # Password patterns
    (re.compile(r'"password":\s*"[^"]+'), '"password": "[REDACTED]'),
    (re.compile(r"password=\S+", re.IGNORECASE), "password=[REDACTED]"),
    # Database connection strings with credentials
    (re.compile(r"postgresql(\+\w+)?://[^:/]+:[^@]+@"), r"postgresql\1://[REDACTED]:[REDACTED]@"),
    # Signed media URLs
    (re.compile(r"token=[A-Za-z0-9\-_\.]+"), "token=[REDACTED]"),
]

DEFAULT_REDACT_KEYS = (
    "password",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "secret_key",
    "authorization",
    "signed_url",
)


def redact_sensitive_data(message: str) -> str:
    """
    Redact sensitive information from log messages.

    Args:
        message: Log message that may contain sensitive data

    Returns:
        Message with sensitive data replaced with [REDACTED]
    """
    redacted = message
    for pattern, replacement in SENSITIVE_PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


def mask_email(email: str | None) -> str:
    """Mask the local part of an address, e.g. ``j***@example.com``."""
    if not email or "@" not in email:
        return "[unknown]"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


class RedactingFormatter(logging.Formatter):
    """Logging formatter that redacts sensitive information."""

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        return redact_sensitive_data(formatted)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with redacting formatter.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if no handlers exist
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = RedactingFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger


def safe_repr(obj: Any, redact_keys: list[str] | None = None) -> str:
    """
    Create a safe string representation of an object with sensitive keys redacted.

    Args:
        obj: Object to represent
        redact_keys: Additional keys to redact

    Returns:
        String representation with sensitive data redacted
    """
    all_redact_keys = set(DEFAULT_REDACT_KEYS) | set(redact_keys or [])

    if isinstance(obj, dict):
        safe_dict = {}
        for key, value in obj.items():
            lowered = str(key).lower()
            if any(k in lowered for k in all_redact_keys):
                safe_dict[key] = "[REDACTED]"
            else:
                safe_dict[key] = safe_repr(value, redact_keys)
        return str(safe_dict)
    elif isinstance(obj, (list, tuple)):
        return str([safe_repr(item, redact_keys) for item in obj])
    else:
        return str(obj)
