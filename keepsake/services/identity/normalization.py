"""
Email normalization shared by every read and write path.
"""

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from keepsake.core.errors import ValidationError

_email_adapter = TypeAdapter(EmailStr)


def normalize_email(email: str | None) -> str:
    """
    Trim and lower-case an address.

    Idempotent: normalize_email(normalize_email(e)) == normalize_email(e).
    """
    return (email or "").strip().lower()


def validate_email(email: str | None) -> str:
    """
    Normalize and validate an address.

    Raises:
        ValidationError: If the address is empty or malformed
    """
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required")
    try:
        validated = _email_adapter.validate_python(normalized)
    except PydanticValidationError as e:
        raise ValidationError("Invalid email format") from e
    # EmailStr also accepts "Name <addr>"; only a bare address is stored
    if validated.lower() != normalized:
        raise ValidationError("Invalid email format")
    return normalized


def emails_match(left: str | None, right: str | None) -> bool:
    left_n, right_n = normalize_email(left), normalize_email(right)
    return bool(left_n) and left_n == right_n
