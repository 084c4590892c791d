import re

from mediagate.errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.fullmatch(email))


def validate_email(email: str) -> None:
    if not is_valid_email(email):
        raise ValidationError("Invalid email address")


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 4 characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 4:
        raise ValidationError("Password must be at least 4 characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
