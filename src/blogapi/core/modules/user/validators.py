import email_validator

from blogapi.errors import ValidationError

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50


def validate_username(username: str) -> None:
    """Validate username meets requirements.

    Requirements:
    - Between 3 and 50 characters
    - No whitespace characters

    Raises:
        ValidationError: If username doesn't meet requirements
    """
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters long"
        )

    if any(char.isspace() for char in username):
        raise ValidationError("Username cannot contain whitespace characters")


def validate_email(email: str) -> None:
    """Validate email syntax without DNS lookups.

    The address is only checked, never normalized: it is stored exactly as given.

    Raises:
        ValidationError: If the address is malformed
    """
    try:
        email_validator.validate_email(email, check_deliverability=False)
    except email_validator.EmailNotValidError:
        raise ValidationError("Invalid email address") from None
