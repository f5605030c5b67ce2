"""Password strength policy, bcrypt hashing and random token generation."""

import secrets
import unicodedata
from enum import StrEnum

import bcrypt

from blogapi.errors import ValidationError

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72  # bcrypt only reads the first 72 bytes
DEFAULT_BCRYPT_ROUNDS = 12


class PasswordRule(StrEnum):
    """Password policy rules, in the order they are checked."""

    LENGTH_SHORT = "length_short"
    LENGTH_LONG = "length_long"
    MISSING_UPPER = "missing_upper"
    MISSING_LOWER = "missing_lower"
    MISSING_DIGIT = "missing_digit"
    MISSING_SPECIAL = "missing_special"


RULE_MESSAGES: dict[PasswordRule, str] = {
    PasswordRule.LENGTH_SHORT: f"password must be at least {MIN_PASSWORD_LENGTH} characters long",
    PasswordRule.LENGTH_LONG: f"password must be at most {MAX_PASSWORD_LENGTH} characters long",
    PasswordRule.MISSING_UPPER: "password must contain at least one uppercase letter",
    PasswordRule.MISSING_LOWER: "password must contain at least one lowercase letter",
    PasswordRule.MISSING_DIGIT: "password must contain at least one number",
    PasswordRule.MISSING_SPECIAL: "password must contain at least one special character",
}


class PasswordPolicyError(ValidationError):
    """Raised when a password violates the policy."""

    def __init__(self, rule: PasswordRule) -> None:
        self.rule = rule
        super().__init__(RULE_MESSAGES[rule])


def random_token(n_bytes: int) -> str:
    """Return ``2 * n_bytes`` lowercase hex characters from the OS CSPRNG."""
    if n_bytes <= 0:
        raise ValueError("n_bytes must be positive")
    return secrets.token_hex(n_bytes)


def _is_special(char: str) -> bool:
    # Unicode punctuation (P*) and symbol (S*) categories
    return unicodedata.category(char)[0] in ("P", "S")


class PasswordPolicy:
    """Validates, hashes and verifies passwords.

    The policy is deterministic: ``check`` always reports the first failing rule
    in ``PasswordRule`` order, so callers can map a rule to a specific response.
    Length is measured in UTF-8 bytes, which is what bcrypt consumes.
    """

    random_token = staticmethod(random_token)

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    def check(self, password: str) -> PasswordRule | None:
        """Return the first rule the password violates, or None if it is acceptable."""
        length = len(password.encode("utf-8"))
        if length < MIN_PASSWORD_LENGTH:
            return PasswordRule.LENGTH_SHORT
        if length > MAX_PASSWORD_LENGTH:
            return PasswordRule.LENGTH_LONG
        if not any(char.isupper() for char in password):
            return PasswordRule.MISSING_UPPER
        if not any(char.islower() for char in password):
            return PasswordRule.MISSING_LOWER
        if not any(char.isnumeric() for char in password):
            return PasswordRule.MISSING_DIGIT
        if not any(_is_special(char) for char in password):
            return PasswordRule.MISSING_SPECIAL
        return None

    def validate(self, password: str) -> None:
        """Raise PasswordPolicyError for the first rule the password violates."""
        rule = self.check(password)
        if rule is not None:
            raise PasswordPolicyError(rule)

    def hash(self, password: str) -> str:
        """Hash a password with a fresh salt. The result embeds salt and cost."""
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash; malformed hashes never match."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False
