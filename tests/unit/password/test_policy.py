"""Tests for the password policy, hashing and random tokens."""

import pytest

from blogapi.core.modules.password.policy import (
    RULE_MESSAGES,
    PasswordPolicy,
    PasswordPolicyError,
    PasswordRule,
    random_token,
)
from blogapi.errors import ErrorKind


@pytest.fixture
def policy() -> PasswordPolicy:
    return PasswordPolicy(rounds=4)


class TestPasswordCheck:
    """Tests for PasswordPolicy.check rule ordering and boundaries."""

    def test_minimal_valid_password(self, policy):
        assert policy.check("Ab1!ab") is None

    def test_five_bytes_too_short(self, policy):
        assert policy.check("Ab1!a") == PasswordRule.LENGTH_SHORT

    def test_seventy_two_bytes_accepted(self, policy):
        assert policy.check("Ab1!" + "a" * 68) is None

    def test_seventy_three_bytes_too_long(self, policy):
        assert policy.check("Ab1!" + "a" * 69) == PasswordRule.LENGTH_LONG

    def test_length_counts_utf8_bytes(self, policy):
        """Four 2-byte characters plus 'A1!' is 11 bytes."""
        assert policy.check("A1!" + "é" * 4) is None
        # 36 two-byte characters is already 72 bytes
        assert policy.check("A1!" + "é" * 36) == PasswordRule.LENGTH_LONG

    def test_missing_upper(self, policy):
        assert policy.check("abcdef1!") == PasswordRule.MISSING_UPPER

    def test_missing_lower(self, policy):
        assert policy.check("ABCDEF1!") == PasswordRule.MISSING_LOWER

    def test_missing_digit(self, policy):
        assert policy.check("Abcdefg!") == PasswordRule.MISSING_DIGIT

    @pytest.mark.parametrize("number", ["½", "Ⅻ", "٣"])
    def test_any_unicode_number_counts_as_digit(self, policy, number):
        assert policy.check(f"Abcdef{number}!") is None

    def test_missing_special(self, policy):
        assert policy.check("Abcdefg1") == PasswordRule.MISSING_SPECIAL

    def test_first_failing_rule_reported(self, policy):
        """A short password with nothing else is reported as too short."""
        assert policy.check("abc") == PasswordRule.LENGTH_SHORT
        assert policy.check("abcdefgh") == PasswordRule.MISSING_UPPER

    def test_unicode_symbols_count_as_special(self, policy):
        assert policy.check("Abcdef1€") is None
        assert policy.check("Abcdef1§") is None

    def test_space_is_not_special(self, policy):
        assert policy.check("Abcdef1 ") == PasswordRule.MISSING_SPECIAL


class TestPasswordValidate:
    def test_raises_with_rule_and_message(self, policy):
        with pytest.raises(PasswordPolicyError) as exc_info:
            policy.validate("abcdef1!")
        assert exc_info.value.rule == PasswordRule.MISSING_UPPER
        assert str(exc_info.value) == RULE_MESSAGES[PasswordRule.MISSING_UPPER]
        assert exc_info.value.kind == ErrorKind.VALIDATION

    def test_valid_password_passes(self, policy):
        policy.validate("Abcdef1!")


class TestHashing:
    """Tests for bcrypt hashing and verification."""

    def test_verify_matches_own_hash(self, policy):
        password_hash = policy.hash("Abcdef1!")
        assert policy.verify("Abcdef1!", password_hash)

    def test_verify_rejects_other_password(self, policy):
        password_hash = policy.hash("Abcdef1!")
        assert not policy.verify("Abcdef1?", password_hash)

    def test_hashes_are_salted(self, policy):
        assert policy.hash("Abcdef1!") != policy.hash("Abcdef1!")

    def test_hash_embeds_cost(self, policy):
        assert policy.hash("Abcdef1!").startswith("$2b$04$")

    def test_malformed_hash_never_matches(self, policy):
        assert not policy.verify("Abcdef1!", "not-a-bcrypt-hash")
        assert not policy.verify("Abcdef1!", "")


class TestRandomToken:
    def test_length_and_alphabet(self):
        token = random_token(16)
        assert len(token) == 32
        assert set(token) <= set("0123456789abcdef")

    def test_tokens_differ(self):
        assert random_token(16) != random_token(16)

    @pytest.mark.parametrize("n_bytes", [0, -1])
    def test_non_positive_rejected(self, n_bytes):
        with pytest.raises(ValueError):
            random_token(n_bytes)
