"""Password hashing and strength rule tests."""

from __future__ import annotations

import pytest

from g15.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestHashing:
    def test_hash_is_argon2id(self):
        hashed = hash_password("SecureP@ss1")
        assert hashed.startswith("$argon2id$")

    def test_hashes_are_salted(self):
        assert hash_password("SecureP@ss1") != hash_password("SecureP@ss1")

    def test_verify(self):
        hashed = hash_password("SecureP@ss1")
        assert verify_password("SecureP@ss1", hashed) is True
        assert verify_password("securep@ss1", hashed) is False

    def test_verify_garbage_hash(self):
        assert verify_password("SecureP@ss1", "not-a-hash") is False

    def test_fresh_hash_needs_no_rehash(self):
        assert check_needs_rehash(hash_password("SecureP@ss1")) is False


class TestStrength:
    def test_strong_password_passes(self):
        validate_password_strength("SecureP@ss1")

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("", "empty"),
            ("   ", "empty"),
            ("Sh0rt", "at least 8"),
            ("alllowercase1", "uppercase"),
            ("ALLUPPERCASE1", "lowercase"),
            ("NoDigitsHere", "digit"),
            ("A1" + "a" * 130, "must not exceed"),
        ],
    )
    def test_weak_passwords(self, password: str, message: str):
        with pytest.raises(PasswordStrengthError, match=message):
            validate_password_strength(password)

    def test_strength_error_is_value_error(self):
        assert issubclass(PasswordStrengthError, ValueError)
