"""Unit tests for the salted password verifier in auth/tokens.py.

Covers:
- hash_password() is deterministic for a given password, salt and rounds
- verify_password() accepts the right password and rejects others
- the salt and the round count both change the derived hash
- malformed or empty inputs are plain mismatches, never exceptions
"""

import pytest

from auth.tokens import generate_salt, hash_password, verify_password


class TestHashPassword:
    def test_same_inputs_same_hash(self):
        assert hash_password("secret", "s1") == hash_password("secret", "s1")

    def test_stored_form_records_scheme_and_rounds(self):
        scheme, rounds, digest = hash_password("secret", "s1", rounds=5).split("$")
        assert scheme == "bcrypt-pbkdf"
        assert rounds == "5"
        assert len(digest) == 64  # 32 bytes, hex

    def test_salt_changes_hash(self):
        assert hash_password("secret", "s1") != hash_password("secret", "s2")

    def test_rounds_change_hash(self):
        assert hash_password("secret", "s1", rounds=4) != hash_password("secret", "s1", rounds=5)

    @pytest.mark.parametrize("plain,salt", [("", "s1"), ("secret", "")])
    def test_empty_password_or_salt_rejected(self, plain, salt):
        with pytest.raises(ValueError):
            hash_password(plain, salt)

    def test_generated_salts_are_unique_hex(self):
        salts = {generate_salt() for _ in range(20)}
        assert len(salts) == 20
        assert all(len(s) == 32 and int(s, 16) >= 0 for s in salts)


class TestVerifyPassword:
    def test_correct_password_verifies(self):
        assert verify_password("secret", "s1", hash_password("secret", "s1")) is True

    @pytest.mark.parametrize("candidate", ["wrong", "Secret", "secret ", "secre", "secret\x00"])
    def test_other_passwords_fail(self, candidate):
        assert verify_password(candidate, "s1", hash_password("secret", "s1")) is False

    def test_wrong_salt_fails(self):
        assert verify_password("secret", "s2", hash_password("secret", "s1")) is False

    def test_hash_made_with_other_rounds_still_verifies(self):
        stored = hash_password("secret", "s1", rounds=6)
        assert verify_password("secret", "s1", stored) is True

    def test_unicode_password(self):
        salt = generate_salt()
        assert verify_password("pässwörd-密码", salt, hash_password("pässwörd-密码", salt)) is True

    @pytest.mark.parametrize(
        "stored",
        [
            "",
            "not-a-hash",
            "bcrypt-pbkdf$abc$00",
            "bcrypt-pbkdf$0$00",
            "bcrypt-pbkdf$999999$00",
            "sha256$4$00",
            "bcrypt-pbkdf$4$00$extra",
        ],
    )
    def test_malformed_stored_hash_is_mismatch(self, stored):
        assert verify_password("secret", "s1", stored) is False

    def test_empty_candidate_is_mismatch(self):
        assert verify_password("", "s1", hash_password("secret", "s1")) is False

    def test_empty_salt_is_mismatch(self):
        assert verify_password("secret", "", hash_password("secret", "s1")) is False
