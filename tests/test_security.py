"""Tests for secure random strings, secret hashing and session JWTs."""

import uuid
from datetime import timedelta

import pytest
from jose import jwt

from src.config import settings
from src.core.security import (
    ACCESS_CODE_ALPHABET,
    SECRET_ALPHABET,
    TokenData,
    create_access_token,
    decode_access_token,
    generate_access_code,
    generate_token_secret,
    hash_secret,
    secrets_match,
    secure_random_string,
)


class TestSecureRandomString:
    def test_length_and_alphabet(self):
        value = secure_random_string(20, "abc")

        assert len(value) == 20
        assert set(value) <= set("abc")

    @pytest.mark.parametrize("length,alphabet", [(0, "abc"), (-1, "abc"), (5, "")])
    def test_invalid_arguments(self, length, alphabet):
        with pytest.raises(ValueError):
            secure_random_string(length, alphabet)

    def test_token_secret(self):
        secret = generate_token_secret()

        assert len(secret) == 43
        assert set(secret) <= set(SECRET_ALPHABET)

    def test_access_code(self):
        codes = {generate_access_code() for _ in range(200)}

        assert all(len(c) == 6 and set(c) <= set(ACCESS_CODE_ALPHABET) for c in codes)
        # 36**6 possible codes; collisions among 200 are vanishingly rare
        assert len(codes) > 190


class TestSecretHashing:
    def test_hash_is_sha256_hex(self):
        digest = hash_secret("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_match(self):
        secret = generate_token_secret()
        assert secrets_match(secret, hash_secret(secret))

    def test_mismatch(self):
        secret = generate_token_secret()
        assert not secrets_match(secret + "x", hash_secret(secret))


class TestAccessTokens:
    def test_round_trip(self):
        user_id = uuid.uuid4()

        payload = decode_access_token(
            create_access_token(user_id, "dr@example.com", "doctor")
        )

        data = TokenData(payload)
        assert data.user_id == user_id
        assert data.email == "dr@example.com"
        assert data.role == "doctor"

    def test_expired_rejected(self):
        token = create_access_token(
            uuid.uuid4(), "dr@example.com", "doctor", expires_delta=timedelta(seconds=-1)
        )
        assert decode_access_token(token) is None

    def test_wrong_signature_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "access"},
            "another-secret",
            algorithm=settings.jwt_algorithm,
        )
        assert decode_access_token(token) is None

    def test_non_access_type_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "refresh"},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert decode_access_token(token) is None
