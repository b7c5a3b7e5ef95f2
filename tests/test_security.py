from datetime import timedelta

import jwt
import pytest

from georegistry.core.config import settings
from georegistry.core.security import (
    TokenError,
    create_access_token,
    decode_access_token,
    get_password_hash,
    pwd_context,
    verify_password,
)


def test_password_hashing():
    """Test that password hashing works correctly"""
    password = "mysecretpassword"
    hashed = get_password_hash(password)

    # Verify the hash is not the plain password
    assert hashed != password

    # Verify the hash starts with $argon2 indicating Argon2 was used
    assert hashed.startswith("$argon2")

    # Verify the same password hashes to different values (due to salt)
    assert get_password_hash(password) != get_password_hash(password)


def test_password_verification():
    """Test that password verification works correctly"""
    password = "mysecretpassword"
    hashed = get_password_hash(password)

    assert verify_password(password, hashed) is True
    assert verify_password("wrongpassword", hashed) is False


def test_invalid_password_scenarios():
    """Test various invalid password scenarios"""
    with pytest.raises(TypeError):
        get_password_hash(None)

    assert not verify_password("", get_password_hash("test"))
    assert not verify_password("password", "")
    assert not verify_password("password", "invalid_hash_format")
    assert not verify_password(None, get_password_hash("test"))


def test_argon2_is_default_scheme():
    assert pwd_context.default_scheme() == "argon2"


def test_token_round_trip():
    token = create_access_token("user-1", "admin")
    payload = decode_access_token(token)

    assert payload["sub"] == "user-1"
    assert payload["role"] == "admin"
    assert payload["exp"] > payload["iat"]


def test_expired_token_rejected():
    token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))

    with pytest.raises(TokenError, match="expired"):
        decode_access_token(token)


def test_tampered_token_rejected():
    token = create_access_token("user-1")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(TokenError):
        decode_access_token(tampered)


def test_token_signed_with_other_secret_rejected():
    token = jwt.encode({"sub": "user-1", "iat": 0, "exp": 2**33}, "not-the-secret", algorithm="HS256")

    with pytest.raises(TokenError):
        decode_access_token(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_rejected(token):
    with pytest.raises(TokenError):
        decode_access_token(token)


def test_token_without_subject_rejected():
    token = jwt.encode({"iat": 0, "exp": 2**33}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(TokenError):
        decode_access_token(token)
