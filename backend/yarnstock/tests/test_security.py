from datetime import datetime, timedelta

from jose import jwt

from yarnstock.core.config import settings
from yarnstock.core.security import (
    TOKEN_TYPE_AUTH,
    TOKEN_TYPE_RESET,
    create_token,
    decode_token,
    get_password_hash,
    hash_token,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_verify_password_rejects_missing_hash():
    assert verify_password("secret123", None) is False
    assert verify_password("secret123", "not-a-bcrypt-hash") is False


def test_token_carries_email_and_type():
    token = create_token("a@example.com", TOKEN_TYPE_RESET)

    payload = decode_token(token)

    assert payload["email"] == "a@example.com"
    assert payload["type"] == TOKEN_TYPE_RESET


def test_expired_token_is_rejected():
    token = create_token("a@example.com", TOKEN_TYPE_AUTH, expires_minutes=-1)

    assert decode_token(token) is None


def test_token_signed_with_other_key_is_rejected():
    token = jwt.encode(
        {"email": "a@example.com", "type": "auth", "exp": datetime.utcnow() + timedelta(minutes=5)},
        "another-key",
        algorithm=settings.JWT_ALGORITHM,
    )

    assert decode_token(token) is None
    assert decode_token("") is None


def test_hash_token_is_stable():
    assert hash_token("abc") == hash_token("abc")
    assert hash_token("abc") != hash_token("abd")
    assert len(hash_token("abc")) == 64
