from datetime import timedelta

import pytest

from src.core.security import (
    create_access_token,
    decode_token,
    generate_password,
    hash_password,
    verify_password,
)


def test_hash_and_verify():
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_long_passwords_are_not_truncated():
    base = "p" * 80
    hashed = hash_password(base + "a")
    assert not verify_password(base + "b", hashed)


def test_empty_password_rejected():
    with pytest.raises(ValueError):
        hash_password("")


def test_malformed_hash_does_not_verify():
    assert verify_password("secret123", "not-a-hash") is False


def test_access_token_round_trip():
    token = create_access_token({"sub": "abc"})

    payload = decode_token(token)

    assert payload["sub"] == "abc"
    assert payload["type"] == "access"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "abc"}, expires_delta=timedelta(seconds=-5))
    assert decode_token(token) is None


def test_tampered_token_is_rejected():
    token = create_access_token({"sub": "abc"})
    assert decode_token(token[:-2] + "xx") is None


def test_generate_password_is_random():
    assert generate_password() != generate_password()
    assert len(generate_password()) >= 16
