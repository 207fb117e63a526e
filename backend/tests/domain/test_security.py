"""Tests for password hashing and bearer tokens."""

from datetime import timezone

from orderease.core.security import create_access_token, decode_token, hash_password, token_expiry, verify_password


class TestPasswords:
    def test_roundtrip(self):
        h = hash_password("secret123")
        assert h != "secret123"
        assert verify_password("secret123", h)
        assert not verify_password("wrong", h)

    def test_empty_hash_never_verifies(self):
        assert not verify_password("anything", "")


class TestTokens:
    def test_claims(self):
        token, expires_at = create_access_token("456", username="owner", role="shop_owner", ttl_minutes=5)
        claims = decode_token(token)
        assert claims["sub"] == "456"
        assert claims["username"] == "owner"
        assert claims["role"] == "shop_owner"
        assert token_expiry(claims) == expires_at.replace(microsecond=0)
        assert token_expiry(claims).tzinfo == timezone.utc
