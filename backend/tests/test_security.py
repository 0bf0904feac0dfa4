"""Tests for session tokens, bearer header parsing and password hashing."""

from datetime import timedelta

import pytest
from jose import jwt

from lfg.exceptions import ConfigurationError, InvalidTokenError
from lfg.security import (
    PasswordHasher,
    TokenClaims,
    TokenCodec,
    extract_bearer_token,
)

from tests.conftest import TEST_SECRET


@pytest.fixture
def claims():
    return TokenClaims(user_id=42, email="rider@example.com")


class TestTokenCodec:
    """Tests for TokenCodec.issue / verify."""

    @pytest.mark.parametrize(
        "user_id,email",
        [(1, "a@example.com"), (42, "rider@example.com"), (2_147_483_647, "strava_user_x@noemail.local")],
    )
    def test_verify_returns_issued_claims(self, codec, user_id, email):
        """Test that verify(issue(claims)) == claims."""
        claims = TokenClaims(user_id=user_id, email=email)

        assert codec.verify(codec.issue(claims)) == claims

    def test_token_carries_issued_at_and_expiry(self, codec, claims):
        """Test that the token embeds iat/exp a week apart by default."""
        payload = jwt.get_unverified_claims(codec.issue(claims))

        assert payload["sub"] == "42"
        assert payload["email"] == "rider@example.com"
        assert payload["exp"] - payload["iat"] == 7 * 24 * 3600

    def test_expired_token_raises(self, codec, claims):
        """Test that a token past its expiry fails verification."""
        token = codec.issue(claims, expires_delta=timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError):
            codec.verify(token)

    def test_custom_ttl_is_used(self, claims):
        """Test that the configured time-to-live is applied at issue time."""
        codec = TokenCodec(TEST_SECRET, expires_minutes=5)
        payload = jwt.get_unverified_claims(codec.issue(claims))

        assert payload["exp"] - payload["iat"] == 300

    def test_token_signed_with_other_secret_raises(self, codec, claims):
        """Test that a token only verifies against the current secret."""
        token = TokenCodec("another-secret-entirely-0000000000").issue(claims)

        with pytest.raises(InvalidTokenError):
            codec.verify(token)

    def test_tampered_payload_raises(self, codec, claims):
        """Test that editing the payload invalidates the signature."""
        header, _, signature = codec.issue(claims).split(".")
        forged_payload = jwt.encode({"sub": "1", "email": "x@example.com"}, "k").split(".")[1]

        with pytest.raises(InvalidTokenError):
            codec.verify(f"{header}.{forged_payload}.{signature}")

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "Bearer abc"])
    def test_malformed_token_raises(self, codec, token):
        with pytest.raises(InvalidTokenError):
            codec.verify(token)

    def test_token_without_identity_claims_raises(self, codec):
        """Test that a correctly signed token still needs sub and email."""
        token = jwt.encode({"email": "x@example.com"}, TEST_SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            codec.verify(token)

    @pytest.mark.parametrize("secret", [None, "", "fallback-secret-key", "placeholder"])
    def test_issue_fails_closed_without_secret(self, claims, secret):
        """Test that a missing or placeholder secret never signs anything."""
        with pytest.raises(ConfigurationError):
            TokenCodec(secret).issue(claims)

    @pytest.mark.parametrize("secret", [None, "", "fallback-secret-key"])
    def test_verify_fails_closed_without_secret(self, codec, claims, secret):
        """Test that verification refuses to run with a placeholder secret."""
        token = codec.issue(claims)

        with pytest.raises(ConfigurationError):
            TokenCodec(secret).verify(token)


class TestExtractBearerToken:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            ("Bearer   padded  ", "padded"),
            ("bearer abc.def.ghi", "abc.def.ghi"),
            ("BEARER abc.def.ghi", "abc.def.ghi"),
            (None, None),
            ("", None),
            ("Bearer ", None),
            ("Basic dXNlcjpwYXNz", None),
            ("abc.def.ghi", None),
        ],
    )
    def test_extract(self, header, expected):
        assert extract_bearer_token(header) == expected


class TestPasswordHasher:
    """Tests for PasswordHasher."""

    @pytest.fixture(scope="class")
    def hasher(self):
        return PasswordHasher()

    @pytest.fixture(scope="class")
    def digest(self, hasher):
        return hasher.hash("correct-horse")

    def test_hash_is_salted_and_one_way(self, hasher, digest):
        assert digest != "correct-horse"
        assert hasher.hash("correct-horse") != digest

    def test_verify_matching_password(self, hasher, digest):
        assert hasher.verify("correct-horse", digest) is True

    def test_verify_wrong_password(self, hasher, digest):
        assert hasher.verify("battery-staple", digest) is False

    @pytest.mark.parametrize("attempt", ["", " ", "correct-horse", "anything"])
    def test_empty_digest_never_matches(self, hasher, attempt):
        """Test that Strava-only accounts (empty digest) cannot log in by password."""
        assert hasher.verify(attempt, "") is False

    def test_unrecognized_digest_does_not_match(self, hasher):
        assert hasher.verify("correct-horse", "not-a-bcrypt-hash") is False
