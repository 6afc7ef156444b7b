"""
BlogSpace Backend — Auth Service Unit Tests
=============================================

What:  Password hashing, token issue/decode, revocation and authenticate().
How:   Pure functions are tested directly; database calls use the mock
       session from conftest.

What we test:
    ✅ Hashes verify, wrong passwords and garbage hashes do not
    ✅ Issued tokens decode back to the user id with a jti
    ✅ Expired, tampered and incomplete tokens are rejected with distinct errors
    ✅ Revoked tokens and deleted users are rejected by authenticate()
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import jwt
import pytest

from blogspace.config import settings
from blogspace.exceptions import (
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    UnauthenticatedError,
)
from blogspace.services.auth_service import AuthService


def _user():
    return SimpleNamespace(id=uuid.uuid4(), username="alice")


def _sign(payload):
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class TestPasswords:

    def setup_method(self):
        self.service = AuthService()

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = self.service.hash_password("secret123")
        assert hashed != "secret123"
        assert self.service.verify_password("secret123", hashed) is True

    def test_wrong_password_fails(self):
        hashed = self.service.hash_password("secret123")
        assert self.service.verify_password("secret124", hashed) is False

    def test_unrecognized_hash_fails_instead_of_raising(self):
        assert self.service.verify_password("secret123", "not-a-hash") is False


class TestTokens:

    def setup_method(self):
        self.service = AuthService()

    def test_issue_and_decode_roundtrip(self):
        user = _user()
        token, expires_at = self.service.issue_token(user)

        claims = self.service.decode_token(token)

        assert claims["sub"] == str(user.id)
        assert len(claims["jti"]) == 32
        assert expires_at > datetime.now(timezone.utc)

    def test_each_token_has_its_own_jti(self):
        user = _user()
        first, _ = self.service.issue_token(user)
        second, _ = self.service.issue_token(user)
        assert self.service.decode_token(first)["jti"] != self.service.decode_token(second)["jti"]

    def test_expired_token_raises_token_expired(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        token = _sign({"sub": str(uuid.uuid4()), "jti": "abc", "exp": past})

        with pytest.raises(TokenExpiredError) as exc_info:
            self.service.decode_token(token)
        assert exc_info.value.error_code == "token_expired"

    def test_wrong_signature_raises_invalid_token(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "jti": "abc", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret-entirely",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            self.service.decode_token(token)

    def test_missing_jti_raises_invalid_token(self):
        token = _sign({"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(hours=1)})
        with pytest.raises(InvalidTokenError):
            self.service.decode_token(token)

    def test_non_uuid_subject_raises_invalid_token(self):
        token = _sign({"sub": "alice", "jti": "abc", "exp": datetime.now(timezone.utc) + timedelta(hours=1)})
        with pytest.raises(InvalidTokenError):
            self.service.decode_token(token)

    def test_garbage_raises_invalid_token(self):
        with pytest.raises(InvalidTokenError):
            self.service.decode_token("not.a.token")


class TestAuthenticate:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_valid_token_returns_user_and_claims(self, mock_db_session):
        user = _user()
        token, _ = self.service.issue_token(user)

        not_revoked = MagicMock()
        not_revoked.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = not_revoked
        mock_db_session.get.return_value = user

        found, claims = await self.service.authenticate(mock_db_session, token)

        assert found is user
        assert claims["sub"] == str(user.id)

    @pytest.mark.asyncio
    async def test_revoked_token_is_rejected(self, mock_db_session):
        user = _user()
        token, _ = self.service.issue_token(user)

        revoked = MagicMock()
        revoked.scalar_one_or_none.return_value = "some-jti"
        mock_db_session.execute.return_value = revoked

        with pytest.raises(UnauthenticatedError) as exc_info:
            await self.service.authenticate(mock_db_session, token)
        assert "revoked" in exc_info.value.message
        mock_db_session.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_for_deleted_user_raises_not_found(self, mock_db_session):
        token, _ = self.service.issue_token(_user())

        not_revoked = MagicMock()
        not_revoked.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = not_revoked
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await self.service.authenticate(mock_db_session, token)


class TestRevoke:

    @pytest.mark.asyncio
    async def test_revoke_records_jti_until_expiry(self, mock_db_session):
        service = AuthService()
        user = _user()
        token, expires_at = service.issue_token(user)
        claims = service.decode_token(token)

        not_revoked = MagicMock()
        not_revoked.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = not_revoked

        await service.revoke_token(mock_db_session, claims)

        mock_db_session.add.assert_called_once()
        row = mock_db_session.add.call_args[0][0]
        assert row.jti == claims["jti"]
        assert row.user_id == user.id
        assert abs((row.expires_at - expires_at).total_seconds()) < 1
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revoking_twice_is_a_noop(self, mock_db_session):
        service = AuthService()
        token, _ = service.issue_token(_user())
        claims = service.decode_token(token)

        already = MagicMock()
        already.scalar_one_or_none.return_value = claims["jti"]
        mock_db_session.execute.return_value = already

        await service.revoke_token(mock_db_session, claims)

        mock_db_session.add.assert_not_called()
