"""
BlogSpace Backend — Authentication Service
============================================

What:  Password hashing, bearer-token issue/verify, and token revocation.
How:   passlib CryptContext for password hashes; PyJWT for HS256 tokens;
       revoked token ids stored in the revoked_tokens table.
Who:   Called by UserService (signup/login/logout) and by the FastAPI auth
       dependencies in blogspace.dependencies.

Token Format:
    {"sub": "<user uuid>", "jti": "<random hex>", "iat": <epoch>, "exp": <epoch>}

    jti identifies one issued token so logout can revoke exactly that
    token. Revocations live in the database, so every server instance
    sees them; each row is kept until the token's own exp, after which
    the signature check rejects the token anyway and the row is purged.

Authentication Order (authenticate):
    1. Signature / expiry          → InvalidTokenError / TokenExpiredError
    2. Revoked jti                 → UnauthenticatedError
    3. Unknown user id             → NotFoundError (404)
    4. Loaded User returned
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import jwt
from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.config import settings
from blogspace.exceptions import (
    InvalidTokenError,
    NotFoundError,
    TokenExpiredError,
    UnauthenticatedError,
)
from blogspace.models.user import RevokedToken, User

logger = logging.getLogger(__name__)

# pbkdf2_sha256 is pure Python in passlib; no native backend needed
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:
    """
    Stateless token and password operations.

    Responsibilities:
        - hash_password() / verify_password()
        - issue_token(): sign a token for a user
        - decode_token(): verify a token and return its claims
        - revoke_token() / is_revoked(): logout support
        - authenticate(): token string → User
    """

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return pwd_context.verify(password, password_hash)
        except (ValueError, TypeError):
            # Unrecognized hash format
            logger.warning("Stored password hash could not be verified")
            return False

    def issue_token(self, user: User) -> Tuple[str, datetime]:
        """
        Sign a bearer token for `user`.

        Returns:
            (token, expires_at)
        """
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(minutes=settings.jwt_expire_minutes)
        payload = {
            "sub": str(user.id),
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        return token, expires_at

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature and expiry, and require the sub/jti claims.

        Raises:
            TokenExpiredError: exp is in the past
            InvalidTokenError: any other verification failure
        """
        try:
            claims = jwt.decode(
                token,
                settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                options={"require": ["sub", "jti", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.PyJWTError as e:
            logger.debug("Token rejected: %s", e)
            raise InvalidTokenError()

        try:
            uuid.UUID(str(claims["sub"]))
        except ValueError:
            raise InvalidTokenError()
        return claims

    async def is_revoked(self, db: AsyncSession, jti: str) -> bool:
        result = await db.execute(select(RevokedToken.jti).where(RevokedToken.jti == jti))
        return result.scalar_one_or_none() is not None

    async def revoke_token(self, db: AsyncSession, claims: Dict[str, Any]) -> None:
        """
        Record the token's jti as revoked until its exp. Revoking twice is a
        no-op. Rows whose expiry has passed are purged on the way.
        """
        now = datetime.now(timezone.utc)
        await db.execute(delete(RevokedToken).where(RevokedToken.expires_at < now))

        jti = claims["jti"]
        if await self.is_revoked(db, jti):
            return

        db.add(
            RevokedToken(
                jti=jti,
                user_id=uuid.UUID(str(claims["sub"])),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        )
        await db.flush()
        logger.info("Token revoked for user %s", claims["sub"])

    async def authenticate(self, db: AsyncSession, token: str) -> Tuple[User, Dict[str, Any]]:
        """
        Resolve a bearer token to its user.

        Returns:
            (user, claims) so callers such as logout can reach the jti.

        Raises:
            InvalidTokenError / TokenExpiredError: verification failed
            UnauthenticatedError: token was revoked by logout
            NotFoundError: token references a user that no longer exists
        """
        claims = self.decode_token(token)

        if await self.is_revoked(db, claims["jti"]):
            raise UnauthenticatedError(message="Token has been revoked. Please log in again.")

        user_id = uuid.UUID(str(claims["sub"]))
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user, claims


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
