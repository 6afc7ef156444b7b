"""
BlogSpace Client — Authentication Session
===========================================

What:  Client-side session state: the bearer token (persisted to a local
       file) and the current user record.
How:   is_authenticated is derived from current_user, never stored
       separately, so the two cannot disagree.

Lifecycle:
    1. restore():  token file → GET /users/me → current_user
                   a 401 means the token is no longer valid: it is discarded
    2. login()/signup(): token + user from the AuthResponse, token persisted
    3. logout():   server revocation attempted; local state is cleared
                   whether or not the server call succeeds
"""

import logging
import os
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from blogspace.client.api import ApiError, BlogSpaceClient
from blogspace.schemas.user import AuthResponse, UserProfile

logger = logging.getLogger(__name__)


class AuthSession:

    def __init__(self, client: BlogSpaceClient, token_file: Optional[Path] = None):
        self.client = client
        self.token_file = Path(token_file) if token_file else client.settings.token_path
        self.token: Optional[str] = None
        self.current_user: Optional[UserProfile] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    # ── Token persistence ─────────────────────────────────────────────────

    async def _load_token(self) -> Optional[str]:
        if not self.token_file.is_file():
            return None
        async with aiofiles.open(self.token_file, "r") as f:
            token = (await f.read()).strip()
        return token or None

    async def _save_token(self, token: str) -> None:
        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.token_file, "w") as f:
            await f.write(token)
        # 0600: owner read/write only
        os.chmod(self.token_file, 0o600)

    async def _discard_token(self) -> None:
        self.token = None
        self.current_user = None
        if self.token_file.exists():
            await aiofiles.os.remove(self.token_file)

    # ── Session operations ────────────────────────────────────────────────

    async def restore(self) -> Optional[UserProfile]:
        """
        Resume a session from the stored token.

        Returns the current user, or None when there is no stored token or
        the server rejected it (401, or 404 for a deleted account).
        Other errors (network, 5xx) propagate and leave the stored token in place.
        """
        token = await self._load_token()
        if token is None:
            return None

        try:
            user = await self.client.me(token)
        except ApiError as e:
            if e.status in (401, 404):
                logger.info("Stored token rejected (%d); discarding it", e.status)
                await self._discard_token()
                return None
            raise

        self.token = token
        self.current_user = user
        return user

    async def _start(self, auth: AuthResponse) -> UserProfile:
        await self._save_token(auth.token)
        self.token = auth.token
        self.current_user = auth.user
        return auth.user

    async def login(self, email: str, password: str) -> UserProfile:
        return await self._start(await self.client.login(email, password))

    async def signup(
        self,
        username: str,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> UserProfile:
        return await self._start(await self.client.signup(username, email, password, full_name))

    async def refresh(self) -> Optional[UserProfile]:
        """Re-fetch the current user (after a profile edit or follow)."""
        if self.token is None:
            return None
        self.current_user = await self.client.me(self.token)
        return self.current_user

    async def logout(self) -> None:
        token = self.token
        try:
            if token:
                await self.client.logout(token)
        except ApiError as e:
            logger.warning("Server logout failed (%d: %s); clearing local session anyway", e.status, e.message)
        finally:
            await self._discard_token()
