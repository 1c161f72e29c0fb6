"""
In-Process Identity Provider

Keeps users in memory with bcrypt-hashed passwords. Used in tests and for
local demos where no hosted identity service is configured; it behaves like
a hosted provider from the ledger's point of view (opaque ids, session
tokens, change notifications).
"""

import re
import secrets
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

import bcrypt
import structlog

from goldengoose.services.identity.interface import (
    AuthFailureReason,
    AuthResult,
    Identity,
    IdentityProviderInterface,
    Session,
    SessionChangeCallback,
)


logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class InMemoryIdentityProvider(IdentityProviderInterface):
    """Email/password identity provider held in process memory."""

    def __init__(self):
        # email -> (identity, bcrypt hash)
        self._users: dict[str, tuple[Identity, bytes]] = {}
        self._session: Optional[Session] = None
        self._callbacks: list[SessionChangeCallback] = []

    async def get_current_session(self) -> Optional[Session]:
        return self._session

    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def _notify(self) -> None:
        for callback in list(self._callbacks):
            try:
                await callback(self._session)
            except Exception as e:
                logger.error("session_callback_failed", error=str(e))

    async def _start_session(self, identity: Identity) -> Session:
        self._session = Session(
            identity=identity,
            access_token=secrets.token_urlsafe(32),
            issued_at=datetime.now(timezone.utc),
        )
        await self._notify()
        return self._session

    async def sign_up_with_password(self, email: str, password: str) -> AuthResult:
        email = email.strip().lower()
        if not _EMAIL.match(email):
            return AuthResult.failed(AuthFailureReason.INVALID_EMAIL, "Enter a valid email address")
        if len(password) < MIN_PASSWORD_LENGTH:
            return AuthResult.failed(
                AuthFailureReason.WEAK_PASSWORD,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        if email in self._users:
            return AuthResult.failed(AuthFailureReason.USER_ALREADY_EXISTS, "Account already exists")

        identity = Identity(id=str(uuid4()), email=email)
        password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        self._users[email] = (identity, password_hash)

        return AuthResult.ok(await self._start_session(identity))

    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        email = email.strip().lower()
        entry = self._users.get(email)
        if entry is None:
            return AuthResult.failed(AuthFailureReason.USER_NOT_FOUND, "Account does not exist")

        identity, password_hash = entry
        if not bcrypt.checkpw(password.encode("utf-8"), password_hash):
            return AuthResult.failed(AuthFailureReason.INVALID_CREDENTIALS, "Wrong password")

        return AuthResult.ok(await self._start_session(identity))

    async def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        await self._notify()
