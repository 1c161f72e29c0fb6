"""
Session Coordinator

Turns the identity provider's raw session notifications into two clean
transitions:
- on_session_established(identity)
- on_session_cleared()

Providers tend to repeat notifications (token refresh, tab focus). The
coordinator only fires when the signed-in identity actually changes.
Switching straight from one identity to another fires cleared before
established, so listeners never carry one user's state into another's.

With no provider configured the coordinator is permanently offline and
never establishes a session.
"""

from typing import Awaitable, Callable, Optional

import structlog

from goldengoose.audit import AuditLogger
from goldengoose.models.audit import AuditEventType
from goldengoose.services.identity import (
    AuthFailureReason,
    AuthResult,
    Identity,
    IdentityProviderInterface,
    Session,
)


logger = structlog.get_logger(__name__)

EstablishedListener = Callable[[Identity], Awaitable[None]]
ClearedListener = Callable[[], Awaitable[None]]


class SessionCoordinator:
    """Wraps an identity provider and fans out session transitions."""

    def __init__(
        self,
        provider: Optional[IdentityProviderInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._provider = provider
        self._audit_logger = audit_logger
        self._identity: Optional[Identity] = None
        self._established: list[EstablishedListener] = []
        self._cleared: list[ClearedListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def offline(self) -> bool:
        return self._provider is None

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._identity

    def on_session_established(self, listener: EstablishedListener) -> None:
        self._established.append(listener)

    def on_session_cleared(self, listener: ClearedListener) -> None:
        self._cleared.append(listener)

    async def start(self) -> Optional[Identity]:
        """Subscribe to the provider and pick up an existing session."""
        if self._provider is None:
            logger.info("session_coordinator_offline")
            return None

        if self._unsubscribe is None:
            self._unsubscribe = self._provider.on_session_change(self._handle_session)

        try:
            session = await self._provider.get_current_session()
        except Exception as e:
            logger.error("session_lookup_failed", error=str(e))
            session = None

        await self._handle_session(session)
        return self._identity

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _handle_session(self, session: Optional[Session]) -> None:
        identity = session.identity if session else None

        if self._identity is not None:
            if identity is not None and identity.id == self._identity.id:
                return
            await self._clear()

        if identity is not None:
            await self._establish(identity)

    async def _establish(self, identity: Identity) -> None:
        self._identity = identity
        if self._audit_logger:
            self._audit_logger.log_sync(
                AuditEventType.SESSION_ESTABLISHED,
                "Signed in",
                identity_id=identity.id,
            )
        for listener in list(self._established):
            await listener(identity)

    async def _clear(self) -> None:
        previous = self._identity
        self._identity = None
        if self._audit_logger:
            self._audit_logger.log_sync(
                AuditEventType.SESSION_CLEARED,
                "Signed out",
                identity_id=previous.id if previous else None,
            )
        for listener in list(self._cleared):
            await listener()

    # -------------------------------------------------------------------------
    # Provider passthroughs
    # -------------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthResult:
        if self._provider is None:
            return AuthResult.failed(AuthFailureReason.PROVIDER_ERROR, "Sign-in is unavailable offline")
        try:
            return await self._provider.sign_in_with_password(email, password)
        except Exception as e:
            logger.error("sign_in_failed", error=str(e))
            return AuthResult.failed(AuthFailureReason.PROVIDER_ERROR, str(e))

    async def sign_up(self, email: str, password: str) -> AuthResult:
        if self._provider is None:
            return AuthResult.failed(AuthFailureReason.PROVIDER_ERROR, "Sign-up is unavailable offline")
        try:
            return await self._provider.sign_up_with_password(email, password)
        except Exception as e:
            logger.error("sign_up_failed", error=str(e))
            return AuthResult.failed(AuthFailureReason.PROVIDER_ERROR, str(e))

    async def sign_out(self) -> None:
        if self._provider is None:
            return
        try:
            await self._provider.sign_out()
        except Exception as e:
            logger.error("sign_out_failed", error=str(e))
