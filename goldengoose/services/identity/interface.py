"""
Identity Provider Interface

The ledger treats the identity provider as an opaque external service. All
it needs is:
1. The current session (if any)
2. A notification when the session changes
3. Email/password sign-in, sign-up and sign-out

Sign-in and sign-up never raise on bad input or bad credentials; they
return an AuthResult carrying a typed failure reason.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """Who is signed in: an opaque id plus an optional email."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    email: Optional[str] = None

    @property
    def email_local_part(self) -> Optional[str]:
        """The part of the email before '@', used as a default display name."""
        if not self.email:
            return None
        local = self.email.split("@")[0].strip()
        return local or None


class Session(BaseModel):
    """An authenticated session issued by the provider."""
    model_config = ConfigDict(frozen=True)

    identity: Identity
    access_token: str
    issued_at: datetime


class AuthFailureReason(str, Enum):
    """Why a sign-in or sign-up did not succeed."""
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_NOT_FOUND = "user_not_found"
    USER_ALREADY_EXISTS = "user_already_exists"
    WEAK_PASSWORD = "weak_password"
    INVALID_EMAIL = "invalid_email"
    PROVIDER_ERROR = "provider_error"


class AuthResult(BaseModel):
    """Outcome of a sign-in or sign-up call."""

    success: bool
    session: Optional[Session] = None
    failure: Optional[AuthFailureReason] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, session: Session) -> 'AuthResult':
        return cls(success=True, session=session)

    @classmethod
    def failed(cls, reason: AuthFailureReason, message: str) -> 'AuthResult':
        return cls(success=False, failure=reason, message=message)


SessionChangeCallback = Callable[[Optional[Session]], Awaitable[None]]


class IdentityProviderInterface(ABC):
    """Abstract identity provider."""

    @abstractmethod
    async def get_current_session(self) -> Optional[Session]:
        """Return the active session, or None when signed out."""
        pass

    @abstractmethod
    def on_session_change(self, callback: SessionChangeCallback) -> Callable[[], None]:
        """
        Register a coroutine called with the new session (None on sign-out).

        Returns:
            A function that unsubscribes the callback
        """
        pass

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        pass

    @abstractmethod
    async def sign_up_with_password(self, email: str, password: str) -> AuthResult:
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass
