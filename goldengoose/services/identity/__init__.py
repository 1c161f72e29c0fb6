"""Identity provider package."""

from goldengoose.services.identity.interface import (
    AuthFailureReason,
    AuthResult,
    Identity,
    IdentityProviderInterface,
    Session,
    SessionChangeCallback,
)
from goldengoose.services.identity.memory import InMemoryIdentityProvider

__all__ = [
    "AuthFailureReason",
    "AuthResult",
    "Identity",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    "Session",
    "SessionChangeCallback",
]
