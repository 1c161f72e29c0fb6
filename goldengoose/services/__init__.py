"""Services package."""

from goldengoose.services.identity import (
    AuthFailureReason,
    AuthResult,
    Identity,
    IdentityProviderInterface,
    InMemoryIdentityProvider,
    Session,
)
from goldengoose.services.storage import (
    ConnectionError,
    FileLocalStore,
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
    InMemoryLocalStore,
    InMemoryRemoteStore,
    LocalStoreInterface,
    RemoteRecord,
    RemoteStoreInterface,
    SnapshotTooLargeError,
    StorageError,
)

__all__ = [
    # Identity services
    "AuthFailureReason",
    "AuthResult",
    "Identity",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    "Session",
    # Storage services
    "ConnectionError",
    "FileLocalStore",
    "GoogleSheetsClient",
    "GoogleSheetsRemoteStore",
    "InMemoryLocalStore",
    "InMemoryRemoteStore",
    "LocalStoreInterface",
    "RemoteRecord",
    "RemoteStoreInterface",
    "SnapshotTooLargeError",
    "StorageError",
]
