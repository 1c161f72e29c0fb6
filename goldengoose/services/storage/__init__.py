"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the local
key-value store and the remote ledger store. Google Sheets is the remote
backend, but both sides are designed to be swappable.
"""

from goldengoose.services.storage.interface import (
    ConnectionError,
    LocalStoreInterface,
    RemoteRecord,
    RemoteStoreInterface,
    SnapshotTooLargeError,
    StorageError,
)
from goldengoose.services.storage.local import FileLocalStore, InMemoryLocalStore
from goldengoose.services.storage.memory import InMemoryRemoteStore
from goldengoose.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
)

__all__ = [
    # Interfaces
    "LocalStoreInterface",
    "RemoteRecord",
    "RemoteStoreInterface",
    # Exceptions
    "ConnectionError",
    "SnapshotTooLargeError",
    "StorageError",
    # Implementations
    "FileLocalStore",
    "InMemoryLocalStore",
    "InMemoryRemoteStore",
    "GoogleSheetsClient",
    "GoogleSheetsRemoteStore",
]
