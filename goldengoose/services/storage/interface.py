"""
Abstract Storage Interfaces

DESIGN DECISION: The ledger document lives in two stores:
1. A LOCAL key-value byte store, read first for immediate availability and
   written synchronously on every change
2. A REMOTE store keyed by identity, used for multi-device continuity

Both are abstract so we can:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the bridge logic decoupled from storage implementation

The interfaces are intentionally small - one document per key.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from goldengoose.models.ledger import LedgerState


class RemoteRecord(BaseModel):
    """One identity's ledger document as held by the remote store."""

    id: str = Field(
        ...,
        description="Identity id the document belongs to"
    )
    data: LedgerState
    updated_at: datetime = Field(
        ...,
        description="When the document was last pushed"
    )


class LocalStoreInterface(ABC):
    """
    Abstract key-value byte store on the local device.

    Implementations are synchronous: local writes complete before the
    caller continues.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """
        Read the value stored under a key.

        Returns:
            The stored bytes, or None if the key was never written

        Raises:
            StorageError: If the value exists but cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, value: bytes) -> None:
        """
        Store a value under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if something was removed
        """
        pass


class RemoteStoreInterface(ABC):
    """
    Abstract remote store of ledger documents keyed by identity id.

    Absence of a record is a normal outcome (a new identity), not an error.
    Upserts are last-write-wins.
    """

    @abstractmethod
    async def fetch_by_key(self, identity_id: str) -> Optional[RemoteRecord]:
        """
        Fetch the document stored for an identity.

        Returns:
            The record if one exists, None otherwise

        Raises:
            StorageError: If the remote cannot be reached or the record is
                unreadable
        """
        pass

    @abstractmethod
    async def upsert(
        self,
        identity_id: str,
        data: LedgerState,
        updated_at: datetime,
    ) -> bool:
        """
        Insert or replace the document for an identity.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If the save fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class SnapshotTooLargeError(StorageError):
    """Serialized document does not fit the backend's value size limit."""
    pass
