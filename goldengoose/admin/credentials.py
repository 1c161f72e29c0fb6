"""
Admin Credential Storage

The admin secret lives outside the ledger document, so syncing the ledger
never ships the secret to the remote store.

A stored credential records which hashing scheme produced it; verification
always uses that scheme, so switching LEDGER_SECRET_HASHER only affects
secrets set afterwards.
"""

import hmac
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import bcrypt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from goldengoose.config import get_settings
from goldengoose.models.ledger import utc_now
from goldengoose.services.storage.interface import LocalStoreInterface, StorageError


# =============================================================================
# HASHERS
# =============================================================================

class SecretHasher(ABC):
    """Turns a secret into a storable string and checks candidates against it."""

    scheme: str = ""

    @abstractmethod
    def hash(self, secret: str) -> str:
        pass

    @abstractmethod
    def verify(self, secret: str, stored: str) -> bool:
        pass


class PlaintextSecretHasher(SecretHasher):
    """
    Stores the secret as given.

    Only for migrating old documents and for tests that need to read the
    stored value back.
    """

    scheme = "plaintext"

    def hash(self, secret: str) -> str:
        return secret

    def verify(self, secret: str, stored: str) -> bool:
        return hmac.compare_digest(secret.encode("utf-8"), stored.encode("utf-8"))


class BcryptSecretHasher(SecretHasher):
    """Salted bcrypt hash."""

    scheme = "bcrypt"

    def hash(self, secret: str) -> str:
        return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    def verify(self, secret: str, stored: str) -> bool:
        try:
            return bcrypt.checkpw(secret.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            # Not a bcrypt hash
            return False


_HASHERS: dict[str, type[SecretHasher]] = {
    PlaintextSecretHasher.scheme: PlaintextSecretHasher,
    BcryptSecretHasher.scheme: BcryptSecretHasher,
}


def get_hasher(scheme: Optional[str] = None) -> SecretHasher:
    """Hasher for a scheme name; defaults to LEDGER_SECRET_HASHER."""
    scheme = scheme or get_settings().policy.secret_hasher
    try:
        return _HASHERS[scheme]()
    except KeyError:
        raise ValueError(f"Unknown secret hashing scheme: {scheme}")


# =============================================================================
# CREDENTIAL STORES
# =============================================================================

class AdminCredential(BaseModel):
    """The stored admin secret."""
    model_config = ConfigDict(frozen=True)

    secret_hash: str = Field(..., min_length=1)
    scheme: str
    created_at: datetime = Field(default_factory=utc_now)


class CredentialStoreInterface(ABC):
    """Holds at most one admin credential."""

    @abstractmethod
    def load(self) -> Optional[AdminCredential]:
        """Return the stored credential, or None when no secret was ever set."""
        pass

    @abstractmethod
    def save(self, credential: AdminCredential) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class InMemoryCredentialStore(CredentialStoreInterface):

    def __init__(self, credential: Optional[AdminCredential] = None):
        self._credential = credential

    def load(self) -> Optional[AdminCredential]:
        return self._credential

    def save(self, credential: AdminCredential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class LocalCredentialStore(CredentialStoreInterface):
    """
    Keeps the credential in the local key-value store under its own key.

    An unreadable record raises StorageError instead of reading as "no
    secret": treating corruption as absence would let anyone run setup again.
    """

    def __init__(self, local_store: LocalStoreInterface, key: Optional[str] = None):
        self._local_store = local_store
        self._key = key or get_settings().local_store.credential_key

    def load(self) -> Optional[AdminCredential]:
        raw = self._local_store.read(self._key)
        if raw is None:
            return None
        try:
            return AdminCredential.model_validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Admin credential record is unreadable: {e}")

    def save(self, credential: AdminCredential) -> None:
        self._local_store.write(self._key, credential.model_dump_json().encode("utf-8"))

    def clear(self) -> None:
        self._local_store.delete(self._key)
