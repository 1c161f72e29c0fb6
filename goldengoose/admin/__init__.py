"""Admin gate: secret storage and the operations it protects."""

from goldengoose.admin.credentials import (
    AdminCredential,
    BcryptSecretHasher,
    CredentialStoreInterface,
    InMemoryCredentialStore,
    LocalCredentialStore,
    PlaintextSecretHasher,
    SecretHasher,
    get_hasher,
)
from goldengoose.admin.gate import (
    AuthorizationError,
    GateState,
    SecretSetupError,
    SettingsGate,
)

__all__ = [
    "AdminCredential",
    "AuthorizationError",
    "BcryptSecretHasher",
    "CredentialStoreInterface",
    "GateState",
    "InMemoryCredentialStore",
    "LocalCredentialStore",
    "PlaintextSecretHasher",
    "SecretHasher",
    "SecretSetupError",
    "SettingsGate",
    "get_hasher",
]
