"""
Shared Test Configuration.

No test talks to Google or touches the user's data directory: remote
stores are in-memory fakes and file stores live under tmp_path.
"""

import asyncio
from datetime import datetime
from typing import Optional

import pytest

from goldengoose.ledger import AllocationEngine, AssetManager, MonotonicIdGenerator, default_ledger_state
from goldengoose.models.ledger import Account, Assets, Goal, LedgerState
from goldengoose.services.storage import (
    InMemoryRemoteStore,
    RemoteRecord,
    RemoteStoreInterface,
    StorageError,
)
from goldengoose.validation import LedgerPolicyValidator


class FailingRemoteStore(RemoteStoreInterface):
    """Remote store whose calls always fail."""

    def __init__(self, fail_fetch: bool = True, fail_upsert: bool = True):
        self.fail_fetch = fail_fetch
        self.fail_upsert = fail_upsert
        self.upsert_calls = 0

    async def fetch_by_key(self, identity_id: str) -> Optional[RemoteRecord]:
        if self.fail_fetch:
            raise StorageError("remote unreachable")
        return None

    async def upsert(self, identity_id: str, data: LedgerState, updated_at: datetime) -> bool:
        self.upsert_calls += 1
        if self.fail_upsert:
            raise StorageError("remote unreachable")
        return True


class BlockingRemoteStore(InMemoryRemoteStore):
    """In-memory remote whose fetch waits until `release` is set."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def fetch_by_key(self, identity_id: str) -> Optional[RemoteRecord]:
        await self.release.wait()
        return await super().fetch_by_key(identity_id)


@pytest.fixture
def ids():
    """Id generator pinned to a fixed clock, so ids are 1000, 1001, ..."""
    return MonotonicIdGenerator(clock=lambda: 1000)


@pytest.fixture
def engine(ids):
    return AllocationEngine(
        validator=LedgerPolicyValidator(split_tolerance=0.1),
        id_generator=ids,
        enforce_policy=True,
    )


@pytest.fixture
def lenient_engine(ids):
    """Engine that logs policy issues but lets the operation through."""
    return AllocationEngine(
        validator=LedgerPolicyValidator(split_tolerance=0.1),
        id_generator=ids,
        enforce_policy=False,
    )


@pytest.fixture
def manager(ids):
    return AssetManager(id_generator=ids)


@pytest.fixture
def default_state():
    return default_ledger_state()


@pytest.fixture
def funded_account():
    """Account with money in every bucket and two goals."""
    return Account(
        id=1,
        name="Mia",
        assets=Assets(
            reserve_balance=100.0,
            spending_balance=50.0,
            goals=(
                Goal(id=11, title="Bike", target_amount=300, current_amount=40),
                Goal(id=12, title="Tablet", target_amount=900, current_amount=10),
            ),
        ),
    )


@pytest.fixture
def empty_account():
    """Account with no goals and zero balances."""
    return Account(id=1, name="Leo")
