"""In-memory remote store, for tests and offline demos."""

from datetime import datetime
from typing import Optional

from goldengoose.models.ledger import LedgerState
from goldengoose.services.storage.interface import RemoteRecord, RemoteStoreInterface


class InMemoryRemoteStore(RemoteStoreInterface):
    """
    Remote store held in a dict.

    Records go through a JSON round trip on the way in and out so callers
    see the same copies a real remote would give them.
    """

    def __init__(self):
        self._records: dict[str, str] = {}
        self.upsert_count = 0

    async def fetch_by_key(self, identity_id: str) -> Optional[RemoteRecord]:
        raw = self._records.get(identity_id)
        if raw is None:
            return None
        return RemoteRecord.model_validate_json(raw)

    async def upsert(
        self,
        identity_id: str,
        data: LedgerState,
        updated_at: datetime,
    ) -> bool:
        record = RemoteRecord(id=identity_id, data=data, updated_at=updated_at)
        self._records[identity_id] = record.model_dump_json()
        self.upsert_count += 1
        return True
