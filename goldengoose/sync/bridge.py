"""
Persistence Bridge

Keeps the in-memory LedgerState, the local store and the remote store
loosely consistent.

FLOW:
1. load()       local store -> memory (default seed on missing/unreadable)
2. reconcile()  on sign-in: remote record wins if present, otherwise the
                current state seeds a new remote record
3. save()       every change: write local synchronously, then queue a
                remote push when signed in and reconciled
                (pushed immediately when no event loop is running)
4. logout()     drop memory, reload from the local store

The local store is the source of truth whenever the remote misbehaves.
Remote failures are logged and mark the bridge DEGRADED; they never fail
the local operation.

PUSH ORDERING: pushes run one at a time under a lock and carry a revision
number. A push whose revision has been superseded by a newer save is
skipped, so an older snapshot never lands after a newer one.
"""

import asyncio
from enum import Enum
from typing import Optional

import structlog
from pydantic import ValidationError

from goldengoose.audit import AuditLogger
from goldengoose.config import get_settings
from goldengoose.ledger.seed import default_ledger_state
from goldengoose.models.audit import AuditEventType
from goldengoose.models.ledger import LedgerState, utc_now
from goldengoose.services.identity import Identity
from goldengoose.services.storage import (
    LocalStoreInterface,
    RemoteStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class SyncStatus(str, Enum):
    """What the bridge is doing with the remote copy."""
    OFFLINE = "offline"      # no identity or no remote store
    LOADING = "loading"      # reconciling; the ledger must not be mutated
    SYNCING = "syncing"      # a push is in flight
    SYNCED = "synced"        # last push (or fetch) succeeded
    DEGRADED = "degraded"    # remote failed; working from local state


class PersistenceBridge:
    """Owns the current LedgerState and its two persisted copies."""

    def __init__(
        self,
        local_store: LocalStoreInterface,
        remote_store: Optional[RemoteStoreInterface] = None,
        state_key: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._local = local_store
        self._remote = remote_store
        self._state_key = state_key or get_settings().local_store.state_key
        self._audit_logger = audit_logger

        self._state: Optional[LedgerState] = None
        self._identity: Optional[Identity] = None
        self._status = SyncStatus.OFFLINE
        self._ready = True
        # False until a fetch has confirmed what the remote holds
        self._remote_linked = False

        # One push lock per event loop
        self._push_lock: Optional[asyncio.Lock] = None
        self._push_lock_loop: Optional[asyncio.AbstractEventLoop] = None
        self._revision = 0
        self._pushed_revision = 0
        self._pending: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        if self._state is None:
            return self.load()
        return self._state

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def is_ready(self) -> bool:
        """False while a reconcile is in progress."""
        return self._ready

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def _log(self, event_type: AuditEventType, description: str, error_message: Optional[str] = None, **details):
        if self._audit_logger:
            self._audit_logger.log_sync(
                event_type=event_type,
                description=description,
                identity_id=self._identity.id if self._identity else None,
                error_message=error_message,
                details=details or None,
            )

    # -------------------------------------------------------------------------
    # Local store
    # -------------------------------------------------------------------------

    def load(self) -> LedgerState:
        """
        Read the ledger from the local store into memory.

        A missing, unreadable or unparseable document yields the default
        seed instead of an error.
        """
        try:
            raw = self._local.read(self._state_key)
        except StorageError as e:
            self._log(AuditEventType.LOCAL_LOAD_FALLBACK, "Local store unreadable, using default ledger", str(e))
            raw = None

        state = None
        if raw is not None:
            try:
                state = LedgerState.model_validate_json(raw)
            except ValidationError as e:
                self._log(
                    AuditEventType.LOCAL_LOAD_FALLBACK,
                    "Local ledger document is invalid, using default ledger",
                    str(e),
                )

        if state is None:
            logger.info("default_ledger_seeded", key=self._state_key)
            state = default_ledger_state()

        self._state = state
        return state

    def _write_local(self, state: LedgerState) -> None:
        try:
            self._local.write(self._state_key, state.model_dump_json().encode("utf-8"))
        except StorageError as e:
            self._log(AuditEventType.LOCAL_SAVE_FAILED, "Could not write ledger to local store", str(e))

    # -------------------------------------------------------------------------
    # Remote store
    # -------------------------------------------------------------------------

    async def reconcile(self, identity: Identity) -> LedgerState:
        """
        Decide the authoritative state for a newly signed-in identity.

        - remote record present: it replaces memory and the local copy
        - remote record absent: the current state, with the active account
          named after the email local part, becomes the remote record
        - remote fetch failed: keep local state, go DEGRADED and push nothing
          until the next reconcile, so an unseen remote record is never
          overwritten
        """
        self._identity = identity
        self._ready = False
        self._remote_linked = False
        self._status = SyncStatus.LOADING
        current = self.state

        try:
            if self._remote is None:
                self._status = SyncStatus.OFFLINE
                return current

            try:
                record = await self._remote.fetch_by_key(identity.id)
            except Exception as e:
                self._status = SyncStatus.DEGRADED
                self._log(AuditEventType.REMOTE_FETCH_FAILED, "Remote fetch failed, keeping local ledger", str(e))
                return current

            if record is not None:
                self._state = record.data
                self._write_local(record.data)
                self._pushed_revision = self._revision
                self._remote_linked = True
                self._status = SyncStatus.SYNCED
                self._log(AuditEventType.STATE_RECONCILED, "Remote ledger replaced local ledger")
                return record.data

            seed = self._stamp_name(current, identity)
            self._remote_linked = True
            self._state = seed
            self._write_local(seed)
            self._revision += 1
            await self._push(self._revision, identity, seed)
            if self._status == SyncStatus.SYNCED:
                self._log(AuditEventType.REMOTE_SEEDED, "Local ledger seeded the remote record")
            return seed
        finally:
            self._ready = True

    @staticmethod
    def _stamp_name(state: LedgerState, identity: Identity) -> LedgerState:
        name = identity.email_local_part
        if not name:
            return state
        account = state.active_account
        return state.with_account(account.model_copy(update={"name": name[:100]}))

    def _can_push(self) -> bool:
        return (
            self._remote is not None
            and self._identity is not None
            and self._ready
            and self._remote_linked
        )

    def save(self, state: LedgerState) -> None:
        """
        Make `state` current: write it locally now, push it remotely later.

        Inside an event loop the push is scheduled as a task. Called from
        plain synchronous code (no running loop) the push runs to completion
        before save() returns.
        """
        self._state = state
        self._write_local(state)

        if not self._can_push():
            return

        self._revision += 1
        revision, identity = self._revision, self._identity
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._push(revision, identity, state))
            return

        task = loop.create_task(self._push(revision, identity, state))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _loop_push_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._push_lock is None or self._push_lock_loop is not loop:
            self._push_lock = asyncio.Lock()
            self._push_lock_loop = loop
        return self._push_lock

    async def _push(self, revision: int, identity: Identity, state: LedgerState) -> None:
        async with self._loop_push_lock():
            if revision < self._revision or revision <= self._pushed_revision:
                logger.debug("remote_push_superseded", revision=revision, latest=self._revision)
                return
            if self._identity is None or self._identity.id != identity.id:
                logger.debug("remote_push_dropped_after_logout", revision=revision)
                return

            self._status = SyncStatus.SYNCING
            try:
                await self._remote.upsert(identity.id, state, utc_now())
            except Exception as e:
                self._status = SyncStatus.DEGRADED
                self._log(AuditEventType.REMOTE_PUSH_FAILED, "Remote push failed", str(e), revision=revision)
                return

            self._pushed_revision = revision
            self._status = SyncStatus.SYNCED

    async def flush(self) -> None:
        """Wait for queued pushes, then push the latest state if it never went out."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

        if self._can_push() and self._revision > self._pushed_revision:
            await self._push(self._revision, self._identity, self.state)

    def logout(self) -> LedgerState:
        """
        Forget the identity and reload from the local store.

        A push already talking to the remote is left to finish; queued ones
        are dropped. The remote record is not touched.
        """
        self._identity = None
        self._remote_linked = False
        self._state = None
        self._status = SyncStatus.OFFLINE
        self._ready = True
        return self.load()
