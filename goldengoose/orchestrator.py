"""
Main Orchestrator for Golden Goose Ledger

This module ties the components together behind one object, LedgerService,
which is the single logical owner of the LedgerState:

1. Money movement (deposit/withdraw -> AllocationEngine)
2. Goals, custom accounts, account details (-> AssetManager)
3. Admin-gated settings and forced corrections (-> SettingsGate)
4. Persistence and sync (-> PersistenceBridge, SessionCoordinator)

DESIGN DECISION: every mutation is a synchronous copy-on-write step:
take the current state, let a component build the next one, hand it to the
bridge. The bridge writes it locally before the call returns and pushes it
remotely (in the background inside an event loop, inline otherwise).
While the bridge is reconciling a new session the ledger refuses
mutations, so a fresh local default can never race a remote fetch that is
still in flight.
"""

from typing import Optional, Union

import structlog

from goldengoose.admin import (
    AuthorizationError,
    GateState,
    LocalCredentialStore,
    SecretSetupError,
    SettingsGate,
)
from goldengoose.audit import AuditLogger, configure_logging
from goldengoose.config import get_settings
from goldengoose.ledger import AllocationEngine, AssetManager, LedgerUnavailableError
from goldengoose.models.ledger import (
    Account,
    AllocationRatios,
    BucketName,
    CustomAccount,
    CustomAccountDraft,
    Goal,
    LedgerState,
    Split,
    TransactionCategory,
)
from goldengoose.services.identity import AuthResult, Identity, IdentityProviderInterface
from goldengoose.services.storage import (
    FileLocalStore,
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
    RemoteStoreInterface,
    StorageError,
)
from goldengoose.sync import PersistenceBridge, SessionCoordinator, SyncStatus


logger = structlog.get_logger(__name__)


class LedgerService:
    """
    Entry point for everything that reads or changes the ledger.

    All account-level operations apply to the active account.
    """

    def __init__(
        self,
        bridge: PersistenceBridge,
        gate: SettingsGate,
        sessions: Optional[SessionCoordinator] = None,
        engine: Optional[AllocationEngine] = None,
        manager: Optional[AssetManager] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._bridge = bridge
        self._gate = gate
        self._sessions = sessions or SessionCoordinator(audit_logger=audit_logger)
        self._engine = engine or AllocationEngine(audit_logger=audit_logger)
        self._manager = manager or AssetManager(audit_logger=audit_logger)
        self._audit_logger = audit_logger

        self._sessions.on_session_established(self._on_session_established)
        self._sessions.on_session_cleared(self._on_session_cleared)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> LedgerState:
        """Load the local ledger, then reconcile if a session already exists."""
        self._adopt(self._bridge.load())
        await self._sessions.start()
        return self.state

    async def _on_session_established(self, identity: Identity) -> None:
        self._adopt(await self._bridge.reconcile(identity))

    async def _on_session_cleared(self) -> None:
        self._gate.lock()
        self._adopt(self._bridge.logout())

    def _adopt(self, state: LedgerState) -> None:
        """Move any admin secret found in a freshly loaded document out of it."""
        try:
            migrated = self._gate.migrate_legacy_secret(state)
        except StorageError as e:
            # Document left as is; the gate stays closed until the record is repaired
            self._log_unreadable_credential(e)
            return
        if migrated is not state:
            self._bridge.save(migrated)

    async def flush(self) -> None:
        """Wait until queued remote pushes have finished."""
        await self._bridge.flush()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        return self._bridge.state

    @property
    def account(self) -> Account:
        return self.state.active_account

    @property
    def sync_status(self) -> SyncStatus:
        return self._bridge.status

    @property
    def is_ready(self) -> bool:
        return self._bridge.is_ready

    @property
    def identity(self) -> Optional[Identity]:
        return self._sessions.current_identity

    @property
    def gate_state(self) -> GateState:
        """Gate state; an unreadable credential record reads as LOCKED."""
        try:
            return self._gate.state
        except StorageError as e:
            self._log_unreadable_credential(e)
            return GateState.LOCKED

    def suggested_split(self, amount: float) -> Split:
        """Split of `amount` under the default allocation, rounded to cents."""
        return self.state.settings.default_allocation.split(amount)

    # -------------------------------------------------------------------------
    # Commit helpers
    # -------------------------------------------------------------------------

    def _require_ready(self) -> None:
        if not self._bridge.is_ready:
            raise LedgerUnavailableError("Ledger is still syncing; try again in a moment")

    def _commit_account(self, account: Account) -> Account:
        self._bridge.save(self.state.with_account(account))
        return account

    def _commit_state(self, state: LedgerState) -> LedgerState:
        self._bridge.save(state)
        return state

    # -------------------------------------------------------------------------
    # Money movement
    # -------------------------------------------------------------------------

    def deposit(
        self,
        amount: float,
        note: str = "",
        split: Optional[Split] = None,
    ) -> Account:
        """Deposit into the active account; no split means the default allocation."""
        self._require_ready()
        if split is None and amount > 0:
            split = self.suggested_split(amount)
        return self._commit_account(self._engine.apply_deposit(
            self.account, amount, note=note, split=split,
        ))

    def withdraw(
        self,
        amount: float,
        source_bucket: BucketName = BucketName.SPENDING,
        note: str = "",
        category: TransactionCategory = TransactionCategory.OTHER,
        confirm_principal: bool = False,
    ) -> Account:
        self._require_ready()
        return self._commit_account(self._engine.apply_withdrawal(
            self.account,
            amount,
            note=note,
            category=category,
            source_bucket=source_bucket,
            confirm_principal=confirm_principal,
        ))

    # -------------------------------------------------------------------------
    # Goals and custom accounts
    # -------------------------------------------------------------------------

    def add_goal(self, title: str, target_amount: float, image_ref: Optional[str] = None) -> Account:
        self._require_ready()
        return self._commit_account(
            self._manager.add_goal(self.account, title, target_amount, image_ref=image_ref)
        )

    def update_goal(self, goal: Goal) -> Account:
        self._require_ready()
        return self._commit_account(self._manager.update_goal(self.account, goal))

    def delete_goal(self, goal_id: int) -> Account:
        self._require_ready()
        return self._commit_account(self._manager.delete_goal(self.account, goal_id))

    def save_custom_account(self, draft: Union[CustomAccountDraft, CustomAccount]) -> Account:
        self._require_ready()
        return self._commit_account(self._manager.save_custom_account(self.account, draft))

    def set_custom_account_balance(self, custom_account_id: int, balance: float) -> Account:
        self._require_ready()
        return self._commit_account(
            self._manager.set_custom_account_balance(self.account, custom_account_id, balance)
        )

    def delete_custom_account(self, custom_account_id: int) -> Account:
        self._require_ready()
        return self._commit_account(
            self._manager.delete_custom_account(self.account, custom_account_id)
        )

    def rename_account(self, name: str) -> Account:
        self._require_ready()
        return self._commit_account(self._manager.rename_account(self.account, name))

    def set_recovery(self, question: str, answer: str) -> Account:
        self._require_ready()
        return self._commit_account(self._manager.set_recovery(self.account, question, answer))

    def reset_credential(self, answer: str, new_credential: str) -> Account:
        self._require_ready()
        return self._commit_account(
            self._manager.reset_credential(self.account, answer, new_credential)
        )

    # -------------------------------------------------------------------------
    # Admin gate
    # -------------------------------------------------------------------------
    #
    # An unreadable credential record keeps the gate closed: it reads as
    # LOCKED, unlock fails, and gated operations raise AuthorizationError.

    def _log_unreadable_credential(self, error: StorageError) -> None:
        logger.error("admin_credential_unreadable", error=str(error))

    def _gate_closed(self, error: StorageError) -> AuthorizationError:
        self._log_unreadable_credential(error)
        return AuthorizationError("Admin credential record is unreadable; the gate stays locked")

    def setup_admin(self, secret: str, confirmation: str) -> LedgerState:
        self._require_ready()
        try:
            state = self._gate.setup(self.state, secret, confirmation)
        except StorageError as e:
            self._log_unreadable_credential(e)
            raise SecretSetupError("already_initialized", "An admin credential record already exists")
        return self._commit_state(state)

    def unlock_admin(self, secret: str) -> bool:
        try:
            return self._gate.unlock(secret)
        except StorageError as e:
            self._log_unreadable_credential(e)
            return False

    def lock_admin(self) -> None:
        self._gate.lock()

    def update_allocation(self, ratios: AllocationRatios) -> LedgerState:
        self._require_ready()
        try:
            state = self._gate.update_allocation(self.state, ratios)
        except StorageError as e:
            raise self._gate_closed(e)
        return self._commit_state(state)

    def update_interest_rate(self, rate: float) -> LedgerState:
        self._require_ready()
        try:
            state = self._gate.update_interest_rate(self.state, rate)
        except StorageError as e:
            raise self._gate_closed(e)
        return self._commit_state(state)

    def force_correct_balances(
        self,
        reserve: Optional[float] = None,
        spending: Optional[float] = None,
        goal_total: Optional[float] = None,
    ) -> LedgerState:
        self._require_ready()
        try:
            state = self._gate.force_correct_balances(
                self.state, reserve=reserve, spending=spending, goal_total=goal_total,
            )
        except StorageError as e:
            raise self._gate_closed(e)
        return self._commit_state(state)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthResult:
        return await self._sessions.sign_in(email, password)

    async def sign_up(self, email: str, password: str) -> AuthResult:
        return await self._sessions.sign_up(email, password)

    async def sign_out(self) -> None:
        await self._sessions.sign_out()


def create_app_components(
    use_remote: bool = True,
    identity_provider: Optional[IdentityProviderInterface] = None,
) -> tuple[LedgerService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_remote: Whether to sync through Google Sheets.
                    Set to False to run on the local store only.
        identity_provider: Provider for sign-in; without one the app
                    never establishes a session and stays offline.

    Returns:
        (ledger_service, sheets_client)
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)
    audit_logger = AuditLogger()

    local_settings = settings.local_store
    local_store = FileLocalStore(local_settings.data_path)

    sheets_client = None
    remote_store: Optional[RemoteStoreInterface] = None
    if use_remote:
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            remote_store = GoogleSheetsRemoteStore(sheets_client)
        except Exception as e:
            # Remote not configured - continue offline
            logger.warning("remote_store_not_configured", error=str(e))
            sheets_client = None
            remote_store = None

    bridge = PersistenceBridge(
        local_store,
        remote_store=remote_store,
        state_key=local_settings.state_key,
        audit_logger=audit_logger,
    )
    gate = SettingsGate(
        LocalCredentialStore(local_store, key=local_settings.credential_key),
        audit_logger=audit_logger,
    )
    sessions = SessionCoordinator(identity_provider, audit_logger=audit_logger)

    service = LedgerService(
        bridge,
        gate,
        sessions=sessions,
        audit_logger=audit_logger,
    )
    return service, sheets_client
