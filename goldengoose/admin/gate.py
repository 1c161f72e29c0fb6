"""
Settings & Authorization Gate

Guards the operations that change global ledger behaviour or rewrite
balances outside the transaction history:
- default allocation ratios
- assumed annual interest rate
- forced balance correction

STATES:
    UNINITIALIZED --setup(secret, secret)--> UNLOCKED
    LOCKED --unlock(secret)--> UNLOCKED
    UNLOCKED --lock()--> LOCKED

Unlocked lasts for the lifetime of the gate object only; it is never
persisted. A wrong secret does not lock anyone out, the caller simply asks
again.

CRITICAL: force_correct_balances bypasses transaction recording. After a
correction, balances can no longer be rebuilt from the history. Every
correction is audited with before/after values for that reason.
"""

import re
from enum import Enum
from typing import Optional

import structlog

from goldengoose.admin.credentials import (
    AdminCredential,
    CredentialStoreInterface,
    SecretHasher,
    get_hasher,
)
from goldengoose.audit import AuditLogger
from goldengoose.config import get_settings
from goldengoose.models.audit import AuditEventType
from goldengoose.models.ledger import AllocationRatios, LedgerState
from goldengoose.validation import LedgerPolicyValidator


logger = structlog.get_logger(__name__)


class GateState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class AuthorizationError(Exception):
    """A gated operation was called while the gate is not unlocked."""
    pass


class SecretSetupError(Exception):
    """
    First-time setup was rejected.

    reason is one of: invalid_format, mismatch, already_initialized.
    """

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class SettingsGate:
    """Admin secret state machine plus the operations it protects."""

    def __init__(
        self,
        credential_store: CredentialStoreInterface,
        hasher: Optional[SecretHasher] = None,
        secret_pattern: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[LedgerPolicyValidator] = None,
    ):
        if secret_pattern is None:
            secret_pattern = get_settings().policy.admin_secret_pattern
        self._credentials = credential_store
        self._hasher = hasher or get_hasher()
        self._secret_pattern = re.compile(secret_pattern)
        self._audit_logger = audit_logger
        self._validator = validator or LedgerPolicyValidator()
        self._unlocked = False

    @property
    def state(self) -> GateState:
        if self._credentials.load() is None:
            return GateState.UNINITIALIZED
        return GateState.UNLOCKED if self._unlocked else GateState.LOCKED

    @property
    def is_unlocked(self) -> bool:
        return self.state == GateState.UNLOCKED

    def _audit(self, event_type: AuditEventType, description: str, details: Optional[dict] = None):
        if self._audit_logger:
            self._audit_logger.log_admin(event_type, description, details)

    def _reject_setup(self, reason: str, message: str) -> SecretSetupError:
        self._audit(
            AuditEventType.ADMIN_SETUP_REJECTED,
            message,
            {"reason": reason},
        )
        return SecretSetupError(reason, message)

    def _store_secret(self, secret: str, hasher: SecretHasher) -> None:
        self._credentials.save(AdminCredential(
            secret_hash=hasher.hash(secret),
            scheme=hasher.scheme,
        ))

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def setup(self, state: LedgerState, secret: str, confirmation: str) -> LedgerState:
        """
        Set the admin secret for the first time and unlock.

        The secret must match the configured format and be entered twice
        identically. Returns the state with admin_initialized set.

        Raises:
            SecretSetupError: setup rejected; the gate state is unchanged
        """
        if self._credentials.load() is not None:
            raise self._reject_setup("already_initialized", "An admin secret is already set")
        if not self._secret_pattern.fullmatch(secret):
            raise self._reject_setup("invalid_format", "Admin secret does not match the required format")
        if secret != confirmation:
            raise self._reject_setup("mismatch", "The two entries do not match")

        self._store_secret(secret, self._hasher)
        self._unlocked = True
        self._audit(AuditEventType.ADMIN_SETUP_COMPLETED, "Admin secret set", {"scheme": self._hasher.scheme})

        return state.with_settings(state.settings.model_copy(update={
            "admin_secret": "",
            "admin_initialized": True,
        }))

    def unlock(self, secret: str) -> bool:
        """Verify the secret; True and UNLOCKED on a match, False otherwise."""
        credential = self._credentials.load()
        if credential is None:
            return False

        hasher = get_hasher(credential.scheme)
        if hasher.verify(secret, credential.secret_hash):
            self._unlocked = True
            self._audit(AuditEventType.ADMIN_UNLOCKED, "Admin gate unlocked")
            return True

        self._audit(AuditEventType.ADMIN_VERIFICATION_FAILED, "Wrong admin secret entered")
        return False

    def lock(self) -> None:
        self._unlocked = False

    def migrate_legacy_secret(self, state: LedgerState) -> LedgerState:
        """
        Move a secret found inside the ledger document into the credential store.

        Older documents kept the admin secret in plaintext next to the
        balances. The secret is stored with the configured hasher and blanked
        in the returned state. If the credential store already holds a
        secret, the document copy is just dropped.
        """
        legacy = state.settings.admin_secret
        if not legacy:
            return state

        if self._credentials.load() is None:
            self._store_secret(legacy, self._hasher)
            logger.info("legacy_admin_secret_migrated", scheme=self._hasher.scheme)

        return state.with_settings(state.settings.model_copy(update={
            "admin_secret": "",
            "admin_initialized": True,
        }))

    # -------------------------------------------------------------------------
    # Gated operations
    # -------------------------------------------------------------------------

    def _require_unlocked(self, operation: str) -> None:
        if not self.is_unlocked:
            raise AuthorizationError(f"Unlock the admin gate before: {operation}")

    def update_allocation(self, state: LedgerState, ratios: AllocationRatios) -> LedgerState:
        """Replace the default allocation. Ratios not summing to 1 are kept, with a warning."""
        self._require_unlocked("update_allocation")

        result = self._validator.check_allocation(ratios)
        for warning in result.warnings:
            logger.warning("allocation_ratio_warning", message=warning)

        self._audit(
            AuditEventType.SETTINGS_UPDATED,
            "Default allocation changed",
            {
                "before": state.settings.default_allocation.model_dump(),
                "after": ratios.model_dump(),
            },
        )
        return state.with_settings(
            state.settings.model_copy(update={"default_allocation": ratios})
        )

    def update_interest_rate(self, state: LedgerState, rate: float) -> LedgerState:
        self._require_unlocked("update_interest_rate")
        if rate < 0:
            raise ValueError("Interest rate cannot be negative")

        self._audit(
            AuditEventType.SETTINGS_UPDATED,
            "Assumed annual interest rate changed",
            {"before": state.settings.assumed_annual_interest_rate, "after": rate},
        )
        return state.with_settings(
            state.settings.model_copy(update={"assumed_annual_interest_rate": rate})
        )

    def force_correct_balances(
        self,
        state: LedgerState,
        reserve: Optional[float] = None,
        spending: Optional[float] = None,
        goal_total: Optional[float] = None,
    ) -> LedgerState:
        """
        Overwrite balances of the active account without recording a transaction.

        goal_total is the requested aggregate over all goals. The difference
        from the current aggregate is applied to the first goal only; other
        goals keep their amounts. With no goal there is nothing to absorb the
        difference and the goal part is skipped.
        """
        self._require_unlocked("force_correct_balances")

        account = state.active_account
        assets = account.assets
        before = {
            "reserve": assets.reserve_balance,
            "spending": assets.spending_balance,
            "goal_total": assets.goal_total,
        }

        update: dict = {}
        if reserve is not None:
            update["reserve_balance"] = reserve
        if spending is not None:
            update["spending_balance"] = spending
        if goal_total is not None:
            if assets.goals:
                first = assets.goals[0]
                delta = goal_total - assets.goal_total
                update["goals"] = (
                    first.model_copy(update={"current_amount": first.current_amount + delta}),
                ) + assets.goals[1:]
            else:
                logger.warning(
                    "goal_correction_skipped",
                    account_id=account.id,
                    requested_goal_total=goal_total,
                )

        new_assets = assets.model_copy(update=update)
        self._audit(
            AuditEventType.BALANCES_FORCE_CORRECTED,
            "Balances overwritten outside the transaction history",
            {
                "account_id": account.id,
                "before": before,
                "after": {
                    "reserve": new_assets.reserve_balance,
                    "spending": new_assets.spending_balance,
                    "goal_total": new_assets.goal_total,
                },
            },
        )
        return state.with_account(account.model_copy(update={"assets": new_assets}))
