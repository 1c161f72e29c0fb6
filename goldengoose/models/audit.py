"""
Audit Models for Golden Goose Ledger

Every significant ledger action is turned into an AuditEvent and written
to the structured log. This provides:
1. Traceability of balance changes, including ones that bypass the
   transaction history (forced corrections)
2. Debugging information when remote sync misbehaves
3. A record of admin gate activity

DESIGN DECISION: Audit events are log records, not ledger data. They are
never stored in the ledger document and never read back by the core.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Money movement
    DEPOSIT_APPLIED = "deposit_applied"
    WITHDRAWAL_APPLIED = "withdrawal_applied"
    FALLBACK_GOAL_CREATED = "fallback_goal_created"
    POLICY_VIOLATION = "policy_violation"

    # Goals and custom accounts
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    CUSTOM_ACCOUNT_SAVED = "custom_account_saved"
    CUSTOM_ACCOUNT_DELETED = "custom_account_deleted"
    CREDENTIAL_RESET = "credential_reset"

    # Admin gate
    ADMIN_SETUP_COMPLETED = "admin_setup_completed"
    ADMIN_SETUP_REJECTED = "admin_setup_rejected"
    ADMIN_UNLOCKED = "admin_unlocked"
    ADMIN_VERIFICATION_FAILED = "admin_verification_failed"
    SETTINGS_UPDATED = "settings_updated"
    BALANCES_FORCE_CORRECTED = "balances_force_corrected"

    # Persistence
    LOCAL_LOAD_FALLBACK = "local_load_fallback"
    LOCAL_SAVE_FAILED = "local_save_failed"
    STATE_RECONCILED = "state_reconciled"
    REMOTE_SEEDED = "remote_seeded"
    REMOTE_FETCH_FAILED = "remote_fetch_failed"
    REMOTE_PUSH_FAILED = "remote_push_failed"

    # Session
    SESSION_ESTABLISHED = "session_established"
    SESSION_CLEARED = "session_cleared"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'goal', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.deposit_applied(account_id, tx_id, 100.0, split)
        event = AuditEventBuilder.sync_event(AuditEventType.REMOTE_PUSH_FAILED, "Push failed")
    """

    @staticmethod
    def deposit_applied(
        account_id: int,
        transaction_id: str,
        amount: float,
        distribution: dict,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEPOSIT_APPLIED,
            entity_type="account",
            entity_id=str(account_id),
            description=f"Deposit of {amount:.2f} applied",
            details={
                "transaction_id": transaction_id,
                "amount": amount,
                "distribution": distribution,
            },
        )

    @staticmethod
    def withdrawal_applied(
        account_id: int,
        transaction_id: str,
        amount: float,
        source_bucket: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WITHDRAWAL_APPLIED,
            entity_type="account",
            entity_id=str(account_id),
            description=f"Withdrawal of {amount:.2f} from {source_bucket}",
            details={
                "transaction_id": transaction_id,
                "amount": amount,
                "source_bucket": source_bucket,
            },
        )

    @staticmethod
    def fallback_goal_created(
        account_id: int,
        goal_id: int,
        amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FALLBACK_GOAL_CREATED,
            severity=AuditSeverity.WARNING,
            entity_type="goal",
            entity_id=str(goal_id),
            description="No goal existed; created a fallback goal for the deposit",
            details={
                "account_id": account_id,
                "seeded_amount": amount,
            },
        )

    @staticmethod
    def policy_violation(
        operation: str,
        issues: list[dict],
        enforced: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.POLICY_VIOLATION,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description=(
                f"{operation} {'rejected' if enforced else 'allowed'} "
                f"with {len(issues)} policy issues"
            ),
            details={
                "operation": operation,
                "issues": issues,
                "enforced": enforced,
            },
        )

    @staticmethod
    def goal_changed(
        event_type: AuditEventType,
        goal_id: int,
        title: str,
        discarded_amount: Optional[float] = None,
    ) -> AuditEvent:
        details: dict[str, Any] = {"title": title}
        severity = AuditSeverity.INFO
        if discarded_amount:
            # Deleting a goal forfeits its saved amount
            details["discarded_amount"] = discarded_amount
            severity = AuditSeverity.WARNING
        return AuditEvent(
            event_type=event_type,
            severity=severity,
            entity_type="goal",
            entity_id=str(goal_id),
            description=f"Goal {event_type.value.split('_')[-1]}: {title}",
            details=details,
        )

    @staticmethod
    def custom_account_changed(
        event_type: AuditEventType,
        custom_account_id: int,
        name: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="custom_account",
            entity_id=str(custom_account_id),
            description=f"Custom account {event_type.value.split('_')[-1]}: {name or custom_account_id}",
        )

    @staticmethod
    def credential_reset(account_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDENTIAL_RESET,
            entity_type="account",
            entity_id=str(account_id),
            description="Account credential reset through recovery question",
        )

    @staticmethod
    def admin_event(
        event_type: AuditEventType,
        description: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        severity = AuditSeverity.INFO
        if event_type in (
            AuditEventType.ADMIN_SETUP_REJECTED,
            AuditEventType.ADMIN_VERIFICATION_FAILED,
            AuditEventType.BALANCES_FORCE_CORRECTED,
        ):
            severity = AuditSeverity.WARNING
        return AuditEvent(
            event_type=event_type,
            severity=severity,
            entity_type="settings",
            description=description,
            details=details or {},
        )

    @staticmethod
    def sync_event(
        event_type: AuditEventType,
        description: str,
        identity_id: Optional[str] = None,
        error_message: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        severity = AuditSeverity.INFO
        if error_message:
            severity = AuditSeverity.ERROR
        elif event_type == AuditEventType.LOCAL_LOAD_FALLBACK:
            severity = AuditSeverity.WARNING
        return AuditEvent(
            event_type=event_type,
            severity=severity,
            entity_type="identity" if identity_id else "ledger",
            entity_id=identity_id,
            description=description,
            error_message=error_message,
            details=details or {},
        )
