"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged.
This provides:
1. Traceability of balance changes, including forced corrections that
   leave no transaction behind
2. Debugging capability for local/remote sync
3. A record of admin gate activity

The audit logger:
- Writes structured JSON lines through structlog
- Never raises into the caller (logging must not break a mutation)
"""

import logging
from typing import Callable, Optional

import structlog

from goldengoose.models.audit import AuditEvent, AuditEventType, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=level.upper())


class AuditLogger:
    """
    Central audit logging service.
    
    Turns ledger events into AuditEvents and writes them to the
    structured log at the event's severity.
    """
    
    def __init__(self, logger_name: str = "goldengoose.audit"):
        self._logger = structlog.get_logger(logger_name)
    
    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Returns False if the log write itself failed.
        """
        try:
            log_dict = event.to_log_dict()
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        
        return True
    
    def _log_built(self, build: Callable[..., AuditEvent], **kwargs) -> bool:
        """Build an event and log it; a malformed event is dropped, not raised."""
        try:
            event = build(**kwargs)
        except Exception:
            return False
        return self.log(event)
    
    def log_deposit(
        self,
        account_id: int,
        transaction_id: str,
        amount: float,
        distribution: dict,
    ) -> None:
        """Log an applied deposit."""
        self._log_built(
            AuditEventBuilder.deposit_applied,
            account_id=account_id,
            transaction_id=transaction_id,
            amount=amount,
            distribution=distribution,
        )
    
    def log_withdrawal(
        self,
        account_id: int,
        transaction_id: str,
        amount: float,
        source_bucket: str,
    ) -> None:
        """Log an applied withdrawal."""
        self._log_built(
            AuditEventBuilder.withdrawal_applied,
            account_id=account_id,
            transaction_id=transaction_id,
            amount=amount,
            source_bucket=source_bucket,
        )
    
    def log_fallback_goal(self, account_id: int, goal_id: int, amount: float) -> None:
        self._log_built(
            AuditEventBuilder.fallback_goal_created,
            account_id=account_id,
            goal_id=goal_id,
            amount=amount,
        )
    
    def log_policy_violation(
        self,
        operation: str,
        issues: list[dict],
        enforced: bool,
    ) -> None:
        self._log_built(
            AuditEventBuilder.policy_violation,
            operation=operation,
            issues=issues,
            enforced=enforced,
        )
    
    def log_goal(
        self,
        event_type: AuditEventType,
        goal_id: int,
        title: str,
        discarded_amount: Optional[float] = None,
    ) -> None:
        self._log_built(
            AuditEventBuilder.goal_changed,
            event_type=event_type,
            goal_id=goal_id,
            title=title,
            discarded_amount=discarded_amount,
        )
    
    def log_custom_account(
        self,
        event_type: AuditEventType,
        custom_account_id: int,
        name: Optional[str] = None,
    ) -> None:
        self._log_built(
            AuditEventBuilder.custom_account_changed,
            event_type=event_type,
            custom_account_id=custom_account_id,
            name=name,
        )
    
    def log_credential_reset(self, account_id: int) -> None:
        self._log_built(AuditEventBuilder.credential_reset, account_id=account_id)
    
    def log_admin(
        self,
        event_type: AuditEventType,
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        self._log_built(
            AuditEventBuilder.admin_event,
            event_type=event_type,
            description=description,
            details=details,
        )
    
    def log_sync(
        self,
        event_type: AuditEventType,
        description: str,
        identity_id: Optional[str] = None,
        error_message: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        self._log_built(
            AuditEventBuilder.sync_event,
            event_type=event_type,
            description=description,
            identity_id=identity_id,
            error_message=error_message,
            details=details,
        )
