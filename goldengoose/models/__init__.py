"""
Data Models Package

This package contains all Pydantic models used in the Golden Goose Ledger.
Everything stored locally or remotely must conform to these schemas.
"""

from goldengoose.models.ledger import (
    Account,
    AllocationRatios,
    Assets,
    BucketName,
    CustomAccount,
    CustomAccountDraft,
    CustomAccountType,
    Goal,
    LedgerSettings,
    LedgerState,
    Split,
    Transaction,
    TransactionCategory,
    TransactionKind,
)
from goldengoose.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from goldengoose.models.policy import PolicyCheckResult, PolicyIssue

__all__ = [
    # Ledger models
    "Account",
    "AllocationRatios",
    "Assets",
    "BucketName",
    "CustomAccount",
    "CustomAccountDraft",
    "CustomAccountType",
    "Goal",
    "LedgerSettings",
    "LedgerState",
    "Split",
    "Transaction",
    "TransactionCategory",
    "TransactionKind",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Policy models
    "PolicyCheckResult",
    "PolicyIssue",
]
