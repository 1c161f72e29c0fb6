"""Ledger engine package: allocation, goal/custom-account management, ids."""

from goldengoose.ledger.allocation import AllocationEngine
from goldengoose.ledger.exceptions import (
    CustomAccountNotFoundError,
    GoalNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    LedgerError,
    LedgerUnavailableError,
    MissingGoalError,
    PolicyViolationError,
    PrincipalWithdrawalNotConfirmedError,
    RecoveryAnswerMismatchError,
    SplitMismatchError,
)
from goldengoose.ledger.ids import MonotonicIdGenerator, default_id_generator
from goldengoose.ledger.manager import AssetManager
from goldengoose.ledger.seed import (
    FALLBACK_GOAL_TARGET,
    FALLBACK_GOAL_TITLE,
    default_ledger_state,
)

__all__ = [
    "AllocationEngine",
    "AssetManager",
    "MonotonicIdGenerator",
    "default_id_generator",
    "default_ledger_state",
    "FALLBACK_GOAL_TARGET",
    "FALLBACK_GOAL_TITLE",
    # Exceptions
    "CustomAccountNotFoundError",
    "GoalNotFoundError",
    "InsufficientFundsError",
    "InvalidAmountError",
    "LedgerError",
    "LedgerUnavailableError",
    "MissingGoalError",
    "PolicyViolationError",
    "PrincipalWithdrawalNotConfirmedError",
    "RecoveryAnswerMismatchError",
    "SplitMismatchError",
]
