"""Ledger domain exceptions."""

from typing import Optional

from goldengoose.models.policy import PolicyIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class InvalidAmountError(LedgerError):
    """Amounts moved through the ledger must be positive."""
    pass


class PolicyViolationError(LedgerError):
    """
    An operation broke the ledger policy while enforcement is on.
    
    Carries every issue found, not just the first.
    """
    
    def __init__(self, message: str, issues: Optional[list[PolicyIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class SplitMismatchError(PolicyViolationError):
    """Deposit split does not add up to the deposit amount."""
    pass


class InsufficientFundsError(PolicyViolationError):
    """Withdrawal is larger than the source bucket balance."""
    pass


class PrincipalWithdrawalNotConfirmedError(PolicyViolationError):
    """Withdrawing from the reserve needs an explicit confirmation."""
    pass


class MissingGoalError(PolicyViolationError):
    """Goal withdrawal requested but the account has no goal."""
    pass


class GoalNotFoundError(LedgerError):
    """No goal with the given id."""
    pass


class CustomAccountNotFoundError(LedgerError):
    """No custom account with the given id."""
    pass


class RecoveryAnswerMismatchError(LedgerError):
    """Recovery answer did not match (or no recovery pair is set)."""
    pass


class LedgerUnavailableError(LedgerError):
    """The ledger is still being reconciled and cannot be mutated yet."""
    pass
