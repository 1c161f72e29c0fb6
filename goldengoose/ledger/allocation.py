"""
Allocation Engine

Applies deposits and withdrawals to an Account and returns the new Account.

DEPOSIT:
- split.goal goes to the FIRST goal; when there is no goal a fallback goal
  is created and seeded with it, so the money cannot silently vanish
- split.reserve and split.spending are added to their buckets
- a deposit transaction carrying the split is inserted at index 0

WITHDRAWAL:
- amount is taken from the named bucket (first goal for GOAL)
- a withdrawal transaction carrying the source bucket is inserted at index 0

Policy (split sum, sufficient funds, principal confirmation) is checked by
LedgerPolicyValidator. With enforcement on, error-level issues raise typed
PolicyViolationErrors and nothing changes. With enforcement off, they are
logged and the operation goes through unchanged: balances are never
clamped, and a goal withdrawal with no goal records the transaction
without touching any balance.
"""

from datetime import datetime
from typing import Optional

import structlog

from goldengoose.audit import AuditLogger
from goldengoose.config import get_settings
from goldengoose.ledger.exceptions import (
    InsufficientFundsError,
    InvalidAmountError,
    MissingGoalError,
    PolicyViolationError,
    PrincipalWithdrawalNotConfirmedError,
    SplitMismatchError,
)
from goldengoose.ledger.ids import MonotonicIdGenerator, default_id_generator
from goldengoose.ledger.seed import FALLBACK_GOAL_TARGET, FALLBACK_GOAL_TITLE
from goldengoose.models.ledger import (
    Account,
    Assets,
    BucketName,
    Goal,
    Split,
    Transaction,
    TransactionCategory,
    TransactionKind,
    utc_now,
)
from goldengoose.models.policy import PolicyCheckResult
from goldengoose.validation import LedgerPolicyValidator


logger = structlog.get_logger(__name__)


_VIOLATION_ERRORS: dict[str, type[PolicyViolationError]] = {
    "split_mismatch": SplitMismatchError,
    "insufficient_funds": InsufficientFundsError,
    "principal_not_confirmed": PrincipalWithdrawalNotConfirmedError,
    "missing_goal": MissingGoalError,
}


class AllocationEngine:
    """
    Moves money between the outside world and an account's buckets.

    Stateless apart from its collaborators; every call returns a new
    Account and leaves the given one untouched.
    """

    def __init__(
        self,
        validator: Optional[LedgerPolicyValidator] = None,
        id_generator: Optional[MonotonicIdGenerator] = None,
        audit_logger: Optional[AuditLogger] = None,
        enforce_policy: Optional[bool] = None,
    ):
        if enforce_policy is None:
            enforce_policy = get_settings().policy.enforce_policy
        self._validator = validator or LedgerPolicyValidator()
        self._ids = id_generator or default_id_generator()
        self._audit_logger = audit_logger
        self._enforce_policy = enforce_policy

    @property
    def enforce_policy(self) -> bool:
        return self._enforce_policy

    def _next_transaction_id(self, account: Account) -> str:
        floor = 0
        if account.transactions:
            try:
                floor = int(account.transactions[0].id)
            except ValueError:
                floor = 0
        return str(self._ids.next_id(floor=floor))

    def _apply_policy(self, result: PolicyCheckResult) -> None:
        """Raise on error-level issues when enforcing, otherwise just log."""
        if not result.issues:
            return

        if self._audit_logger:
            self._audit_logger.log_policy_violation(
                operation=result.operation,
                issues=[issue.model_dump() for issue in result.issues],
                enforced=self._enforce_policy and result.has_errors,
            )

        first_error = result.first_error()
        if first_error is None or not self._enforce_policy:
            return

        error_cls = _VIOLATION_ERRORS.get(first_error.issue_type, PolicyViolationError)
        raise error_cls(first_error.message, issues=result.issues)

    def apply_deposit(
        self,
        account: Account,
        amount: float,
        note: str = "",
        category: TransactionCategory = TransactionCategory.INCOME,
        split: Optional[Split] = None,
        timestamp: Optional[datetime] = None,
    ) -> Account:
        """
        Split a deposit across the buckets.

        Args:
            account: Account to deposit into
            amount: Deposit amount, must be positive
            note: Free-text note recorded on the transaction
            category: Must be INCOME; anything else is a policy issue
            split: Per-bucket amounts; defaults to all money into spending
            timestamp: Transaction time, defaults to now

        Returns:
            The updated Account

        Raises:
            InvalidAmountError: If amount is not positive
            SplitMismatchError: If enforcing and split total != amount
            PolicyViolationError: If enforcing and category is not INCOME
        """
        if amount <= 0:
            raise InvalidAmountError(f"Deposit amount must be positive, got {amount}")

        split = split or Split(spending=amount)
        self._apply_policy(self._validator.check_deposit(amount, split, category))

        assets = account.assets
        goals = assets.goals

        if split.goal > 0:
            if goals:
                first = goals[0]
                goals = (
                    first.model_copy(update={"current_amount": first.current_amount + split.goal}),
                ) + goals[1:]
            else:
                fallback = Goal(
                    id=self._ids.next_id(),
                    title=FALLBACK_GOAL_TITLE,
                    target_amount=FALLBACK_GOAL_TARGET,
                    current_amount=split.goal,
                )
                goals = (fallback,)
                if self._audit_logger:
                    self._audit_logger.log_fallback_goal(account.id, fallback.id, split.goal)

        new_assets = assets.model_copy(update={
            "reserve_balance": assets.reserve_balance + split.reserve,
            "spending_balance": assets.spending_balance + split.spending,
            "goals": goals,
        })

        transaction = Transaction(
            id=self._next_transaction_id(account),
            timestamp=timestamp or utc_now(),
            kind=TransactionKind.DEPOSIT,
            amount=amount,
            note=note,
            category=TransactionCategory.INCOME,
            distribution=split,
        )

        if self._audit_logger:
            self._audit_logger.log_deposit(
                account_id=account.id,
                transaction_id=transaction.id,
                amount=amount,
                distribution=split.model_dump(),
            )

        return account.model_copy(update={
            "assets": new_assets,
            "transactions": (transaction,) + account.transactions,
        })

    def apply_withdrawal(
        self,
        account: Account,
        amount: float,
        note: str = "",
        category: TransactionCategory = TransactionCategory.OTHER,
        source_bucket: BucketName = BucketName.SPENDING,
        confirm_principal: bool = False,
        timestamp: Optional[datetime] = None,
    ) -> Account:
        """
        Take money out of one bucket.

        Args:
            account: Account to withdraw from
            amount: Withdrawal amount, must be positive
            note: Free-text note recorded on the transaction
            category: What the money was spent on
            source_bucket: RESERVE, SPENDING or GOAL (first goal)
            confirm_principal: Caller confirmed spending reserve principal
            timestamp: Transaction time, defaults to now

        Returns:
            The updated Account

        Raises:
            InvalidAmountError: If amount is not positive
            InsufficientFundsError: If enforcing and the bucket holds less
            PrincipalWithdrawalNotConfirmedError: If enforcing, RESERVE
                and not confirmed
            MissingGoalError: If enforcing, GOAL and there is no goal
        """
        if amount <= 0:
            raise InvalidAmountError(f"Withdrawal amount must be positive, got {amount}")

        assets = account.assets
        self._apply_policy(self._validator.check_withdrawal(
            assets, amount, source_bucket, confirm_principal,
        ))

        new_assets = self._debit(assets, amount, source_bucket)
        if new_assets is assets:
            logger.warning(
                "withdrawal_without_goal",
                account_id=account.id,
                amount=amount,
            )

        transaction = Transaction(
            id=self._next_transaction_id(account),
            timestamp=timestamp or utc_now(),
            kind=TransactionKind.WITHDRAW,
            amount=amount,
            note=note,
            category=category,
            source_bucket=source_bucket,
        )

        if self._audit_logger:
            self._audit_logger.log_withdrawal(
                account_id=account.id,
                transaction_id=transaction.id,
                amount=amount,
                source_bucket=source_bucket.value,
            )

        return account.model_copy(update={
            "assets": new_assets,
            "transactions": (transaction,) + account.transactions,
        })

    @staticmethod
    def _debit(assets: Assets, amount: float, source_bucket: BucketName) -> Assets:
        if source_bucket == BucketName.RESERVE:
            return assets.model_copy(update={"reserve_balance": assets.reserve_balance - amount})
        if source_bucket == BucketName.SPENDING:
            return assets.model_copy(update={"spending_balance": assets.spending_balance - amount})
        if not assets.goals:
            return assets
        first = assets.goals[0]
        goals = (
            first.model_copy(update={"current_amount": first.current_amount - amount}),
        ) + assets.goals[1:]
        return assets.model_copy(update={"goals": goals})
