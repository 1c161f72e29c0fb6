"""Tests for the allocation engine (deposits and withdrawals)."""

from unittest.mock import MagicMock

import pytest

from goldengoose.audit import AuditLogger
from goldengoose.ledger import (
    FALLBACK_GOAL_TARGET,
    FALLBACK_GOAL_TITLE,
    AllocationEngine,
    InsufficientFundsError,
    InvalidAmountError,
    MissingGoalError,
    PolicyViolationError,
    PrincipalWithdrawalNotConfirmedError,
    SplitMismatchError,
)
from goldengoose.models.ledger import (
    Account,
    BucketName,
    Split,
    Transaction,
    TransactionCategory,
    TransactionKind,
)
from goldengoose.validation import LedgerPolicyValidator


class TestDeposit:
    """Tests for AllocationEngine.apply_deposit."""

    def test_default_state_deposit(self, engine, default_state):
        """Test the 50/30/20 deposit into the default ledger."""
        account = default_state.active_account
        result = engine.apply_deposit(account, 100, split=Split(goal=50, reserve=30, spending=20))

        assert result.assets.goals[0].current_amount == 50
        assert result.assets.reserve_balance == 30
        assert result.assets.spending_balance == 20
        assert len(result.transactions) == 1

    def test_deposit_only_touches_first_goal(self, engine, funded_account):
        """Test that the goal share goes to the first goal only."""
        result = engine.apply_deposit(funded_account, 10, split=Split(goal=10))
        assert result.assets.goals[0].current_amount == 50
        assert result.assets.goals[1].current_amount == 10

    @pytest.mark.parametrize("split", [
        Split(goal=50, reserve=30, spending=20),
        Split(goal=0, reserve=0, spending=100),
        Split(goal=33.33, reserve=33.33, spending=33.34),
        Split(goal=100, reserve=0, spending=0),
    ])
    def test_total_balance_grows_by_amount(self, engine, funded_account, split):
        """Test that a matching split conserves money."""
        before = funded_account.assets.total_balance
        result = engine.apply_deposit(funded_account, 100, split=split)
        assert result.assets.total_balance == pytest.approx(before + 100)

    def test_fallback_goal_created_when_no_goal(self, engine, empty_account):
        """Test that the goal share creates a fallback goal instead of vanishing."""
        result = engine.apply_deposit(empty_account, 100, split=Split(goal=100))

        assert len(result.assets.goals) == 1
        goal = result.assets.goals[0]
        assert goal.current_amount == 100
        assert goal.target_amount == FALLBACK_GOAL_TARGET == 10000
        assert goal.title == FALLBACK_GOAL_TITLE

    def test_no_fallback_goal_without_goal_share(self, engine, empty_account):
        """Test that no goal is created when the goal share is zero."""
        result = engine.apply_deposit(empty_account, 100, split=Split(reserve=40, spending=60))
        assert result.assets.goals == ()

    def test_fallback_goal_is_audited(self, ids, empty_account):
        """Test that creating the fallback goal is logged."""
        audit = MagicMock(spec=AuditLogger)
        engine = AllocationEngine(
            validator=LedgerPolicyValidator(split_tolerance=0.1),
            id_generator=ids,
            audit_logger=audit,
            enforce_policy=True,
        )
        result = engine.apply_deposit(empty_account, 100, split=Split(goal=100))
        audit.log_fallback_goal.assert_called_once_with(1, result.assets.goals[0].id, 100)

    def test_deposit_without_split_goes_to_spending(self, engine, empty_account):
        """Test the engine's own default split."""
        result = engine.apply_deposit(empty_account, 25)
        assert result.assets.spending_balance == 25
        assert result.transactions[0].distribution == Split(spending=25)

    def test_deposit_transaction_shape(self, engine, funded_account):
        """Test that deposits record income with the distribution."""
        split = Split(goal=5, reserve=3, spending=2)
        result = engine.apply_deposit(funded_account, 10, note="allowance", split=split)

        tx = result.transactions[0]
        assert tx.kind == TransactionKind.DEPOSIT
        assert tx.category == TransactionCategory.INCOME
        assert tx.distribution == split
        assert tx.source_bucket is None
        assert tx.note == "allowance"

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount_rejected(self, engine, funded_account, amount):
        """Test that deposits must be positive."""
        with pytest.raises(InvalidAmountError):
            engine.apply_deposit(funded_account, amount, split=Split())

    def test_split_within_tolerance_accepted(self, engine, funded_account):
        """Test that rounding gaps up to the tolerance are allowed."""
        result = engine.apply_deposit(funded_account, 100, split=Split(goal=50, reserve=30, spending=19.95))
        assert result.assets.spending_balance == pytest.approx(69.95)

    def test_split_mismatch_rejected_when_enforcing(self, engine, funded_account):
        """Test that a split not adding up raises and carries its issues."""
        with pytest.raises(SplitMismatchError) as exc_info:
            engine.apply_deposit(funded_account, 100, split=Split(goal=10))
        assert exc_info.value.issues[0].issue_type == "split_mismatch"

    def test_split_mismatch_allowed_when_advisory(self, ids, funded_account):
        """Test that advisory mode logs the mismatch and applies the split as given."""
        audit = MagicMock(spec=AuditLogger)
        engine = AllocationEngine(
            validator=LedgerPolicyValidator(split_tolerance=0.1),
            id_generator=ids,
            audit_logger=audit,
            enforce_policy=False,
        )
        result = engine.apply_deposit(funded_account, 100, split=Split(goal=10))

        assert result.assets.goals[0].current_amount == 50
        audit.log_policy_violation.assert_called_once()
        assert audit.log_policy_violation.call_args.kwargs["enforced"] is False

    def test_non_income_category_rejected_when_enforcing(self, engine, funded_account):
        """Test that deposits must be income."""
        with pytest.raises(PolicyViolationError):
            engine.apply_deposit(
                funded_account, 10, category=TransactionCategory.TOYS, split=Split(spending=10),
            )


class TestWithdrawal:
    """Tests for AllocationEngine.apply_withdrawal."""

    def test_withdraw_from_spending(self, engine, funded_account):
        """Test a normal spending withdrawal."""
        result = engine.apply_withdrawal(
            funded_account, 20, category=TransactionCategory.SNACKS,
        )
        assert result.assets.spending_balance == 30
        assert result.assets.reserve_balance == 100

    def test_withdraw_from_first_goal(self, engine, funded_account):
        """Test that a goal withdrawal takes from the first goal."""
        result = engine.apply_withdrawal(funded_account, 15, source_bucket=BucketName.GOAL)
        assert result.assets.goals[0].current_amount == 25
        assert result.assets.goals[1].current_amount == 10

    def test_withdrawal_transaction_shape(self, engine, funded_account):
        """Test that withdrawals record the source bucket and no distribution."""
        result = engine.apply_withdrawal(
            funded_account, 5, category=TransactionCategory.TOYS, note="yo-yo",
        )
        tx = result.transactions[0]
        assert tx.kind == TransactionKind.WITHDRAW
        assert tx.source_bucket == BucketName.SPENDING
        assert tx.distribution is None
        assert tx.category == TransactionCategory.TOYS

    @pytest.mark.parametrize("amount", [30, 100, 250])
    def test_reserve_withdrawal_is_not_clamped(self, lenient_engine, funded_account, amount):
        """Test that the reserve drops by exactly the amount, even below zero."""
        result = lenient_engine.apply_withdrawal(
            funded_account, amount, source_bucket=BucketName.RESERVE, confirm_principal=True,
        )
        assert result.assets.reserve_balance == pytest.approx(100 - amount)

    def test_goal_withdrawal_without_goal_records_transaction_only(self, lenient_engine, empty_account):
        """Test that an advisory goal withdrawal with no goal changes no balance."""
        result = lenient_engine.apply_withdrawal(empty_account, 10, source_bucket=BucketName.GOAL)

        assert result.assets == empty_account.assets
        assert len(result.transactions) == 1
        assert result.transactions[0].source_bucket == BucketName.GOAL

    def test_goal_withdrawal_without_goal_rejected(self, engine, empty_account):
        """Test that enforcement refuses a goal withdrawal with no goal."""
        with pytest.raises(MissingGoalError):
            engine.apply_withdrawal(empty_account, 10, source_bucket=BucketName.GOAL)

    def test_insufficient_funds_rejected(self, engine, funded_account):
        """Test that overdrawing a bucket raises when enforcing."""
        with pytest.raises(InsufficientFundsError):
            engine.apply_withdrawal(funded_account, 51)

    def test_reserve_needs_confirmation(self, engine, funded_account):
        """Test that principal withdrawals must be confirmed."""
        with pytest.raises(PrincipalWithdrawalNotConfirmedError):
            engine.apply_withdrawal(funded_account, 10, source_bucket=BucketName.RESERVE)

        result = engine.apply_withdrawal(
            funded_account, 10, source_bucket=BucketName.RESERVE, confirm_principal=True,
        )
        assert result.assets.reserve_balance == 90

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount_rejected(self, lenient_engine, funded_account, amount):
        """Test that withdrawals must be positive even in advisory mode."""
        with pytest.raises(InvalidAmountError):
            lenient_engine.apply_withdrawal(funded_account, amount)


class TestTransactionHistory:
    """Tests for transaction ordering and ids."""

    @pytest.mark.parametrize("prior", [1, 2, 5])
    def test_new_transaction_goes_first(self, engine, funded_account, prior):
        """Test that each call adds exactly one transaction at index 0."""
        account = funded_account
        for _ in range(prior):
            account = engine.apply_deposit(account, 1, split=Split(spending=1))
        history = account.transactions

        result = engine.apply_withdrawal(account, 1)

        assert len(result.transactions) == prior + 1
        assert result.transactions[0].kind == TransactionKind.WITHDRAW
        assert result.transactions[1:] == history

    def test_transaction_ids_increase(self, engine, funded_account):
        """Test that newer transactions have larger ids."""
        account = funded_account
        for _ in range(3):
            account = engine.apply_deposit(account, 1, split=Split(spending=1))
        ids = [int(tx.id) for tx in account.transactions]
        assert ids == sorted(ids, reverse=True)
        assert len(set(ids)) == 3

    def test_transaction_id_above_existing_history(self, engine):
        """Test that ids stay above stored ids even if the clock is behind."""
        account = Account(
            id=1,
            name="A",
            transactions=(Transaction(
                id="1700000000000",
                kind=TransactionKind.DEPOSIT,
                amount=1,
                category=TransactionCategory.INCOME,
                distribution=Split(spending=1),
            ),),
        )
        result = engine.apply_deposit(account, 1, split=Split(spending=1))
        assert int(result.transactions[0].id) > 1700000000000

    def test_input_account_is_untouched(self, engine, funded_account):
        """Test copy-on-write: the given account never changes."""
        snapshot = funded_account.model_dump()
        engine.apply_deposit(funded_account, 10, split=Split(goal=10))
        engine.apply_withdrawal(funded_account, 10)
        assert funded_account.model_dump() == snapshot


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
