"""Tests for the ledger policy validator."""

import pytest

from goldengoose.models.ledger import (
    AllocationRatios,
    Assets,
    BucketName,
    Goal,
    Split,
    TransactionCategory,
)
from goldengoose.validation import LedgerPolicyValidator


@pytest.fixture
def validator():
    return LedgerPolicyValidator(split_tolerance=0.1)


@pytest.fixture
def assets():
    return Assets(
        reserve_balance=100,
        spending_balance=20,
        goals=(Goal(id=1, title="Bike", target_amount=300, current_amount=40),),
    )


class TestDepositChecks:
    """Tests for check_deposit."""

    def test_matching_split_passes(self, validator):
        """Test a split that adds up exactly."""
        result = validator.check_deposit(100, Split(goal=50, reserve=30, spending=20))
        assert result.issues == []

    def test_rounding_gap_within_tolerance(self, validator):
        """Test that small rounding gaps are allowed."""
        result = validator.check_deposit(10, Split(goal=3.33, reserve=3.33, spending=3.33))
        assert result.has_errors is False

    def test_gap_over_tolerance(self, validator):
        """Test that a real mismatch is an error."""
        result = validator.check_deposit(100, Split(goal=50, reserve=30, spending=19.8))
        assert result.first_error().issue_type == "split_mismatch"

    def test_configured_tolerance_is_used(self):
        """Test that the tolerance is a parameter."""
        strict = LedgerPolicyValidator(split_tolerance=0.0)
        assert strict.check_deposit(10, Split(spending=9.99)).has_errors is True

    def test_non_income_category(self, validator):
        """Test that deposits must be income."""
        result = validator.check_deposit(10, Split(spending=10), TransactionCategory.SNACKS)
        assert result.first_error().issue_type == "invalid_category"


class TestWithdrawalChecks:
    """Tests for check_withdrawal."""

    def test_spending_within_balance(self, validator, assets):
        """Test an affordable spending withdrawal."""
        assert validator.check_withdrawal(assets, 20, BucketName.SPENDING).issues == []

    def test_insufficient_goal_funds(self, validator, assets):
        """Test overdrawing the first goal."""
        result = validator.check_withdrawal(assets, 41, BucketName.GOAL)
        assert result.first_error().issue_type == "insufficient_funds"

    def test_missing_goal(self, validator):
        """Test a goal withdrawal with no goal."""
        result = validator.check_withdrawal(Assets(), 1, BucketName.GOAL)
        assert result.first_error().issue_type == "missing_goal"

    def test_reserve_without_confirmation(self, validator, assets):
        """Test that reserve withdrawals need confirmation."""
        result = validator.check_withdrawal(assets, 10, BucketName.RESERVE)
        assert [i.issue_type for i in result.issues] == ["principal_not_confirmed"]

        confirmed = validator.check_withdrawal(assets, 10, BucketName.RESERVE, confirm_principal=True)
        assert confirmed.issues == []

    def test_overdrawn_unconfirmed_reserve_reports_both(self, validator, assets):
        """Test that funds are reported before confirmation."""
        result = validator.check_withdrawal(assets, 500, BucketName.RESERVE)
        assert [i.issue_type for i in result.issues] == [
            "insufficient_funds",
            "principal_not_confirmed",
        ]


class TestAllocationChecks:
    """Tests for check_allocation."""

    def test_ratios_summing_to_one(self, validator):
        """Test the default ratios."""
        assert validator.check_allocation(AllocationRatios()).issues == []

    def test_ratios_not_summing_to_one_warn(self, validator):
        """Test that a bad ratio sum is only a warning."""
        result = validator.check_allocation(AllocationRatios(goal=0.5, reserve=0.3, spending=0.1))
        assert result.has_errors is False
        assert len(result.warnings) == 1


class TestUserFriendlySummary:
    """Tests for get_user_friendly_summary."""

    def test_clean_summary(self, validator):
        """Test the summary with no issues."""
        result = validator.check_allocation(AllocationRatios())
        assert "All checks passed" in validator.get_user_friendly_summary(result)

    def test_summary_lists_fixes(self, validator, assets):
        """Test that suggested fixes are included."""
        result = validator.check_withdrawal(assets, 10, BucketName.RESERVE)
        summary = validator.get_user_friendly_summary(result)
        assert "principal" in summary
        assert "Confirm the reserve withdrawal" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
