"""
Ledger Policy Checks

DESIGN DECISION: The rules that protect balances run in the core, not in
whatever screen calls it:

DEPOSIT:
- Split must add up to the amount (within a rounding tolerance)
- Deposits are income

WITHDRAWAL:
- Source bucket must hold enough money
- Taking money out of the reserve (principal) needs explicit confirmation
- A goal withdrawal needs a goal to take it from

ALLOCATION:
- Default ratios should add up to 1.0 (warning only, never normalized)

The validator only REPORTS issues. The engine decides whether error-level
issues block the operation (enforcement on) or are logged and let through
(enforcement off, advisory mode).
"""

from typing import Optional

from goldengoose.config import get_settings
from goldengoose.models.ledger import (
    AllocationRatios,
    Assets,
    BucketName,
    Split,
    TransactionCategory,
)
from goldengoose.models.policy import PolicyCheckResult, PolicyIssue


class LedgerPolicyValidator:
    """Checks deposits, withdrawals and allocation ratios."""

    def __init__(self, split_tolerance: Optional[float] = None):
        """
        Args:
            split_tolerance: Allowed gap between split total and amount.
                             Defaults to the configured policy tolerance.
        """
        if split_tolerance is None:
            split_tolerance = get_settings().policy.split_tolerance
        self._split_tolerance = split_tolerance

    @property
    def split_tolerance(self) -> float:
        return self._split_tolerance

    def check_deposit(
        self,
        amount: float,
        split: Split,
        category: TransactionCategory = TransactionCategory.INCOME,
    ) -> PolicyCheckResult:
        issues = []

        gap = abs(split.total - amount)
        if gap > self._split_tolerance:
            issues.append(PolicyIssue(
                field="split",
                issue_type="split_mismatch",
                message=(
                    f"Split total ({split.total:.2f}) must equal the "
                    f"deposit amount ({amount:.2f})"
                ),
                severity="error",
                suggested_fix="Adjust the goal, reserve and spending parts",
            ))

        if category != TransactionCategory.INCOME:
            issues.append(PolicyIssue(
                field="category",
                issue_type="invalid_category",
                message=f"Deposits are income, not '{category.value}'",
                severity="error",
                suggested_fix="Record the deposit as income",
            ))

        return PolicyCheckResult(operation="deposit", issues=issues)

    def check_withdrawal(
        self,
        assets: Assets,
        amount: float,
        source_bucket: BucketName,
        confirm_principal: bool = False,
    ) -> PolicyCheckResult:
        issues = []

        available = assets.bucket_balance(source_bucket)
        if available is None:
            issues.append(PolicyIssue(
                field="source_bucket",
                issue_type="missing_goal",
                message="There is no goal to withdraw from",
                severity="error",
                suggested_fix="Create a goal or pick another bucket",
            ))
        elif amount > available:
            issues.append(PolicyIssue(
                field="amount",
                issue_type="insufficient_funds",
                message=(
                    f"{source_bucket.value} only holds {available:.2f}, "
                    f"cannot withdraw {amount:.2f}"
                ),
                severity="error",
                suggested_fix="Withdraw less or pick another bucket",
            ))

        if source_bucket == BucketName.RESERVE and not confirm_principal:
            issues.append(PolicyIssue(
                field="source_bucket",
                issue_type="principal_not_confirmed",
                message="Withdrawing from the reserve spends the principal",
                severity="error",
                suggested_fix="Confirm the reserve withdrawal explicitly",
            ))

        return PolicyCheckResult(operation="withdrawal", issues=issues)

    def check_allocation(self, ratios: AllocationRatios) -> PolicyCheckResult:
        issues = []

        if abs(ratios.ratio_sum - 1.0) > 1e-6:
            issues.append(PolicyIssue(
                field="default_allocation",
                issue_type="ratio_sum",
                message=f"Allocation ratios add up to {ratios.ratio_sum:.0%}, not 100%",
                severity="warning",
                suggested_fix="Make the three ratios add up to 100%",
            ))

        return PolicyCheckResult(operation="allocation", issues=issues)

    def get_user_friendly_summary(self, result: PolicyCheckResult) -> str:
        """Short text describing the issues, for whoever shows them."""
        if not result.issues:
            return "✅ All checks passed."

        lines = []
        for issue in result.issues:
            marker = "❌" if issue.severity == "error" else "⚠️"
            lines.append(f"{marker} {issue.message}")
            if issue.suggested_fix:
                lines.append(f"   💡 {issue.suggested_fix}")

        return "\n".join(lines)
