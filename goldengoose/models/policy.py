"""
Policy Check Models

Results of the checks the engine runs before moving money. Whether an
error-level issue blocks the operation is decided by the engine's
enforcement mode, not by these models.
"""

from typing import Optional

from pydantic import BaseModel, Field


class PolicyIssue(BaseModel):
    """A single policy issue found."""
    
    field: str = Field(
        ...,
        description="Input the issue is about"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'split_mismatch', 'insufficient_funds')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class PolicyCheckResult(BaseModel):
    """Outcome of checking one operation against the ledger policy."""
    
    operation: str = Field(
        ...,
        description="Operation that was checked (deposit, withdrawal, allocation)"
    )
    issues: list[PolicyIssue] = Field(default_factory=list)
    
    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)
    
    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
    
    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
    
    def first_error(self) -> Optional[PolicyIssue]:
        for issue in self.issues:
            if issue.severity == "error":
                return issue
        return None
