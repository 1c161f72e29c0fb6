"""
Core Data Models for Golden Goose Ledger

These models define the ledger document that is persisted locally and
mirrored to the remote store. They are designed to:
1. Be immutable (every change builds a derived copy)
2. Serialize to one JSON document for both stores
3. Backfill fields missing from older documents silently

DESIGN DECISION: All entities are frozen Pydantic v2 models and every
sequence is a tuple. Components never mutate what they were given; they
call model_copy(update=...) and hand back the new value.

Balances are plain floats. A negative balance is representable on purpose:
with policy enforcement disabled the engine does not clamp withdrawals.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BucketName(str, Enum):
    """
    The three money buckets a deposit is split across.

    RESERVE is the interest-bearing principal ("goose"), GOAL is the first
    savings goal ("dream"), SPENDING is discretionary money ("pocket").
    """
    RESERVE = "reserve"
    GOAL = "goal"
    SPENDING = "spending"


class TransactionKind(str, Enum):
    """Direction of a transaction."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class TransactionCategory(str, Enum):
    """
    Transaction categories.

    Deposits are always INCOME; the rest describe what money was spent on.
    """
    SNACKS = "snacks"
    TOYS = "toys"
    STATIONERY = "stationery"
    ENTERTAINMENT = "entertainment"
    OTHER = "other"
    INCOME = "income"


class CustomAccountType(str, Enum):
    """Kinds of user-defined accounts."""
    BANK = "bank"
    FUND = "fund"
    GOLD = "gold"
    EDUCATION = "education"
    OTHER = "other"


# =============================================================================
# ALLOCATION
# =============================================================================

class Split(BaseModel):
    """
    Concrete amounts a single deposit puts into each bucket.

    The three values should add up to the deposit amount; the policy
    validator decides how strictly that is enforced.
    """
    model_config = ConfigDict(frozen=True)

    goal: float = Field(default=0.0, ge=0, description="Amount for the first goal")
    reserve: float = Field(default=0.0, ge=0, description="Amount for the reserve")
    spending: float = Field(default=0.0, ge=0, description="Amount for spending")

    @property
    def total(self) -> float:
        return self.goal + self.reserve + self.spending


class AllocationRatios(BaseModel):
    """
    Default share of each deposit per bucket.

    The ratios SHOULD sum to 1.0 but are never force-normalized.
    """
    model_config = ConfigDict(frozen=True)

    goal: float = Field(default=0.5, ge=0, le=1)
    reserve: float = Field(default=0.3, ge=0, le=1)
    spending: float = Field(default=0.2, ge=0, le=1)

    @property
    def ratio_sum(self) -> float:
        return self.goal + self.reserve + self.spending

    def split(self, amount: float) -> Split:
        """Suggested split for a deposit, each part rounded to cents."""
        return Split(
            goal=round(amount * self.goal, 2),
            reserve=round(amount * self.reserve, 2),
            spending=round(amount * self.spending, 2),
        )


# =============================================================================
# LEDGER ENTITIES
# =============================================================================

class Goal(BaseModel):
    """
    A named savings target ("dream").

    current_amount may exceed target_amount. Index 0 of Assets.goals is the
    default target for deposits, withdrawals and forced corrections.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int = Field(..., description="Stable goal identifier")
    title: str = Field(..., min_length=1, max_length=200)
    target_amount: float = Field(..., gt=0, description="Amount to save up to")
    current_amount: float = Field(default=0.0, description="Amount saved so far")
    image_ref: Optional[str] = Field(default=None, description="Picture of the goal")

    @property
    def progress(self) -> float:
        return self.current_amount / self.target_amount


class CustomAccount(BaseModel):
    """
    A user-defined balance (bank deposit, fund, gold...).

    Never touched by deposit/withdraw allocation; only set directly.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int
    name: str = Field(..., min_length=1, max_length=100)
    type: CustomAccountType = CustomAccountType.OTHER
    balance: float = 0.0
    note: Optional[str] = Field(default=None, max_length=500)


class CustomAccountDraft(BaseModel):
    """
    Input for saving a custom account.

    Presence of an id means "edit that account", absence means "create".
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=100)
    type: CustomAccountType = CustomAccountType.OTHER
    balance: float = 0.0
    note: Optional[str] = Field(default=None, max_length=500)


class Transaction(BaseModel):
    """
    One deposit or withdrawal.

    CRITICAL: Transactions are append-only history. They are never edited
    or removed after creation, even when balances are force-corrected.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Time-derived, monotonically increasing id")
    timestamp: datetime = Field(default_factory=utc_now)
    kind: TransactionKind
    amount: float = Field(..., gt=0)
    note: str = ""
    category: TransactionCategory = TransactionCategory.OTHER
    distribution: Optional[Split] = Field(
        default=None,
        description="Per-bucket amounts, recorded for deposits"
    )
    source_bucket: Optional[BucketName] = Field(
        default=None,
        description="Bucket the money left, recorded for withdrawals"
    )

    @model_validator(mode='after')
    def validate_shape(self) -> 'Transaction':
        """Deposits carry a distribution, withdrawals a source bucket."""
        if self.kind == TransactionKind.DEPOSIT and self.source_bucket is not None:
            raise ValueError("Deposits cannot have a source bucket")
        if self.kind == TransactionKind.WITHDRAW and self.distribution is not None:
            raise ValueError("Withdrawals cannot have a distribution")
        return self


class Assets(BaseModel):
    """Balances of one account."""
    model_config = ConfigDict(frozen=True)

    reserve_balance: float = Field(default=0.0, description="Interest-bearing principal")
    spending_balance: float = Field(default=0.0, description="Discretionary money")
    goals: tuple[Goal, ...] = ()
    # Absent in older documents
    custom_accounts: tuple[CustomAccount, ...] = ()

    @property
    def goal_total(self) -> float:
        return sum(goal.current_amount for goal in self.goals)

    @property
    def total_balance(self) -> float:
        """Money tracked by the three buckets (custom accounts excluded)."""
        return self.reserve_balance + self.spending_balance + self.goal_total

    @property
    def custom_total(self) -> float:
        return sum(account.balance for account in self.custom_accounts)

    def bucket_balance(self, bucket: BucketName) -> Optional[float]:
        """
        Balance available in a bucket.

        For GOAL this is the first goal's amount; None when there is no goal.
        """
        if bucket == BucketName.RESERVE:
            return self.reserve_balance
        if bucket == BucketName.SPENDING:
            return self.spending_balance
        if self.goals:
            return self.goals[0].current_amount
        return None


class Account(BaseModel):
    """
    One person's ledger.

    The credential is opaque and stored exactly as given.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: int
    name: str = Field(..., min_length=1, max_length=100)
    credential: str = ""
    recovery_question: Optional[str] = None
    recovery_answer: Optional[str] = None
    assets: Assets = Field(default_factory=Assets)
    # Most recent first
    transactions: tuple[Transaction, ...] = ()


class LedgerSettings(BaseModel):
    """
    Global ledger settings.

    admin_secret is only read to migrate documents written before the
    secret moved to a separate credential store; it is blank otherwise.
    """
    model_config = ConfigDict(frozen=True)

    admin_secret: str = ""
    # Absent in older documents
    admin_initialized: bool = False
    default_allocation: AllocationRatios = Field(default_factory=AllocationRatios)
    assumed_annual_interest_rate: float = Field(default=0.08, ge=0)


DEFAULT_ACCOUNT_ID = 1
DEFAULT_ACCOUNT_NAME = "My Ledger"


class LedgerState(BaseModel):
    """
    Root aggregate persisted as one document.

    accounts is never empty: a default account is synthesized when a
    document has none.
    """
    model_config = ConfigDict(frozen=True)

    settings: LedgerSettings = Field(default_factory=LedgerSettings)
    accounts: tuple[Account, ...] = ()
    active_account_id: int = DEFAULT_ACCOUNT_ID

    @model_validator(mode='before')
    @classmethod
    def ensure_account(cls, data: Any) -> Any:
        """Synthesize a default account when none is present."""
        if isinstance(data, dict) and not data.get("accounts"):
            data = dict(data)
            data["accounts"] = [
                {"id": DEFAULT_ACCOUNT_ID, "name": DEFAULT_ACCOUNT_NAME}
            ]
        return data

    @property
    def active_account(self) -> Account:
        """The active account, or the first one if the id is unknown."""
        for account in self.accounts:
            if account.id == self.active_account_id:
                return account
        return self.accounts[0]

    def with_account(self, account: Account) -> 'LedgerState':
        """Return a new state with the account of the same id replaced."""
        accounts = tuple(
            account if existing.id == account.id else existing
            for existing in self.accounts
        )
        if account.id not in {existing.id for existing in self.accounts}:
            accounts = accounts + (account,)
        return self.model_copy(update={"accounts": accounts})

    def with_settings(self, settings: LedgerSettings) -> 'LedgerState':
        return self.model_copy(update={"settings": settings})
