"""Default ledger document used on first run and as the load fallback."""

from goldengoose.models.ledger import (
    DEFAULT_ACCOUNT_ID,
    DEFAULT_ACCOUNT_NAME,
    Account,
    AllocationRatios,
    Assets,
    Goal,
    LedgerSettings,
    LedgerState,
)


FALLBACK_GOAL_TITLE = "My Savings Goal"
FALLBACK_GOAL_TARGET = 10000.0


def default_ledger_state() -> LedgerState:
    """
    One account with zero balances, two example goals, a 50/30/20
    goal/reserve/spending split and an assumed 8% annual rate.
    """
    account = Account(
        id=DEFAULT_ACCOUNT_ID,
        name=DEFAULT_ACCOUNT_NAME,
        assets=Assets(
            goals=(
                Goal(id=101, title="Lego Castle", target_amount=2000),
                Goal(id=102, title="Theme Park Tickets", target_amount=800),
            ),
        ),
    )
    return LedgerState(
        settings=LedgerSettings(
            default_allocation=AllocationRatios(goal=0.5, reserve=0.3, spending=0.2),
            assumed_annual_interest_rate=0.08,
        ),
        accounts=(account,),
        active_account_id=account.id,
    )
