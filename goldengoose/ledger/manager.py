"""
Goal & Custom-Account Manager

CRUD over the goals and custom accounts nested in an Account, plus the
account's own name and recovery details.

Every operation takes an Account and returns a new Account (copy-on-write),
so two handlers firing close together can never observe a half-applied
update.

KNOWN BEHAVIOR: deleting a goal does not move its saved amount anywhere.
The money simply leaves the visible model. This is logged as a warning
with the discarded amount; redirecting it would be a product decision.
"""

from typing import Optional, Union

from goldengoose.audit import AuditLogger
from goldengoose.ledger.exceptions import (
    CustomAccountNotFoundError,
    GoalNotFoundError,
    RecoveryAnswerMismatchError,
)
from goldengoose.ledger.ids import MonotonicIdGenerator, default_id_generator
from goldengoose.models.audit import AuditEventType
from goldengoose.models.ledger import (
    Account,
    CustomAccount,
    CustomAccountDraft,
    Goal,
)


class AssetManager:
    """Manages goals, custom accounts and account details."""

    def __init__(
        self,
        id_generator: Optional[MonotonicIdGenerator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ids = id_generator or default_id_generator()
        self._audit_logger = audit_logger

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def add_goal(
        self,
        account: Account,
        title: str,
        target_amount: float,
        image_ref: Optional[str] = None,
    ) -> Account:
        """Append a new goal with nothing saved yet."""
        goal = Goal(
            id=self._ids.next_id(),
            title=title,
            target_amount=target_amount,
            current_amount=0.0,
            image_ref=image_ref,
        )
        assets = account.assets.model_copy(update={"goals": account.assets.goals + (goal,)})

        if self._audit_logger:
            self._audit_logger.log_goal(AuditEventType.GOAL_CREATED, goal.id, goal.title)

        return account.model_copy(update={"assets": assets})

    def update_goal(self, account: Account, goal: Goal) -> Account:
        """
        Replace the goal with the same id.

        Raises:
            GoalNotFoundError: If no goal has that id
        """
        goals = account.assets.goals
        if goal.id not in {existing.id for existing in goals}:
            raise GoalNotFoundError(f"Goal not found: {goal.id}")

        updated = tuple(goal if existing.id == goal.id else existing for existing in goals)
        assets = account.assets.model_copy(update={"goals": updated})

        if self._audit_logger:
            self._audit_logger.log_goal(AuditEventType.GOAL_UPDATED, goal.id, goal.title)

        return account.model_copy(update={"assets": assets})

    def delete_goal(self, account: Account, goal_id: int) -> Account:
        """
        Remove a goal. Its saved amount is discarded, not moved.

        Deleting an unknown id returns the account unchanged.
        """
        goals = account.assets.goals
        removed = next((goal for goal in goals if goal.id == goal_id), None)
        if removed is None:
            return account

        remaining = tuple(goal for goal in goals if goal.id != goal_id)
        assets = account.assets.model_copy(update={"goals": remaining})

        if self._audit_logger:
            self._audit_logger.log_goal(
                AuditEventType.GOAL_DELETED,
                removed.id,
                removed.title,
                discarded_amount=removed.current_amount,
            )

        return account.model_copy(update={"assets": assets})

    # -------------------------------------------------------------------------
    # Custom accounts
    # -------------------------------------------------------------------------

    def save_custom_account(
        self,
        account: Account,
        draft: Union[CustomAccountDraft, CustomAccount],
    ) -> Account:
        """
        Upsert a custom account.

        A draft with an id edits that account; without one a new account is
        created with a fresh id.

        Raises:
            CustomAccountNotFoundError: If the id does not exist
        """
        existing = account.assets.custom_accounts
        fields = draft.model_dump(exclude={"id"})

        if draft.id is None:
            saved = CustomAccount(id=self._ids.next_id(), **fields)
            updated = existing + (saved,)
        else:
            if draft.id not in {item.id for item in existing}:
                raise CustomAccountNotFoundError(f"Custom account not found: {draft.id}")
            saved = CustomAccount(id=draft.id, **fields)
            updated = tuple(saved if item.id == saved.id else item for item in existing)

        assets = account.assets.model_copy(update={"custom_accounts": updated})

        if self._audit_logger:
            self._audit_logger.log_custom_account(
                AuditEventType.CUSTOM_ACCOUNT_SAVED, saved.id, saved.name,
            )

        return account.model_copy(update={"assets": assets})

    def set_custom_account_balance(
        self,
        account: Account,
        custom_account_id: int,
        balance: float,
    ) -> Account:
        """Directly set one custom account's balance."""
        target = next(
            (item for item in account.assets.custom_accounts if item.id == custom_account_id),
            None,
        )
        if target is None:
            raise CustomAccountNotFoundError(f"Custom account not found: {custom_account_id}")

        draft = CustomAccountDraft(**target.model_copy(update={"balance": balance}).model_dump())
        return self.save_custom_account(account, draft)

    def delete_custom_account(self, account: Account, custom_account_id: int) -> Account:
        """Remove a custom account. Unknown ids are ignored."""
        remaining = tuple(
            item for item in account.assets.custom_accounts if item.id != custom_account_id
        )
        assets = account.assets.model_copy(update={"custom_accounts": remaining})

        if self._audit_logger:
            self._audit_logger.log_custom_account(
                AuditEventType.CUSTOM_ACCOUNT_DELETED, custom_account_id,
            )

        return account.model_copy(update={"assets": assets})

    # -------------------------------------------------------------------------
    # Account details
    # -------------------------------------------------------------------------

    def rename_account(self, account: Account, name: str) -> Account:
        # Validate through the model so blank names are rejected
        return Account.model_validate({**account.model_dump(), "name": name})

    def set_recovery(self, account: Account, question: str, answer: str) -> Account:
        """Store the recovery question and answer used by reset_credential."""
        return account.model_copy(update={
            "recovery_question": question.strip(),
            "recovery_answer": answer.strip(),
        })

    def reset_credential(
        self,
        account: Account,
        answer: str,
        new_credential: str,
    ) -> Account:
        """
        Replace the account credential after a correct recovery answer.

        Raises:
            RecoveryAnswerMismatchError: If no recovery pair is set or the
                answer differs
        """
        if not account.recovery_question or not account.recovery_answer:
            raise RecoveryAnswerMismatchError(
                "This account has no recovery question; ask an admin to reset it"
            )
        if answer.strip() != account.recovery_answer:
            raise RecoveryAnswerMismatchError("Recovery answer does not match")

        if self._audit_logger:
            self._audit_logger.log_credential_reset(account.id)

        return account.model_copy(update={"credential": new_credential})

