"""Ledger policy validation package."""

from goldengoose.validation.policy import LedgerPolicyValidator

__all__ = ["LedgerPolicyValidator"]
