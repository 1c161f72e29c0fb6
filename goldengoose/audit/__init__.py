"""Audit logging package."""

from goldengoose.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
