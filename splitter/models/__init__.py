"""
Data Models Package

This package contains all Pydantic models used in Group Splitter.
"""

from splitter.models.group import (
    Expense,
    ExpenseDraft,
    Group,
    GroupData,
    GroupSummary,
    Participant,
    ParticipantBalance,
    ReferentialPolicy,
    Settlement,
    ValidationIssue,
    ValidationResult,
)
from splitter.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Group models
    "Expense",
    "ExpenseDraft",
    "Group",
    "GroupData",
    "GroupSummary",
    "Participant",
    "ParticipantBalance",
    "ReferentialPolicy",
    "Settlement",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
