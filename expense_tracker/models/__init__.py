"""
Data Models Package

This package contains all Pydantic models used by the Expense Tracker client.
Everything received from or sent to the API conforms to these schemas.
"""

from expense_tracker.models.expense import (
    AppliedRecurringExpense,
    AuthMode,
    AuthResponse,
    AuthUser,
    DateRange,
    Expense,
    ExpenseDraft,
    ExpenseSummary,
    Period,
    PeriodFilter,
    RecurringExpense,
    RecurringExpenseDraft,
    parse_timestamp,
)
from expense_tracker.models.state import (
    AuthForm,
    ExpenseForm,
    RecurringExpenseForm,
    Screen,
    TrackerState,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entity models
    "AppliedRecurringExpense",
    "AuthMode",
    "AuthResponse",
    "AuthUser",
    "DateRange",
    "Expense",
    "ExpenseDraft",
    "ExpenseSummary",
    "Period",
    "PeriodFilter",
    "RecurringExpense",
    "RecurringExpenseDraft",
    "parse_timestamp",
    # State models
    "AuthForm",
    "ExpenseForm",
    "RecurringExpenseForm",
    "Screen",
    "TrackerState",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
