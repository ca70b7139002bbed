"""
Client State Model

DESIGN DECISION: The whole client lives in ONE immutable object.
Nothing mutates it in place; reducers in expense_tracker.reducers build a
new TrackerState for every change. The orchestrator holds the current one.

Form fields are kept as the raw strings the user typed. They are only
parsed when the form is submitted.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from expense_tracker.models.expense import (
    AuthMode,
    AuthUser,
    Expense,
    PeriodFilter,
    RecurringExpense,
)


class Screen(str, Enum):
    """The two-screen toggle, plus the initial loading state."""
    LOADING = "loading"
    LOGIN = "login"
    DASHBOARD = "dashboard"


# =============================================================================
# FORMS
# =============================================================================

class AuthForm(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    email: str = ""
    password: str = ""


class ExpenseForm(BaseModel):
    """New-expense form. date is an ISO string, today by default."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    tag: str = ""
    amount: str = ""
    date: str = ""


class RecurringExpenseForm(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = ""
    tag: str = ""
    amount: str = ""


# =============================================================================
# STATE
# =============================================================================

class TrackerState(BaseModel):
    """Snapshot of everything the client knows."""
    model_config = ConfigDict(frozen=True)

    # Session
    token: Optional[str] = None
    user: Optional[AuthUser] = None
    initializing: bool = True

    # Auth screen
    auth_mode: AuthMode = AuthMode.LOGIN
    auth_form: AuthForm = Field(default_factory=AuthForm)
    auth_loading: bool = False
    auth_error: Optional[str] = None

    # Dashboard
    global_error: Optional[str] = None
    syncing: bool = False

    # Cached server entities
    expenses: tuple[Expense, ...] = ()
    recurring_expenses: tuple[RecurringExpense, ...] = ()

    # Forms and filter
    expense_form: ExpenseForm = Field(default_factory=ExpenseForm)
    recurring_form: RecurringExpenseForm = Field(default_factory=RecurringExpenseForm)
    period_filter: PeriodFilter = Field(default_factory=PeriodFilter)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    @property
    def screen(self) -> Screen:
        if self.initializing:
            return Screen.LOADING
        if not self.is_authenticated:
            return Screen.LOGIN
        return Screen.DASHBOARD

    def find_recurring(self, recurring_id: int) -> Optional[RecurringExpense]:
        for recurring in self.recurring_expenses:
            if recurring.id == recurring_id:
                return recurring
        return None
