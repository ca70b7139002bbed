"""
State Reducers

Every change to TrackerState goes through one of these functions.
Each takes the current state (plus the event's data) and returns a NEW
state; none of them performs I/O or reads the clock.

Naming: reducers are named after what happened ("expense_added"), not
after what they do to the fields.
"""

from datetime import date
from typing import Optional

from expense_tracker.models.expense import (
    AppliedRecurringExpense,
    AuthMode,
    AuthUser,
    Expense,
    Period,
    PeriodFilter,
    RecurringExpense,
)
from expense_tracker.models.state import (
    AuthForm,
    ExpenseForm,
    RecurringExpenseForm,
    TrackerState,
)


def blank_expense_form(today: date) -> ExpenseForm:
    return ExpenseForm(date=today.isoformat())


def initial_state(today: date) -> TrackerState:
    """State before the stored session has been looked at."""
    return TrackerState(expense_form=blank_expense_form(today))


# =============================================================================
# SESSION
# =============================================================================

def session_started(state: TrackerState, token: str) -> TrackerState:
    return state.model_copy(update={"token": token, "global_error": None})


def user_loaded(state: TrackerState, user: AuthUser) -> TrackerState:
    return state.model_copy(update={"user": user})


def session_failed(state: TrackerState, message: str) -> TrackerState:
    """The token was rejected or the server was unreachable."""
    return state.model_copy(update={
        "token": None,
        "user": None,
        "global_error": message,
    })


def initialization_finished(state: TrackerState) -> TrackerState:
    return state.model_copy(update={"initializing": False})


def logged_out(state: TrackerState) -> TrackerState:
    """Drop the session and every cached entity."""
    return state.model_copy(update={
        "token": None,
        "user": None,
        "expenses": (),
        "recurring_expenses": (),
    })


# =============================================================================
# AUTH SCREEN
# =============================================================================

def auth_mode_toggled(state: TrackerState) -> TrackerState:
    mode = AuthMode.REGISTER if state.auth_mode == AuthMode.LOGIN else AuthMode.LOGIN
    return state.model_copy(update={"auth_mode": mode, "auth_error": None})


def auth_mode_selected(state: TrackerState, mode: AuthMode) -> TrackerState:
    if state.auth_mode == mode:
        return state
    return auth_mode_toggled(state)


def auth_form_updated(state: TrackerState, **fields: str) -> TrackerState:
    form = AuthForm(**{**state.auth_form.model_dump(), **fields})
    return state.model_copy(update={"auth_form": form})


def auth_submitted(state: TrackerState) -> TrackerState:
    return state.model_copy(update={"auth_loading": True, "auth_error": None})


def auth_succeeded(state: TrackerState) -> TrackerState:
    return state.model_copy(update={"auth_loading": False, "auth_form": AuthForm()})


def auth_failed(state: TrackerState, message: str) -> TrackerState:
    return state.model_copy(update={"auth_loading": False, "auth_error": message})


# =============================================================================
# SYNCHRONIZATION
# =============================================================================

def sync_started(state: TrackerState) -> TrackerState:
    return state.model_copy(update={"syncing": True})


def sync_succeeded(
    state: TrackerState,
    expenses: list[Expense],
    recurring_expenses: list[RecurringExpense],
) -> TrackerState:
    """Replace both lists at once; there is no partial merge."""
    return state.model_copy(update={
        "syncing": False,
        "expenses": tuple(expenses),
        "recurring_expenses": tuple(recurring_expenses),
    })


def sync_failed(state: TrackerState, message: str) -> TrackerState:
    """Keep whatever was loaded before."""
    return state.model_copy(update={"syncing": False, "global_error": message})


# =============================================================================
# FORMS AND FILTER
# =============================================================================

def expense_form_updated(state: TrackerState, **fields: str) -> TrackerState:
    form = ExpenseForm(**{**state.expense_form.model_dump(), **fields})
    return state.model_copy(update={"expense_form": form})


def recurring_form_updated(state: TrackerState, **fields: str) -> TrackerState:
    form = RecurringExpenseForm(**{**state.recurring_form.model_dump(), **fields})
    return state.model_copy(update={"recurring_form": form})


def period_selected(state: TrackerState, period: Period) -> TrackerState:
    period_filter = state.period_filter.model_copy(update={"period": Period(period)})
    return state.model_copy(update={"period_filter": period_filter})


def custom_range_set(
    state: TrackerState,
    start: Optional[date],
    end: Optional[date],
) -> TrackerState:
    period_filter = PeriodFilter(
        period=state.period_filter.period,
        custom_start=start,
        custom_end=end,
    )
    return state.model_copy(update={"period_filter": period_filter})


# =============================================================================
# MUTATIONS (applied only after the server confirmed them)
# =============================================================================

def expense_added(
    state: TrackerState,
    expense: Optional[Expense],
    today: date,
) -> TrackerState:
    """Append the created expense and reset the form to today."""
    expenses = state.expenses + (expense,) if expense is not None else state.expenses
    return state.model_copy(update={
        "expenses": expenses,
        "expense_form": blank_expense_form(today),
    })


def recurring_expense_added(
    state: TrackerState,
    recurring: Optional[RecurringExpense],
) -> TrackerState:
    """New recurring expenses go to the top of the list."""
    recurring_expenses = state.recurring_expenses
    if recurring is not None:
        recurring_expenses = (recurring,) + recurring_expenses
    return state.model_copy(update={
        "recurring_expenses": recurring_expenses,
        "recurring_form": RecurringExpenseForm(),
    })


def recurring_expense_applied(
    state: TrackerState,
    recurring_id: int,
    result: AppliedRecurringExpense,
) -> TrackerState:
    """Append the materialized expense and swap in the stamped template."""
    expenses = state.expenses
    if result.expense is not None:
        expenses = expenses + (result.expense,)

    recurring_expenses = state.recurring_expenses
    if result.recurring_expense is not None:
        recurring_expenses = tuple(
            result.recurring_expense if item.id == recurring_id else item
            for item in recurring_expenses
        )

    return state.model_copy(update={
        "expenses": expenses,
        "recurring_expenses": recurring_expenses,
    })


def expense_deleted(state: TrackerState, expense_id: int) -> TrackerState:
    """
    Remove the expense and release any recurring expense that pointed at it,
    which makes that recurring expense eligible again.
    """
    recurring_expenses = tuple(
        item.model_copy(update={"last_expense_id": None, "last_applied_at": None})
        if item.last_expense_id == expense_id
        else item
        for item in state.recurring_expenses
    )
    return state.model_copy(update={
        "expenses": tuple(e for e in state.expenses if e.id != expense_id),
        "recurring_expenses": recurring_expenses,
    })


def recurring_expense_deleted(state: TrackerState, recurring_id: int) -> TrackerState:
    return state.model_copy(update={
        "recurring_expenses": tuple(
            item for item in state.recurring_expenses if item.id != recurring_id
        ),
    })


# =============================================================================
# ERRORS
# =============================================================================

def error_raised(state: TrackerState, message: str) -> TrackerState:
    return state.model_copy(update={"global_error": message})


def error_dismissed(state: TrackerState) -> TrackerState:
    return state.model_copy(update={"global_error": None})
