"""
Client-Side Validation

Two kinds of checks happen before any request is sent:

FORM VALIDATION:
- Required fields present (name, tag, amount, date)
- Amount parses as a finite number
- Date is an ISO calendar date
An expense form that fails is silently not submitted; nothing is shown.
The login/register form is the exception: it reports what is missing.

BUSINESS RULE:
- A recurring expense can be applied at most once per calendar month.
Failing this rule IS reported to the user, and the server is not called.

IMPORTANT: Validation never rewrites what the user typed beyond trimming
whitespace. It either yields a draft or nothing.
"""

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from pydantic import ValidationError

from expense_tracker.models.expense import (
    AuthMode,
    ExpenseDraft,
    RecurringExpense,
    RecurringExpenseDraft,
)
from expense_tracker.models.state import AuthForm, ExpenseForm, RecurringExpenseForm


ALREADY_APPLIED_MESSAGE = "Este gasto recurrente ya fue aplicado este mes"
MISSING_AUTH_FIELDS_MESSAGE = "Completa todos los campos"
SHORT_PASSWORD_MESSAGE = "La contraseña debe tener al menos 6 caracteres"
MIN_PASSWORD_LENGTH = 6


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """
    Parse a typed amount.

    Returns None for empty input, garbage, NaN and infinities, including
    values too large to be sent as a JSON number.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite() or not math.isfinite(float(value)):
        return None
    return value


def parse_form_date(raw: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD form value."""
    if not raw or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        return None


def validate_auth_form(form: AuthForm, mode: AuthMode) -> Optional[str]:
    """
    Check the login/register form.

    Unlike the expense forms this returns a message to show, since the
    user cannot guess why a sign-in did nothing.
    """
    required = [form.email, form.password]
    if mode == AuthMode.REGISTER:
        required.append(form.name)
    if any(not value.strip() for value in required):
        return MISSING_AUTH_FIELDS_MESSAGE
    if len(form.password) < MIN_PASSWORD_LENGTH:
        return SHORT_PASSWORD_MESSAGE
    return None


def validate_expense_form(form: ExpenseForm) -> Optional[ExpenseDraft]:
    """Turn the new-expense form into a draft, or None if incomplete."""
    if not form.name or not form.tag or not form.amount or not form.date:
        return None

    amount = parse_amount(form.amount)
    expense_date = parse_form_date(form.date)
    if amount is None or expense_date is None:
        return None

    try:
        return ExpenseDraft(
            name=form.name,
            tag=form.tag,
            amount=amount,
            expense_date=expense_date,
        )
    except ValidationError:
        # Whitespace-only name or tag
        return None


def validate_recurring_form(form: RecurringExpenseForm) -> Optional[RecurringExpenseDraft]:
    """Turn the recurring-expense form into a draft, or None if incomplete."""
    if not form.name or not form.tag or not form.amount:
        return None

    amount = parse_amount(form.amount)
    if amount is None:
        return None

    try:
        return RecurringExpenseDraft(name=form.name, tag=form.tag, amount=amount)
    except ValidationError:
        return None


def _same_calendar_month(stamp: datetime, now: datetime) -> bool:
    """Compare year and month in now's timezone (local time when naive)."""
    if stamp.tzinfo is not None:
        if now.tzinfo is not None:
            stamp = stamp.astimezone(now.tzinfo)
        else:
            stamp = stamp.astimezone().replace(tzinfo=None)
    return stamp.year == now.year and stamp.month == now.month


def can_apply_recurring_expense(recurring: RecurringExpense, now: datetime) -> bool:
    """
    Monthly eligibility of a recurring expense.

    Never applied: eligible. Applied in the current calendar month: not
    eligible until the month changes.
    """
    if recurring.last_applied_at is None:
        return True
    return not _same_calendar_month(recurring.last_applied_at, now)
