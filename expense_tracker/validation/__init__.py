"""Client-side validation package."""

from expense_tracker.validation.validator import (
    ALREADY_APPLIED_MESSAGE,
    MIN_PASSWORD_LENGTH,
    MISSING_AUTH_FIELDS_MESSAGE,
    SHORT_PASSWORD_MESSAGE,
    can_apply_recurring_expense,
    parse_amount,
    parse_form_date,
    validate_auth_form,
    validate_expense_form,
    validate_recurring_form,
)

__all__ = [
    "ALREADY_APPLIED_MESSAGE",
    "MIN_PASSWORD_LENGTH",
    "MISSING_AUTH_FIELDS_MESSAGE",
    "SHORT_PASSWORD_MESSAGE",
    "can_apply_recurring_expense",
    "parse_amount",
    "parse_form_date",
    "validate_auth_form",
    "validate_expense_form",
    "validate_recurring_form",
]
