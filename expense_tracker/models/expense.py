"""
Core Data Models for Expense Tracker

These models define the schemas for everything the API sends and receives.
They are designed to:
1. Parse the server's camelCase JSON into typed Python objects
2. Keep money as Decimal from the moment it enters the client
3. Be immutable, so state can only change through reducers

DESIGN DECISION: The server owns every entity. These models never
invent ids or timestamps; they only mirror what the API returned.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Period(str, Enum):
    """
    Time window used to filter the dashboard.

    DESIGN DECISION: A closed enumeration instead of free strings, so
    every branch that depends on the period can be exhaustive.
    """
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


class AuthMode(str, Enum):
    """Which form the unauthenticated screen shows."""
    LOGIN = "login"
    REGISTER = "register"


# =============================================================================
# PARSING HELPERS
# =============================================================================

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp as sent by the API.

    The server emits nanosecond fractions, which datetime cannot hold,
    so the fraction is cut to microseconds first. Returns None when the
    value is empty or unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = _FRACTION_RE.sub(r"\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def to_decimal(value: Any) -> Any:
    """Convert JSON numbers to Decimal through their string form."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return value
    return value


# =============================================================================
# API ENTITIES
# =============================================================================

class AuthUser(BaseModel):
    """The signed-in principal."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str
    email: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator('created_at', mode='before')
    @classmethod
    def parse_created_at(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)


class Expense(BaseModel):
    """
    A concrete, dated expense.

    Created by the server (directly or by applying a recurring expense)
    and never edited afterwards; it can only be deleted.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str
    tag: str
    amount: Decimal
    expense_date: date = Field(..., alias="date")

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return to_decimal(v)

    @field_validator('expense_date', mode='before')
    @classmethod
    def drop_time_component(cls, v: Any) -> Any:
        """Accept full timestamps by keeping only the calendar date."""
        if isinstance(v, str) and len(v) > 10 and v[10] in "T ":
            return v[:10]
        return v


class RecurringExpense(BaseModel):
    """
    A monthly expense template.

    Applying it asks the server to create an Expense for today and to
    stamp last_applied_at / last_expense_id on the template.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str
    tag: str
    amount: Decimal
    last_applied_at: Optional[datetime] = Field(default=None, alias="lastAppliedAt")
    last_expense_id: Optional[int] = Field(default=None, alias="lastExpenseId")

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        return to_decimal(v)

    @field_validator('last_applied_at', mode='before')
    @classmethod
    def parse_last_applied(cls, v: Any) -> Optional[datetime]:
        # An unreadable stamp counts as "never applied"
        return parse_timestamp(v)


class AuthResponse(BaseModel):
    """Body of a successful login or registration."""

    token: str = Field(..., min_length=1)
    user: AuthUser


class AppliedRecurringExpense(BaseModel):
    """Result of applying a recurring expense."""

    expense: Optional[Expense] = None
    recurring_expense: Optional[RecurringExpense] = None


# =============================================================================
# OUTGOING PAYLOADS
# =============================================================================

class ExpenseDraft(BaseModel):
    """A validated expense ready to be sent to the API."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(..., min_length=1)
    tag: str = Field(..., min_length=1)
    amount: Decimal
    expense_date: date

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "tag": self.tag,
            "amount": float(self.amount),
            "date": self.expense_date.isoformat(),
        }


class RecurringExpenseDraft(BaseModel):
    """A validated recurring expense ready to be sent to the API."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(..., min_length=1)
    tag: str = Field(..., min_length=1)
    amount: Decimal

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "tag": self.tag,
            "amount": float(self.amount),
        }


# =============================================================================
# FILTER / AGGREGATION MODELS
# =============================================================================

class DateRange(BaseModel):
    """Inclusive calendar range."""
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def is_empty(self) -> bool:
        return self.end < self.start


class PeriodFilter(BaseModel):
    """The period selected on the dashboard."""
    model_config = ConfigDict(frozen=True)

    period: Period = Period.MONTH
    custom_start: Optional[date] = None
    custom_end: Optional[date] = None


class ExpenseSummary(BaseModel):
    """
    What the dashboard shows for the selected period.

    expenses is sorted newest first, the order they are displayed in.
    """
    model_config = ConfigDict(frozen=True)

    period: Period
    date_range: Optional[DateRange] = Field(
        default=None,
        description="Bounds applied, None when every expense is kept"
    )
    expenses: tuple[Expense, ...] = ()
    total: Decimal = Decimal("0")
    by_tag: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.expenses)

    @model_validator(mode='after')
    def check_partition(self) -> 'ExpenseSummary':
        """Per-tag subtotals must add up to the total."""
        if sum(self.by_tag.values(), Decimal("0")) != self.total:
            raise ValueError("Tag subtotals do not add up to the total")
        return self
