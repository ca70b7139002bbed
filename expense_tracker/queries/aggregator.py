"""
Period Filter and Aggregation Engine

DESIGN DECISION: Filtering is a pure function of (expenses, period, today).
Nothing is cached; the dashboard recomputes from the full in-memory list
every time it renders, so the numbers can never drift from the list.

Periods:
- DAY:    expenses dated today
- WEEK:   Monday..Sunday of the current week
- MONTH:  first..last day of the current month
- YEAR:   January 1..December 31 of the current year
- CUSTOM: the chosen range; everything when either bound is unset

All ranges are inclusive on both ends.
"""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from expense_tracker.models.expense import (
    DateRange,
    Expense,
    ExpenseSummary,
    Period,
    PeriodFilter,
    RecurringExpense,
)


def period_range(period_filter: PeriodFilter, today: date) -> Optional[DateRange]:
    """
    Compute the inclusive bounds for the selected period.

    Returns None when no bound applies (custom range not fully set).
    """
    period = period_filter.period

    if period == Period.DAY:
        return DateRange(start=today, end=today)
    elif period == Period.WEEK:
        start = today - timedelta(days=today.weekday())
        return DateRange(start=start, end=start + timedelta(days=6))
    elif period == Period.MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return DateRange(
            start=today.replace(day=1),
            end=today.replace(day=last_day),
        )
    elif period == Period.YEAR:
        return DateRange(
            start=date(today.year, 1, 1),
            end=date(today.year, 12, 31),
        )
    elif period == Period.CUSTOM:
        if period_filter.custom_start is None or period_filter.custom_end is None:
            return None
        # A reversed range is kept as-is and matches nothing
        return DateRange(start=period_filter.custom_start, end=period_filter.custom_end)

    raise ValueError(f"Unsupported period: {period!r}")


def filter_expenses(
    expenses: Iterable[Expense],
    period_filter: PeriodFilter,
    today: date,
) -> list[Expense]:
    """Keep the expenses inside the selected period, in their original order."""
    bounds = period_range(period_filter, today)
    if bounds is None:
        return list(expenses)
    return [expense for expense in expenses if bounds.contains(expense.expense_date)]


def totals_by_tag(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Sum amounts per tag."""
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.tag] = totals.get(expense.tag, Decimal("0")) + expense.amount
    return totals


def summarize_expenses(
    expenses: Iterable[Expense],
    period_filter: PeriodFilter,
    today: date,
) -> ExpenseSummary:
    """
    Everything the summary card needs for the selected period.

    Expenses come back newest first; same-day expenses keep list order.
    """
    kept = filter_expenses(expenses, period_filter, today)
    by_tag = totals_by_tag(kept)
    return ExpenseSummary(
        period=period_filter.period,
        date_range=period_range(period_filter, today),
        expenses=tuple(sorted(kept, key=lambda e: e.expense_date, reverse=True)),
        # Summed from the subtotals so both round identically at any magnitude
        total=sum(by_tag.values(), Decimal("0")),
        by_tag=by_tag,
    )


def available_tags(
    expenses: Iterable[Expense],
    recurring_expenses: Iterable[RecurringExpense],
) -> list[str]:
    """Every tag in use, first-seen order, for form suggestions."""
    tags: dict[str, None] = {}
    for item in (*expenses, *recurring_expenses):
        tags.setdefault(item.tag, None)
    return list(tags)
