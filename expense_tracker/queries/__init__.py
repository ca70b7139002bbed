"""Period filtering and aggregation package."""

from expense_tracker.queries.aggregator import (
    available_tags,
    filter_expenses,
    period_range,
    summarize_expenses,
    totals_by_tag,
)

__all__ = [
    "available_tags",
    "filter_expenses",
    "period_range",
    "summarize_expenses",
    "totals_by_tag",
]
