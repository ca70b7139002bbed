"""Expense API services package."""

from expense_tracker.services.api.client import (
    ApiError,
    ExpenseApiClient,
    MalformedResponseError,
    NetworkError,
    ServerRejectedError,
)

__all__ = [
    "ApiError",
    "ExpenseApiClient",
    "MalformedResponseError",
    "NetworkError",
    "ServerRejectedError",
]
