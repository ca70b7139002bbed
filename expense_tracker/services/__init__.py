"""Services package."""

from expense_tracker.services.api import (
    ApiError,
    ExpenseApiClient,
    MalformedResponseError,
    NetworkError,
    ServerRejectedError,
)
from expense_tracker.services.storage import (
    CorruptStorageError,
    InMemoryTokenStorage,
    LocalFileTokenStorage,
    StorageError,
    TokenStorageInterface,
)

__all__ = [
    # API services
    "ApiError",
    "ExpenseApiClient",
    "MalformedResponseError",
    "NetworkError",
    "ServerRejectedError",
    # Storage services
    "CorruptStorageError",
    "InMemoryTokenStorage",
    "LocalFileTokenStorage",
    "StorageError",
    "TokenStorageInterface",
]
