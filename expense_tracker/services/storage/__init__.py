"""
Storage Services Package

Provides the abstract token storage interface and its implementations.
The session token is the only thing the client persists.
"""

from expense_tracker.services.storage.interface import (
    CorruptStorageError,
    StorageError,
    TokenStorageInterface,
)
from expense_tracker.services.storage.local_storage import (
    InMemoryTokenStorage,
    LocalFileTokenStorage,
)

__all__ = [
    # Interfaces
    "TokenStorageInterface",
    # Exceptions
    "CorruptStorageError",
    "StorageError",
    # Implementations
    "InMemoryTokenStorage",
    "LocalFileTokenStorage",
]
