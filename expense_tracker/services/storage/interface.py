"""
Abstract Token Storage Interface

DESIGN DECISION: We define an abstract interface for the one thing the
client persists: the opaque bearer token. This allows us to:
1. Keep it in a local file for the desktop/Streamlit app
2. Use in-memory storage for testing
3. Swap in a keyring or browser-backed store later

The interface mirrors a key/value local storage: get, set, remove.
Entity data is never persisted on the client.
"""

from abc import ABC, abstractmethod
from typing import Optional


class TokenStorageInterface(ABC):
    """
    Abstract interface for session token persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def get_token(self) -> Optional[str]:
        """
        Read the persisted token.

        Returns:
            The token if one is stored, None otherwise

        Raises:
            StorageError: If the storage cannot be read
        """
        pass

    @abstractmethod
    def set_token(self, token: str) -> None:
        """
        Persist a token, replacing any previous one.

        Raises:
            StorageError: If the token cannot be written
        """
        pass

    @abstractmethod
    def clear_token(self) -> None:
        """
        Remove the persisted token. Removing a missing token is not an error.

        Raises:
            StorageError: If the storage cannot be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStorageError(StorageError):
    """The storage exists but its content cannot be read back."""
    pass
