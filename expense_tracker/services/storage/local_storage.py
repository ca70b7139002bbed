"""
Local Token Storage Implementations

DESIGN DECISION: The token lives in a small JSON object on disk, keyed by
a fixed name ("authToken" by default). It behaves like browser local
storage: other keys in the same file are preserved, and a missing file
simply means "no session".

TRADEOFFS:
- Plain file, readable by the local user (acceptable for a personal app)
- No locking (one client session is assumed)
"""

import json
from pathlib import Path
from typing import Optional

from expense_tracker.config import get_settings
from expense_tracker.services.storage.interface import (
    CorruptStorageError,
    StorageError,
    TokenStorageInterface,
)


class LocalFileTokenStorage(TokenStorageInterface):
    """
    JSON-file implementation of token storage.

    The file holds a flat {key: value} object shared with other keys.
    """

    def __init__(self, path: Optional[Path] = None, key: Optional[str] = None):
        settings = get_settings().session
        self._path = Path(path) if path is not None else settings.token_path
        self._key = key or settings.token_key

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict:
        """Read the whole key/value object (empty if the file is missing)."""
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read token storage {self._path}: {e}")

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStorageError(f"Token storage {self._path} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise CorruptStorageError(f"Token storage {self._path} must contain a JSON object")
        return data

    def _write_all(self, data: dict) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write token storage {self._path}: {e}")

    def get_token(self) -> Optional[str]:
        token = self._read_all().get(self._key)
        if isinstance(token, str) and token:
            return token
        return None

    def set_token(self, token: str) -> None:
        if not token:
            raise StorageError("Refusing to store an empty token")
        data = self._read_all()
        data[self._key] = token
        self._write_all(data)

    def clear_token(self) -> None:
        if not self._path.exists():
            return
        try:
            data = self._read_all()
        except CorruptStorageError:
            # Unreadable content cannot hold a usable token; start over
            data = {}
        data.pop(self._key, None)
        self._write_all(data)


class InMemoryTokenStorage(TokenStorageInterface):
    """Token storage that lives only as long as the process (tests, demos)."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get_token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        if not token:
            raise StorageError("Refusing to store an empty token")
        self._token = token

    def clear_token(self) -> None:
        self._token = None
