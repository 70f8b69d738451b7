"""
Abstract Storage Interface

DESIGN DECISION: Persistence is a plain string key/value store.
The engine serializes its own snapshots, so a backend only has to:
1. Return the string stored under a key (or None)
2. Store a string under a key
3. Remove a key

This keeps backends trivial (in-memory dict, Google Sheets, a file,
the phone's async storage) and keeps business logic out of them.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorage(ABC):
    """
    Abstract interface for key/value persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Raises:
            StorageError: If the backend cannot be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
