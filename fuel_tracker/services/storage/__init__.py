"""
Storage Services Package

Provides the key/value storage interface and its implementations:
in-memory (tests) and Google Sheets.
"""

from fuel_tracker.services.storage.interface import (
    ConnectionError,
    KeyValueStorage,
    StorageError,
)
from fuel_tracker.services.storage.memory import InMemoryStorage
from fuel_tracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
)

__all__ = [
    # Interface
    "KeyValueStorage",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStorage",
    "InMemoryStorage",
]
