"""Services package."""

from fuel_tracker.services.notifier import (
    LogNotifier,
    NotifierError,
    NotifierInterface,
    ScheduleTrigger,
)
from fuel_tracker.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsKeyValueStorage,
    InMemoryStorage,
    KeyValueStorage,
    StorageError,
)

__all__ = [
    # Notifier services
    "LogNotifier",
    "NotifierError",
    "NotifierInterface",
    "ScheduleTrigger",
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsKeyValueStorage",
    "InMemoryStorage",
    "KeyValueStorage",
    "StorageError",
]
