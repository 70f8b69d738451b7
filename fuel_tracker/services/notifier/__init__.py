"""
Notifier Services Package

Delivery transports for notifications. The engine depends only on
NotifierInterface.
"""

from fuel_tracker.services.notifier.interface import (
    NotifierError,
    NotifierInterface,
    ScheduleTrigger,
)
from fuel_tracker.services.notifier.log_notifier import LogNotifier

__all__ = [
    # Interface
    "NotifierInterface",
    "ScheduleTrigger",
    # Exceptions
    "NotifierError",
    # Implementations
    "LogNotifier",
]
