"""In-memory key/value storage, for tests and ephemeral sessions."""

from typing import Optional

from fuel_tracker.services.storage.interface import KeyValueStorage


class InMemoryStorage(KeyValueStorage):

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)
