"""In-process storage backend."""

from typing import Dict

from hlsink.storage.base import StorageContext


class InMemoryStorage:
    """Keeps every resource in a dict, for tests and in-process serving."""

    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}

    async def store(self, name: str, content: bytes, context: StorageContext) -> None:
        self.files[name] = bytes(content)

    async def remove(self, name: str, context: StorageContext) -> None:
        self.files.pop(name, None)

    def read_text(self, name: str) -> str:
        return self.files[name].decode("utf-8")
