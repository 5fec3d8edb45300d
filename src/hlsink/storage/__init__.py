"""Storage package: the sink's storage contract and its backends."""

from .base import (
    ResourceType,
    Storage,
    StorageBackend,
    StorageContext,
    WriteMode,
)
from .file import FileStorage
from .memory import InMemoryStorage
from .s3 import S3Storage

__all__ = [
    "FileStorage",
    "InMemoryStorage",
    "ResourceType",
    "S3Storage",
    "Storage",
    "StorageBackend",
    "StorageContext",
    "WriteMode",
]
