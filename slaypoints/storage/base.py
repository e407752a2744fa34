from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

from slaypoints.core.config import get_settings


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# Placeholder value; the backend stores its own current UTC time in its place.
SERVER_TIMESTAMP = _ServerTimestamp()


class StorageError(Exception):
    """Any failure reported by a document store backend."""


class DocumentNotFoundError(StorageError):
    pass


class DocumentExistsError(StorageError):
    pass


# Largest integer a stored document can hold (BSON int64).
MAX_INT = 2**63 - 1


def check_int_range(value: Any) -> None:
    """StorageError if value holds an integer the backend cannot encode."""
    if isinstance(value, dict):
        for v in value.values():
            check_int_range(v)
    elif isinstance(value, (list, tuple)):
        for v in value:
            check_int_range(v)
    elif isinstance(value, int) and not isinstance(value, bool) and not -MAX_INT - 1 <= value <= MAX_INT:
        raise StorageError("integer out of 64-bit range")


def resolve_server_values(fields: dict[str, Any]) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {k: (now if v is SERVER_TIMESTAMP else v) for k, v in fields.items()}


class DocumentStore(ABC):
    @abstractmethod
    async def read_document(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return the document's fields, or None if there is no document under key."""
        ...

    @abstractmethod
    async def write_document(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        """Create or fully replace the document under key."""
        ...

    @abstractmethod
    async def create_document(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        """Create the document; DocumentExistsError if key or a unique field is taken."""
        ...

    @abstractmethod
    async def update_field(self, collection: str, key: str, field: str, value: Any) -> None:
        """Set one field; DocumentNotFoundError if there is no document under key."""
        ...

    @abstractmethod
    async def find_document(self, collection: str, field: str, value: Any) -> tuple[str, dict[str, Any]] | None:
        """Return (key, fields) of the first document whose field equals value."""
        ...

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None


def get_store() -> DocumentStore:
    settings = get_settings()
    if settings.storage_backend == "memory":
        from slaypoints.storage.memory import MemoryDocumentStore
        return MemoryDocumentStore()
    from slaypoints.storage.mongo import MongoDocumentStore
    return MongoDocumentStore()
