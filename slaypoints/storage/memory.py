import copy
from typing import Any

from slaypoints.storage.base import (
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentStore,
    check_int_range,
    resolve_server_values,
)

# Mirrors the unique indexes declared on the Mongo models.
UNIQUE_FIELDS: dict[str, tuple[str, ...]] = {"accounts": ("email",)}


class MemoryDocumentStore(DocumentStore):
    """In-process store for development and tests. Data lives as long as the process."""

    def __init__(self, unique_fields: dict[str, tuple[str, ...]] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._unique_fields = UNIQUE_FIELDS if unique_fields is None else unique_fields

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _check_unique(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        for field in self._unique_fields.get(collection, ()):
            if field not in fields:
                continue
            for other_key, doc in self._collection(collection).items():
                if other_key != key and doc.get(field) == fields[field]:
                    raise DocumentExistsError(f"{collection}.{field} already taken")

    async def read_document(self, collection: str, key: str) -> dict[str, Any] | None:
        doc = self._collection(collection).get(key)
        return copy.deepcopy(doc) if doc is not None else None

    async def write_document(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        fields = resolve_server_values(fields)
        check_int_range(fields)
        self._check_unique(collection, key, fields)
        self._collection(collection)[key] = copy.deepcopy(fields)

    async def create_document(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        if key in self._collection(collection):
            raise DocumentExistsError(f"{collection}/{key} already exists")
        await self.write_document(collection, key, fields)

    async def update_field(self, collection: str, key: str, field: str, value: Any) -> None:
        doc = self._collection(collection).get(key)
        if doc is None:
            raise DocumentNotFoundError(f"{collection}/{key}")
        check_int_range(value)
        doc.update(resolve_server_values({field: copy.deepcopy(value)}))

    async def find_document(self, collection: str, field: str, value: Any) -> tuple[str, dict[str, Any]] | None:
        for key, doc in self._collection(collection).items():
            if doc.get(field) == value:
                return key, copy.deepcopy(doc)
        return None

    def clear(self) -> None:
        self._collections.clear()
