from typing import Any

from beanie import Document
from bson.errors import InvalidDocument
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from slaypoints.core.logging import get_logger
from slaypoints.db.init import COLLECTION_MODELS, init_db
from slaypoints.storage.base import (
    DocumentExistsError,
    DocumentNotFoundError,
    DocumentStore,
    StorageError,
    resolve_server_values,
)

log = get_logger(__name__)

_INTERNAL_FIELDS = {"id", "revision_id"}

# BSON encoding failures (e.g. ints beyond 8 bytes) are not PyMongoErrors
_WRITE_ERRORS = (PyMongoError, ValidationError, OverflowError, InvalidDocument)


class MongoDocumentStore(DocumentStore):
    """Documents in MongoDB through the beanie models registered in COLLECTION_MODELS."""

    def __init__(self) -> None:
        self._client = None

    async def open(self) -> None:
        self._client = await init_db()
        log.info("document_store_opened", backend="mongo")

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _model(self, collection: str) -> type[Document]:
        try:
            return COLLECTION_MODELS[collection]
        except KeyError:
            raise StorageError(f"Unknown collection: {collection}") from None

    @staticmethod
    def _fields(doc: Document) -> dict[str, Any]:
        return doc.model_dump(exclude=_INTERNAL_FIELDS)

    async def read_document(self, collection: str, key: str) -> dict[str, Any] | None:
        model = self._model(collection)
        try:
            doc = await model.get(key)
        except PyMongoError as e:
            raise StorageError(f"read {collection}/{key} failed: {e}") from e
        return self._fields(doc) if doc else None

    async def write_document(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        model = self._model(collection)
        try:
            await model(id=key, **resolve_server_values(fields)).save()
        except DuplicateKeyError as e:
            raise DocumentExistsError(str(e)) from e
        except _WRITE_ERRORS as e:
            raise StorageError(f"write {collection}/{key} failed: {e}") from e

    async def create_document(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        model = self._model(collection)
        try:
            await model(id=key, **resolve_server_values(fields)).insert()
        except DuplicateKeyError as e:
            raise DocumentExistsError(str(e)) from e
        except _WRITE_ERRORS as e:
            raise StorageError(f"create {collection}/{key} failed: {e}") from e

    async def update_field(self, collection: str, key: str, field: str, value: Any) -> None:
        model = self._model(collection)
        if field not in model.model_fields or field in _INTERNAL_FIELDS:
            raise StorageError(f"Unknown field {collection}.{field}")
        value = resolve_server_values({field: value})[field]
        try:
            doc = await model.get(key)
            if doc is None:
                raise DocumentNotFoundError(f"{collection}/{key}")
            # validate against the model before touching the database
            model.model_validate({**doc.model_dump(), field: value})
            await doc.set({field: value})
        except _WRITE_ERRORS as e:
            raise StorageError(f"update {collection}/{key}.{field} failed: {e}") from e

    async def find_document(self, collection: str, field: str, value: Any) -> tuple[str, dict[str, Any]] | None:
        model = self._model(collection)
        try:
            doc = await model.find_one({field: value})
        except PyMongoError as e:
            raise StorageError(f"find {collection}.{field} failed: {e}") from e
        return (doc.id, self._fields(doc)) if doc else None
