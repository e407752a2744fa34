"""Audit log for account and balance events."""

import uuid
from typing import Any

from slaypoints.core.logging import get_logger
from slaypoints.storage.base import SERVER_TIMESTAMP, DocumentStore, StorageError

AUDIT_COLLECTION = "audit_logs"

log = get_logger(__name__)


async def log_event(
    store: DocumentStore,
    user_id: str | None,
    event_type: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append to audit_logs collection. A failed append is logged, never raised."""
    try:
        await store.create_document(
            AUDIT_COLLECTION,
            str(uuid.uuid4()),
            {
                "user_id": user_id,
                "event_type": event_type,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "metadata": metadata or {},
                "created_at": SERVER_TIMESTAMP,
            },
        )
    except StorageError as e:
        log.warning("audit_write_failed", event_type=event_type, user_id=user_id, error=str(e))
