import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from slaypoints.core.config import get_settings
from slaypoints.models.account import Account
from slaypoints.models.audit_log import AuditLog
from slaypoints.models.balance_record import BalanceRecord

# collection name -> model; the store addresses documents by collection name
COLLECTION_MODELS = {
    "userPoints": BalanceRecord,
    "accounts": Account,
    "audit_logs": AuditLog,
}

DOCUMENT_MODELS = list(COLLECTION_MODELS.values())


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


async def init_db() -> AsyncIOMotorClient:
    settings = get_settings()
    kwargs = {}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    return client
