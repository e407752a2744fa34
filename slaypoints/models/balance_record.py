from datetime import datetime

from beanie import Document
from pydantic import Field


class BalanceRecord(Document):
    """Point balance per account, keyed by the account uid."""
    id: str  # account uid
    email: str
    points: int = Field(default=0, ge=0)
    created_at: datetime

    class Settings:
        name = "userPoints"
