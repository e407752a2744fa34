from datetime import datetime

from beanie import Document, Indexed


class Account(Document):
    id: str  # uid
    email: Indexed(str, unique=True)
    password_hash: str
    session_version: int = 0  # bumped on password reset
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Settings:
        name = "accounts"
