from functools import lru_cache
from typing import Any, List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


def _parse_cors_origins(v: Any) -> List[str]:
    if v is None or v == "":
        return _DEFAULT_CORS.copy()
    if isinstance(v, list):
        return [x for x in v if isinstance(x, str) and x.strip()]
    s = str(v).strip()
    if s.startswith("["):
        import json
        try:
            out = json.loads(s)
        except ValueError:
            return _DEFAULT_CORS.copy()
        return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
    return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")
    base_url: str = Field(default="http://localhost:8000", alias="BASE_URL")

    # Document store: "mongo" or "memory"
    storage_backend: Literal["mongo", "memory"] = Field(default="mongo", alias="STORAGE_BACKEND")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="slaypoints", alias="MONGODB_DB_NAME")

    # Email (Resend); empty key logs reset links instead of sending
    resend_api_key: str = Field(default="", alias="RESEND_API_KEY")
    email_from: str = Field(default="noreply@slaypoints.app", alias="EMAIL_FROM")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Accounts
    password_min_length: int = Field(default=6, alias="PASSWORD_MIN_LENGTH")
    password_reset_max_age_seconds: int = Field(default=3600, alias="PASSWORD_RESET_MAX_AGE_SECONDS")

    # Sessions
    session_cookie_name: str = "slaypoints_session"
    session_max_age_seconds: int = Field(default=7 * 24 * 3600, alias="SESSION_MAX_AGE_SECONDS")
    session_idle_timeout_seconds: int = Field(default=3600, alias="SESSION_IDLE_TIMEOUT_SECONDS")

    # UI
    default_theme: Literal["light", "dark"] = Field(default="light", alias="DEFAULT_THEME")


@lru_cache
def get_settings() -> Settings:
    return Settings()
