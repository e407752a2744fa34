import os
import re
from typing import Any, AsyncGenerator
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# In-process document store; no MongoDB needed
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["RESEND_API_KEY"] = ""
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")

from slaypoints.services.auth_client import AuthClient  # noqa: E402
from slaypoints.services.auth_provider import AuthProvider  # noqa: E402
from slaypoints.services.mailer import Mailer  # noqa: E402
from slaypoints.storage.base import StorageError  # noqa: E402
from slaypoints.storage.memory import MemoryDocumentStore  # noqa: E402


class RecordingMailer(Mailer):
    def __init__(self) -> None:
        super().__init__(api_key="", sender="noreply@test.slaypoints.app")
        self.sent: list[dict[str, str]] = []

    async def send(self, to: str, subject: str, html: str, text: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})

    def last_reset_token(self) -> str:
        link = re.search(r"(https?://\S+/password-reset/confirm\?\S+)", self.sent[-1]["text"]).group(1)
        return parse_qs(urlparse(link).query)["token"][0]


class FlakyStore(MemoryDocumentStore):
    """Memory store whose writes to chosen collections fail like an unreachable backend."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()
        self.fail_updates: set[str] = set()

    async def read_document(self, collection: str, key: str) -> dict[str, Any] | None:
        if collection in self.fail_reads:
            raise StorageError("backend unavailable")
        return await super().read_document(collection, key)

    async def write_document(self, collection: str, key: str, fields: dict[str, Any]) -> None:
        if collection in self.fail_writes:
            raise StorageError("backend unavailable")
        await super().write_document(collection, key, fields)

    async def update_field(self, collection: str, key: str, field: str, value: Any) -> None:
        if collection in self.fail_updates:
            raise StorageError("backend unavailable")
        await super().update_field(collection, key, field, value)


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def provider(store, mailer) -> AuthProvider:
    return AuthProvider(store, mailer)


@pytest.fixture
def auth_client(provider) -> AuthClient:
    return AuthClient(provider)


@pytest_asyncio.fixture
async def client(mailer) -> AsyncGenerator[AsyncClient, None]:
    from slaypoints.main import app
    # ASGITransport does not send lifespan events; run startup/shutdown here
    async with app.router.lifespan_context(app):
        app.state.provider.mailer = mailer
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            follow_redirects=True,
        ) as ac:
            yield ac
