"""Live browser sessions: one auth client and one mounted PointsView per session id."""

import time
from dataclasses import dataclass, field
from typing import Any

from slaypoints.core.exceptions import AuthError
from slaypoints.core.logging import get_logger
from slaypoints.core.security import generate_session_id
from slaypoints.services.auth_client import AuthClient
from slaypoints.services.auth_provider import AuthProvider
from slaypoints.storage.base import DocumentStore
from slaypoints.views.points_view import PointsView, Theme

log = get_logger(__name__)


@dataclass
class Session:
    id: str
    auth: AuthClient
    view: PointsView
    last_seen: float = field(default_factory=time.monotonic)

    def cookie_payload(self) -> dict[str, Any]:
        user = self.auth.current_user
        payload: dict[str, Any] = {"sid": self.id, "theme": self.view.state.theme}
        if user:
            payload["uid"] = user.uid
            payload["sv"] = user.session_version
        return payload


class SessionRegistry:
    def __init__(
        self,
        provider: AuthProvider,
        store: DocumentStore,
        idle_timeout: float,
        default_theme: Theme = "light",
    ) -> None:
        self.provider = provider
        self.store = store
        self.idle_timeout = idle_timeout
        self.default_theme = default_theme
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def get_or_create(self, restore: dict[str, Any] | None = None) -> Session:
        """
        Return the live session named in the cookie payload, or build a new one.
        A rebuilt session signs the cookie's user back in (unless the password was
        reset since) and keeps the cookie's theme.
        """
        self.prune()
        restore = restore or {}
        sid = restore.get("sid")
        session = self._sessions.get(sid) if sid else None
        if session:
            session.last_seen = time.monotonic()
            return session

        theme = restore.get("theme") if restore.get("theme") in ("light", "dark") else self.default_theme
        auth = AuthClient(self.provider)
        view = PointsView(auth, self.store, theme=theme)
        session = Session(id=sid or generate_session_id(), auth=auth, view=view)
        self._sessions[session.id] = session
        await view.mount()
        uid = restore.get("uid")
        if uid:
            try:
                await auth.restore(uid, restore.get("sv", 0))
            except AuthError as e:
                log.warning("session_restore_failed", session_id=session.id, user_id=uid, code=e.code)
        log.info("session_started", session_id=session.id, restored=bool(uid))
        return session

    def prune(self) -> int:
        """Tear down sessions idle longer than idle_timeout; return how many were dropped."""
        cutoff = time.monotonic() - self.idle_timeout
        expired = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for sid in expired:
            self.close(sid)
        return len(expired)

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session:
            session.view.unmount()
            log.info("session_closed", session_id=session_id)

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.close(sid)
