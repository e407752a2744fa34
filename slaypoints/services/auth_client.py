"""Per-session auth client: current user plus auth-state listeners."""

from typing import Awaitable, Callable

from slaypoints.core.logging import get_logger
from slaypoints.services.auth_provider import AuthProvider, AuthUser

log = get_logger(__name__)

AuthStateListener = Callable[[AuthUser | None], Awaitable[None]]
Unsubscribe = Callable[[], None]


class AuthClient:
    def __init__(self, provider: AuthProvider) -> None:
        self.provider = provider
        self.current_user: AuthUser | None = None
        self._listeners: list[AuthStateListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def on_auth_state_changed(self, listener: AuthStateListener) -> Unsubscribe:
        """Register listener and call it right away with the current user.

        Returns a callable that removes the listener; calling it again does nothing.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        await listener(self.current_user)
        return unsubscribe

    async def _set_user(self, user: AuthUser | None) -> None:
        previous = self.current_user
        self.current_user = user
        if (previous.uid if previous else None) == (user.uid if user else None):
            return
        for listener in list(self._listeners):
            await listener(user)

    async def create_user_with_email_and_password(self, email: str, password: str) -> AuthUser:
        user = await self.provider.create_account(email, password)
        await self._set_user(user)
        return user

    async def sign_in_with_email_and_password(self, email: str, password: str) -> AuthUser:
        user = await self.provider.sign_in(email, password)
        await self._set_user(user)
        return user

    async def sign_out(self) -> None:
        user = self.current_user
        if user is not None:
            await self.provider.record_sign_out(user)
        await self._set_user(None)

    async def send_password_reset_email(self, email: str) -> None:
        await self.provider.send_password_reset(email)

    async def confirm_password_reset(self, token: str, new_password: str) -> AuthUser:
        return await self.provider.confirm_password_reset(token, new_password)

    async def restore(self, uid: str, session_version: int) -> bool:
        """Sign back in from a session cookie. False if the account is gone or its password was reset."""
        user = await self.provider.get_user(uid)
        if user is None or user.session_version != session_version:
            log.info("session_restore_refused", user_id=uid)
            return False
        await self._set_user(user)
        return True
