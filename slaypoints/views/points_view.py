"""State and action handlers behind the points page.

A PointsView belongs to one browser session. Its state changes only through
the handlers below and through the auth-state listener it registers on mount.
Handlers never raise. A failure is logged and shown in `state.error`, and the
handler returns the exception so the JSON API can answer with it.
"""

from typing import Literal

from pydantic import BaseModel

from slaypoints.core.exceptions import AppError, AuthError, DataSyncError, InvalidAdjustmentError
from slaypoints.core.logging import get_logger
from slaypoints.services import points as points_service
from slaypoints.services.auth_client import AuthClient, Unsubscribe
from slaypoints.services.auth_provider import AuthUser
from slaypoints.storage.base import DocumentStore

log = get_logger(__name__)

Theme = Literal["light", "dark"]


class ViewState(BaseModel):
    user: AuthUser | None = None
    email: str = ""  # login form prefill
    points: int = 0
    loading: bool = True
    error: str = ""
    info_message: str = ""
    theme: Theme = "light"
    points_adjustment: str = ""


class PointsView:
    def __init__(self, auth: AuthClient, store: DocumentStore, theme: Theme = "light") -> None:
        self.auth = auth
        self.store = store
        self.state = ViewState(theme=theme)
        self._unsubscribe: Unsubscribe | None = None
        self._sign_in_error: DataSyncError | None = None

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    async def mount(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = await self.auth.on_auth_state_changed(self._on_auth_state_changed)

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _begin(self) -> None:
        self.state.error = ""
        self.state.info_message = ""
        self._sign_in_error = None

    def _fail(self, exc: AppError, message: str) -> AppError:
        self.state.error = message
        return exc

    async def _on_auth_state_changed(self, user: AuthUser | None) -> None:
        self.state.loading = True
        self.state.error = ""
        self._sign_in_error = None
        if user:
            self.state.user = user
            try:
                self.state.points = await points_service.ensure_balance_record(self.store, user.uid, user.email)
            except DataSyncError as e:
                # stays signed in with a local balance of 0 until the record can be created
                self.state.points = 0
                self._sign_in_error = e
                self._fail(e, e.message)
        else:
            self.state.user = None
            self.state.points = 0
            self.state.points_adjustment = ""
        self.state.loading = False

    async def handle_sign_up(self, email: str, password: str) -> AppError | None:
        self._begin()
        self.state.email = email
        try:
            await self.auth.create_user_with_email_and_password(email, password)
        except AuthError as e:
            log.warning("sign_up_failed", code=e.code, email=email)
            return self._fail(e, f"Sign up failed: {e.message}")
        self.state.email = ""
        return self._sign_in_error

    async def handle_login(self, email: str, password: str) -> AppError | None:
        self._begin()
        self.state.email = email
        try:
            await self.auth.sign_in_with_email_and_password(email, password)
        except AuthError as e:
            log.warning("login_failed", code=e.code, email=email)
            return self._fail(e, f"Login failed: {e.message}")
        self.state.email = ""
        return self._sign_in_error

    async def handle_logout(self) -> AppError | None:
        self._begin()
        try:
            await self.auth.sign_out()
        except AppError as e:
            log.warning("logout_failed", code=e.code)
            return self._fail(e, "Logout failed.")
        return None

    async def handle_adjust_points(self, raw: str) -> AppError | None:
        user = self.state.user
        if not user or raw == "":
            return None
        self._begin()
        self.state.points_adjustment = raw
        try:
            self.state.points = await points_service.adjust_balance(
                self.store, user.uid, self.state.points, raw
            )
        except DataSyncError as e:
            self._fail(e, e.message)
            await self._resync(user)
            return e
        except InvalidAdjustmentError as e:
            log.info("adjustment_rejected", user_id=user.uid, adjustment=raw[:40])
            return self._fail(e, e.message)
        self.state.points_adjustment = ""
        return None

    async def _resync(self, user: AuthUser) -> None:
        """Take whatever balance is persisted now, which may include another session's write."""
        try:
            balance = await points_service.read_balance(self.store, user.uid)
        except DataSyncError:
            log.warning("points_resync_failed", user_id=user.uid)
            return
        if balance is not None:
            self.state.points = balance

    async def handle_refresh_points(self) -> AppError | None:
        user = self.state.user
        if not user:
            return None
        self._begin()
        try:
            balance = await points_service.read_balance(self.store, user.uid)
        except DataSyncError as e:
            return self._fail(e, e.message)
        if balance is not None:
            self.state.points = balance
        return None

    async def handle_password_reset(self, email: str) -> AppError | None:
        self._begin()
        self.state.email = email
        if not email:
            return self._fail(
                AuthError("auth/missing-email", "Please enter an email address."),
                "Please enter your email address to reset the password.",
            )
        try:
            await self.auth.send_password_reset_email(email)
        except AuthError as e:
            log.warning("password_reset_failed", code=e.code, email=email)
            return self._fail(e, f"Password reset failed: {e.message}")
        self.state.info_message = "Password reset email sent! Check your inbox."
        return None

    async def handle_password_reset_confirm(self, token: str, password: str) -> AppError | None:
        self._begin()
        try:
            await self.auth.confirm_password_reset(token, password)
        except AuthError as e:
            log.warning("password_reset_confirm_failed", code=e.code)
            return self._fail(e, f"Password reset failed: {e.message}")
        self.state.info_message = "Password updated. You can now log in."
        return None

    def toggle_theme(self) -> None:
        self.state.theme = "dark" if self.state.theme == "light" else "light"
