"""Email/password accounts kept in the document store."""

import re
from datetime import datetime, timezone
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from slaypoints.core.audit import log_event
from slaypoints.core.config import get_settings
from slaypoints.core.exceptions import AuthError
from slaypoints.core.logging import get_logger
from slaypoints.core.security import (
    create_password_reset_token,
    generate_uid,
    hash_password,
    load_password_reset_token,
    verify_password,
)
from slaypoints.services.mailer import Mailer
from slaypoints.storage.base import SERVER_TIMESTAMP, DocumentExistsError, DocumentStore, StorageError

log = get_logger(__name__)

ACCOUNTS_COLLECTION = "accounts"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthUser(BaseModel):
    uid: str
    email: str
    session_version: int = 0


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _internal_error(e: Exception) -> AuthError:
    log.error("auth_backend_error", error=str(e))
    return AuthError("auth/internal-error", "An internal error has occurred. Please try again.")


class AuthProvider:
    def __init__(self, store: DocumentStore, mailer: Mailer | None = None) -> None:
        self.store = store
        self.mailer = mailer or Mailer()

    def _check_email(self, email: str) -> str:
        email = normalize_email(email)
        if not email:
            raise AuthError("auth/missing-email", "Please enter an email address.")
        if not _EMAIL_RE.match(email):
            raise AuthError("auth/invalid-email", "The email address is badly formatted.")
        return email

    def _check_password(self, password: str) -> None:
        if not password:
            raise AuthError("auth/missing-password", "Please enter a password.")
        min_length = get_settings().password_min_length
        if len(password) < min_length:
            raise AuthError("auth/weak-password", f"Password should be at least {min_length} characters.")

    async def _find_by_email(self, email: str) -> tuple[str, dict] | None:
        try:
            return await self.store.find_document(ACCOUNTS_COLLECTION, "email", email)
        except StorageError as e:
            raise _internal_error(e) from e

    async def create_account(self, email: str, password: str) -> AuthUser:
        email = self._check_email(email)
        self._check_password(password)
        if await self._find_by_email(email):
            raise AuthError("auth/email-already-in-use", "The email address is already in use by another account.")
        uid = generate_uid()
        try:
            await self.store.create_document(
                ACCOUNTS_COLLECTION,
                uid,
                {
                    "email": email,
                    "password_hash": hash_password(password),
                    "session_version": 0,
                    "last_login_at": SERVER_TIMESTAMP,
                    "created_at": SERVER_TIMESTAMP,
                    "updated_at": SERVER_TIMESTAMP,
                },
            )
        except DocumentExistsError as e:
            raise AuthError(
                "auth/email-already-in-use", "The email address is already in use by another account."
            ) from e
        except StorageError as e:
            raise _internal_error(e) from e
        log.info("account_created", user_id=uid, email=email)
        await log_event(self.store, uid, "account_created", "account", uid, {"email": email})
        return AuthUser(uid=uid, email=email)

    async def sign_in(self, email: str, password: str) -> AuthUser:
        email = self._check_email(email)
        if not password:
            raise AuthError("auth/missing-password", "Please enter a password.")
        found = await self._find_by_email(email)
        if not found or not verify_password(password, found[1].get("password_hash", "")):
            log.info("sign_in_rejected", email=email)
            raise AuthError("auth/invalid-credential", "Invalid email or password.")
        uid, account = found
        try:
            await self.store.update_field(ACCOUNTS_COLLECTION, uid, "last_login_at", SERVER_TIMESTAMP)
        except StorageError as e:
            raise _internal_error(e) from e
        log.info("user_signed_in", user_id=uid, email=email)
        await log_event(self.store, uid, "sign_in", "account", uid, {"email": email})
        return AuthUser(uid=uid, email=email, session_version=account.get("session_version", 0))

    async def get_user(self, uid: str) -> AuthUser | None:
        try:
            account = await self.store.read_document(ACCOUNTS_COLLECTION, uid)
        except StorageError as e:
            raise _internal_error(e) from e
        if not account:
            return None
        return AuthUser(uid=uid, email=account["email"], session_version=account.get("session_version", 0))

    async def record_sign_out(self, user: AuthUser) -> None:
        log.info("user_signed_out", user_id=user.uid)
        await log_event(self.store, user.uid, "sign_out", "account", user.uid)

    async def send_password_reset(self, email: str) -> None:
        """Mail a reset link. Unknown addresses succeed silently so account existence isn't revealed."""
        email = self._check_email(email)
        found = await self._find_by_email(email)
        if not found:
            log.info("password_reset_unknown_email", email=email)
            return
        uid, account = found
        settings = get_settings()
        token = create_password_reset_token(uid, account.get("session_version", 0))
        link = f"{settings.base_url.rstrip('/')}/password-reset/confirm?{urlencode({'token': token})}"
        try:
            await self.mailer.send_password_reset_email(
                email, link, valid_minutes=settings.password_reset_max_age_seconds // 60
            )
        except httpx.HTTPError as e:
            raise _internal_error(e) from e
        log.info("password_reset_requested", user_id=uid)
        await log_event(self.store, uid, "password_reset_requested", "account", uid)

    async def confirm_password_reset(self, token: str, new_password: str) -> AuthUser:
        invalid = AuthError("auth/invalid-action-code", "The password reset link is invalid or has expired.")
        payload = load_password_reset_token(token or "")
        if not payload:
            raise invalid
        uid = payload["uid"]
        try:
            account = await self.store.read_document(ACCOUNTS_COLLECTION, uid)
        except StorageError as e:
            raise _internal_error(e) from e
        # a used link no longer matches: the previous reset bumped session_version
        if not account or account.get("session_version", 0) != payload.get("sv"):
            raise invalid
        self._check_password(new_password)
        session_version = account.get("session_version", 0) + 1
        account.update(
            password_hash=hash_password(new_password),
            session_version=session_version,
            updated_at=datetime.now(timezone.utc),
        )
        try:
            await self.store.write_document(ACCOUNTS_COLLECTION, uid, account)
        except StorageError as e:
            raise _internal_error(e) from e
        log.info("password_reset_completed", user_id=uid)
        await log_event(self.store, uid, "password_reset_completed", "account", uid)
        return AuthUser(uid=uid, email=account["email"], session_version=session_version)
