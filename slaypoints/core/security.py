import hashlib
import secrets
from typing import Any

import bcrypt
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from slaypoints.core.config import get_settings

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _serializer(salt: str) -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(
        settings.secret_key,
        salt=salt,
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


def get_session_serializer() -> URLSafeTimedSerializer:
    return _serializer("slaypoints-session")


def create_session_cookie(payload: dict[str, Any]) -> str:
    return get_session_serializer().dumps(payload)


def load_session_cookie(cookie_value: str) -> dict[str, Any] | None:
    max_age = get_settings().session_max_age_seconds
    try:
        payload = get_session_serializer().loads(cookie_value, max_age=max_age)
    except (BadSignature, SignatureExpired):
        return None
    return payload if isinstance(payload, dict) else None


def create_password_reset_token(uid: str, session_version: int) -> str:
    return _serializer("slaypoints-password-reset").dumps({"uid": uid, "sv": session_version})


def load_password_reset_token(token: str) -> dict[str, Any] | None:
    """Return {uid, sv} or None if the token is tampered with or older than the reset window."""
    max_age = get_settings().password_reset_max_age_seconds
    try:
        payload = _serializer("slaypoints-password-reset").loads(token, max_age=max_age)
    except (BadSignature, SignatureExpired):
        return None
    if not isinstance(payload, dict) or "uid" not in payload:
        return None
    return payload


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], password_hash.encode("ascii"))
    except ValueError:
        # malformed stored hash
        return False


def generate_uid() -> str:
    return secrets.token_urlsafe(21)


def generate_session_id() -> str:
    return secrets.token_urlsafe(24)
