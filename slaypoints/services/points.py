"""Point balances: one record per account in the userPoints collection.

Adjustments are read-then-write against the caller's cached balance with no
version check, so two sessions adjusting the same account race and the last
write wins.
"""

import re

from slaypoints.core.audit import log_event
from slaypoints.core.exceptions import DataSyncError, InvalidAdjustmentError
from slaypoints.core.logging import get_logger
from slaypoints.storage.base import MAX_INT, SERVER_TIMESTAMP, DocumentStore, StorageError

log = get_logger(__name__)

USER_POINTS_COLLECTION = "userPoints"

# Balances and deltas must fit the store's 64-bit integers.
MAX_POINTS = MAX_INT

# optional whitespace, optional sign, digits; anything after the digits is ignored
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def parse_adjustment(raw: str | int) -> int:
    """Parse a signed integer delta, e.g. "-15", " +3", "12abc" (-> 12), "3.7" (-> 3)."""
    if isinstance(raw, bool):
        raise InvalidAdjustmentError()
    if isinstance(raw, int):
        value = raw
    else:
        m = _LEADING_INT_RE.match(raw or "")
        if not m:
            raise InvalidAdjustmentError(details={"adjustment": raw})
        digits = m.group(1).lstrip("+-").lstrip("0")
        if len(digits) > len(str(MAX_POINTS)):
            raise InvalidAdjustmentError(
                "That adjustment is too large.", details={"adjustment": raw[:40]}
            )
        value = int(m.group(1))
    if abs(value) > MAX_POINTS:
        raise InvalidAdjustmentError("That adjustment is too large.")
    return value


def clamp_balance(current: int, delta: int) -> int:
    return max(0, current + delta)


async def read_balance(store: DocumentStore, account_id: str) -> int | None:
    """Return the persisted balance, or None if the account has no record yet."""
    try:
        doc = await store.read_document(USER_POINTS_COLLECTION, account_id)
    except StorageError as e:
        log.error("points_read_failed", user_id=account_id, error=str(e))
        raise DataSyncError("Failed to load points.") from e
    return int(doc.get("points", 0)) if doc else None


async def ensure_balance_record(store: DocumentStore, account_id: str, email: str) -> int:
    """Return the account's balance, creating a zero-balance record on first sign-in."""
    balance = await read_balance(store, account_id)
    if balance is not None:
        return balance
    try:
        await store.write_document(
            USER_POINTS_COLLECTION,
            account_id,
            {"email": email, "points": 0, "created_at": SERVER_TIMESTAMP},
        )
    except StorageError as e:
        log.error("points_record_create_failed", user_id=account_id, error=str(e))
        raise DataSyncError("Failed to initialize user data.") from e
    log.info("points_record_created", user_id=account_id, email=email)
    await log_event(store, account_id, "points_record_created", "userPoints", account_id, {"email": email})
    return 0


async def adjust_balance(store: DocumentStore, account_id: str, current_balance: int, delta: str | int) -> int:
    """
    Apply delta to current_balance, floored at zero, and persist it.
    Returns the new balance. Raises InvalidAdjustmentError before any write if delta doesn't parse.
    """
    amount = parse_adjustment(delta)
    new_balance = clamp_balance(current_balance, amount)
    if new_balance > MAX_POINTS:
        raise InvalidAdjustmentError("That adjustment would take your points past the maximum.")
    try:
        await store.update_field(USER_POINTS_COLLECTION, account_id, "points", new_balance)
    except StorageError as e:
        log.error("points_update_failed", user_id=account_id, error=str(e))
        raise DataSyncError("Failed to update points.") from e
    log.info("points_adjusted", user_id=account_id, amount=amount, balance_after=new_balance)
    await log_event(
        store,
        account_id,
        "points_adjusted",
        "userPoints",
        account_id,
        {"amount": amount, "balance_before": current_balance, "balance_after": new_balance},
    )
    return new_balance
