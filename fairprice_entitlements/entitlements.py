"""
FairPrice Entitlements Operations

Pure functions over EntitlementRecord: load, prune, grant, query, and cookie
TTL. Every operation takes `now` (Unix seconds) once and never mutates its
input record.

Per-item lifecycle:
  UNGRANTED → GRANTED(expiry, fingerprint) → EXPIRED (removed on prune)
There is no revoke.
"""

from __future__ import annotations

import logging
import time

from .errors import VerifyError
from .signing import Signer
from .types import DEFAULT_MIN_COOKIE_TTL, EntitlementRecord, ReportUnlock

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60


def now_seconds() -> int:
    """Current wall-clock time in whole Unix seconds."""
    return int(time.time())


def resolve_now(now: int | float | None = None) -> int:
    """`now` as whole Unix seconds; the wall clock when None."""
    return now_seconds() if now is None else int(now)


def _duration_seconds(duration_days: int | float) -> int:
    seconds = int(duration_days * DAY_SECONDS)
    if seconds <= 0:
        raise ValueError("Duration must be positive")
    return seconds


def empty_record() -> EntitlementRecord:
    """A record with no pass and no report unlocks."""
    return EntitlementRecord()


# =============================================================================
# LOAD / PRUNE
# =============================================================================

def load(raw_token: str | None, signer: Signer, now: int | None = None) -> EntitlementRecord:
    """
    Rebuild the record from a raw cookie token.

    Absence of a valid entitlement is not an error: a missing, malformed or
    tampered token yields an empty record. The result is always pruned.
    """
    now = resolve_now(now)

    if not raw_token:
        return empty_record()

    try:
        record = signer.verify_token(raw_token)
    except VerifyError as e:
        logger.debug(f"Ignoring untrusted entitlement token: {e}")
        return empty_record()

    return prune(record, now)


def prune(record: EntitlementRecord, now: int | None = None) -> EntitlementRecord:
    """
    Drop every report unlock with expiry <= now.

    An expired pass is reset to 0 as well; has_pass() would reject it anyway.
    """
    now = resolve_now(now)

    live = {
        item_id: unlock
        for item_id, unlock in record.report_unlocks.items()
        if unlock.expiry > now
    }
    pass_expiry = record.pass_expiry if record.pass_expiry > now else 0

    return record.model_copy(
        update={"pass_expiry": pass_expiry, "report_unlocks": live}
    )


# =============================================================================
# GRANTS
# =============================================================================

def grant_pass(
    record: EntitlementRecord,
    duration_days: int,
    now: int | None = None,
) -> EntitlementRecord:
    """
    Grant a pass lasting duration_days from now.

    Monotonic: never shortens a longer pass already held, so replayed or
    duplicate grants are harmless.
    """
    now = resolve_now(now)
    return grant_pass_until(record, now + _duration_seconds(duration_days), now)


def grant_pass_until(
    record: EntitlementRecord,
    expiry: int,
    now: int | None = None,
) -> EntitlementRecord:
    """Grant a pass valid until an absolute expiry (e.g. a billing period end)."""
    now = resolve_now(now)
    record = prune(record, now)
    return record.model_copy(update={"pass_expiry": max(record.pass_expiry, int(expiry))})


def grant_report_unlock(
    record: EntitlementRecord,
    item_id: str,
    duration_days: int,
    fingerprint: str = "",
    now: int | None = None,
) -> EntitlementRecord:
    """
    Unlock the full report for one item.

    Sets or overwrites the entry with a fresh expiry and the given fingerprint.
    Other items are untouched.
    """
    if not item_id:
        raise ValueError("item_id is required")

    now = resolve_now(now)
    record = prune(record, now)

    unlocks = dict(record.report_unlocks)
    unlocks[item_id] = ReportUnlock(
        expiry=now + _duration_seconds(duration_days),
        fingerprint=fingerprint or "",
    )
    return record.model_copy(update={"report_unlocks": unlocks})


# =============================================================================
# QUERIES
# =============================================================================

def has_pass(record: EntitlementRecord, now: int | None = None) -> bool:
    """True if the record holds an unexpired pass."""
    return record.pass_expiry > resolve_now(now)


def has_report_unlock(
    record: EntitlementRecord,
    item_id: str,
    current_fingerprint: str = "",
    now: int | None = None,
) -> bool:
    """
    True if item_id is unlocked and unexpired.

    When both the stored and the current fingerprint are non-empty they must
    match exactly; an empty fingerprint on either side matches anything.
    """
    unlock = record.report_unlocks.get(item_id)
    if unlock is None:
        return False

    if unlock.expiry <= resolve_now(now):
        return False

    if unlock.fingerprint and current_fingerprint and unlock.fingerprint != current_fingerprint:
        return False

    return True


def has_access(
    record: EntitlementRecord,
    item_id: str,
    current_fingerprint: str = "",
    now: int | None = None,
) -> bool:
    """Full-report gate: a pass, or a matching unlock for this item."""
    now = resolve_now(now)
    return has_pass(record, now) or has_report_unlock(record, item_id, current_fingerprint, now)


# =============================================================================
# COOKIE TTL
# =============================================================================

def compute_cookie_ttl(
    record: EntitlementRecord,
    now: int | None = None,
    min_ttl: int = DEFAULT_MIN_COOKIE_TTL,
) -> int:
    """
    Cookie Max-Age covering the longest-lived entitlement.

    A record with nothing live still gets a short cookie of min_ttl seconds.
    """
    if min_ttl <= 0:
        raise ValueError("Minimum cookie TTL must be positive")

    now = resolve_now(now)
    max_expiry = max(
        record.pass_expiry,
        *(unlock.expiry for unlock in record.report_unlocks.values()),
        now + min_ttl,
    )
    return max(min_ttl, max_expiry - now)
