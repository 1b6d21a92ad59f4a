"""
FairPrice Entitlements Store

Request-scoped pipeline between the cookie and the record:

  cookie → verify → decode → prune → (query | grant) → prune → sign → cookie

Holds no entitlement state of its own; all state round-trips through the
client.
"""

from __future__ import annotations

import logging

from . import entitlements
from .codec import MAX_TOKEN_LENGTH
from .cookies import parse_cookie_header
from .signing import Signer
from .types import EntitlementConfig, EntitlementRecord, IssuedCookie

logger = logging.getLogger(__name__)


class EntitlementStore:
    """
    Loads and saves entitlement records for one deployment.

    Usage:
        store = EntitlementStore(load_config())
        record = store.load_from_cookie_header(request.headers.get("cookie"))
        if not entitlements.has_access(record, quote_id, quote_hash):
            ...  # deny with a generic "payment required"
    """

    def __init__(self, config: EntitlementConfig) -> None:
        self.config = config
        self.signer = Signer(config.cookie_secret)

    @property
    def cookie_name(self) -> str:
        return self.config.cookie_name

    def load(self, raw_token: str | None, now: int | None = None) -> EntitlementRecord:
        """Verified, pruned record for a raw token; empty if the token is untrusted."""
        return entitlements.load(raw_token, self.signer, now)

    def load_from_cookie_header(
        self,
        header: str | None,
        now: int | None = None,
    ) -> EntitlementRecord:
        """Load the record from a raw Cookie request header."""
        token = parse_cookie_header(header).get(self.cookie_name)
        return self.load(token, now)

    def save(self, record: EntitlementRecord, now: int | None = None) -> IssuedCookie:
        """
        Prune, sign and package a record as a cookie.

        Max-Age covers the longest-lived entitlement, with config.min_cookie_ttl
        as the floor. The token never exceeds MAX_TOKEN_LENGTH, so load() will
        always accept it.
        """
        now = entitlements.resolve_now(now)
        record = entitlements.prune(record, now)

        record, token = self._fit_token(record)
        ttl = entitlements.compute_cookie_ttl(record, now, self.config.min_cookie_ttl)

        logger.debug(
            f"Issued entitlement cookie: pass={'yes' if record.pass_expiry else 'no'}, "
            f"reports={len(record.report_unlocks)}, max_age={ttl}"
        )

        return IssuedCookie(
            name=self.cookie_name,
            value=token,
            max_age=ttl,
            secure=self.config.secure_cookies,
        )

    def _fit_token(self, record: EntitlementRecord) -> tuple[EntitlementRecord, str]:
        """
        Sign the record, dropping the soonest-expiring report unlocks until the
        token fits in a cookie. The pass is never dropped.
        """
        token = self.signer.sign_token(record)
        if len(token) <= MAX_TOKEN_LENGTH:
            return record, token

        unlocks = dict(record.report_unlocks)
        by_expiry = sorted(unlocks, key=lambda item_id: unlocks[item_id].expiry)
        dropped = 0

        for item_id in by_expiry:
            del unlocks[item_id]
            dropped += 1
            record = record.model_copy(update={"report_unlocks": dict(unlocks)})
            token = self.signer.sign_token(record)
            if len(token) <= MAX_TOKEN_LENGTH:
                break

        logger.warning(
            f"Entitlement cookie over {MAX_TOKEN_LENGTH} chars; "
            f"dropped {dropped} soonest-expiring report unlocks"
        )
        return record, token
