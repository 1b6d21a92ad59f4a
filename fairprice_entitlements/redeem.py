"""
FairPrice Entitlements Redemption

Turns a confirmed purchase into a grant on the device's cookie.

The core never contacts the payment provider. The caller supplies
`confirm_payment`, an async collaborator that resolves a checkout session id
into a PaymentConfirmation once payment is fully settled.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from . import entitlements
from .errors import PaymentRequiredError, RedeemError
from .store import EntitlementStore
from .types import (
    EntitlementConfig,
    EntitlementRecord,
    PaymentConfirmation,
    PurchaseKind,
    RedeemResult,
)

logger = logging.getLogger(__name__)

ConfirmPayment = Callable[[str], Awaitable[PaymentConfirmation]]


def apply_purchase(
    record: EntitlementRecord,
    confirmation: PaymentConfirmation,
    config: EntitlementConfig,
    now: int | None = None,
) -> tuple[EntitlementRecord, str]:
    """
    Apply a confirmed purchase to a record.

    - pass:   billing period end when supplied, else config.pass_days
    - report: config.report_days for confirmation.item_id, bound to its fingerprint

    Returns:
        (updated_record, user-facing message)

    Raises:
        PaymentRequiredError: If the payment is not settled.
        RedeemError: If the purchase kind is unknown or a report has no item id.
    """
    if not confirmation.paid:
        raise PaymentRequiredError("Payment not completed.")

    now = entitlements.resolve_now(now)

    if confirmation.kind == PurchaseKind.PASS.value:
        if confirmation.period_end:
            if confirmation.period_end <= now:
                logger.warning(
                    f"Billing period ended before redemption ({confirmation.period_end} <= {now}); "
                    "pass not extended"
                )
                message = "Billing period has already ended; pass not extended."
                return entitlements.prune(record, now), message
            record = entitlements.grant_pass_until(record, confirmation.period_end, now)
            message = "Pass activated on this device (until the current billing period ends)."
        else:
            record = entitlements.grant_pass(record, config.pass_days, now)
            message = f"Pass activated on this device ({config.pass_days} days)."
        return record, message

    if confirmation.kind == PurchaseKind.REPORT.value:
        if not confirmation.item_id:
            raise RedeemError("Missing item id for report purchase.")
        record = entitlements.grant_report_unlock(
            record,
            confirmation.item_id,
            config.report_days,
            confirmation.fingerprint,
            now,
        )
        message = f"Report unlocked for this item on this device ({config.report_days} days)."
        return record, message

    raise RedeemError("Unknown purchase kind.")


async def redeem(
    session_id: str,
    raw_token: str | None,
    *,
    store: EntitlementStore,
    confirm_payment: ConfirmPayment,
    now: int | None = None,
) -> RedeemResult:
    """
    Redeem a checkout session into a fresh entitlement cookie.

    Loads the device's current record from raw_token, applies the confirmed
    purchase and signs the result. Grants are monotonic, so redeeming the
    same session twice is harmless.
    """
    if not session_id:
        raise RedeemError("Missing session_id")

    confirmation = await confirm_payment(session_id)

    now = entitlements.resolve_now(now)
    record = store.load(raw_token, now)
    record, message = apply_purchase(record, confirmation, store.config, now)
    cookie = store.save(record, now)

    logger.info(f"Redeemed {confirmation.kind} purchase (max_age={cookie.max_age})")

    return RedeemResult(
        kind=confirmation.kind,
        message=message,
        now=now,
        cookie=cookie,
        record=entitlements.prune(record, now),
    )
