"""
FairPrice Entitlements Types

Typed models for the entitlement record, its configuration, and the
redemption flow. Wire names (v, passExp, reports, exp, h) are aliases so the
JSON payload stays compact while Python code uses descriptive names.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

from .cookies import build_set_cookie

# Only supported payload format version.
CURRENT_VERSION = 1

DEFAULT_COOKIE_NAME = "fp_ent"
DEFAULT_PASS_DAYS = 30
DEFAULT_REPORT_DAYS = 30
DEFAULT_MIN_COOKIE_TTL = 60

# RFC 6265 token characters
_COOKIE_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


# =============================================================================
# ENTITLEMENT RECORD
# =============================================================================

class ReportUnlock(BaseModel):
    """Unlock for a single item, optionally bound to a content fingerprint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    expiry: StrictInt = Field(default=0, alias="exp", ge=0)
    fingerprint: StrictStr = Field(default="", alias="h")


class EntitlementRecord(BaseModel):
    """
    Entitlement state carried inside the signed token.

    The record is rebuilt from the cookie on every request; it has no
    server-side lifetime.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: StrictInt = Field(default=CURRENT_VERSION, alias="v")
    pass_expiry: StrictInt = Field(default=0, alias="passExp", ge=0)
    report_unlocks: dict[str, ReportUnlock] = Field(default_factory=dict, alias="reports")

    @field_validator("version")
    @classmethod
    def _normalize_version(cls, value: int) -> int:
        # Older or unknown versions are read as the current layout.
        return CURRENT_VERSION

    def to_wire(self) -> dict[str, Any]:
        """Payload dict using the compact wire keys."""
        return self.model_dump(by_alias=True)


# =============================================================================
# CONFIGURATION
# =============================================================================

class EntitlementConfig(BaseModel):
    """Process-wide configuration, built once at startup."""

    cookie_secret: str = Field(min_length=1, repr=False)
    cookie_name: str = DEFAULT_COOKIE_NAME
    pass_days: int = Field(default=DEFAULT_PASS_DAYS, ge=1)
    report_days: int = Field(default=DEFAULT_REPORT_DAYS, ge=1)
    min_cookie_ttl: int = Field(default=DEFAULT_MIN_COOKIE_TTL, ge=1)
    environment: str = "development"
    secure_cookies: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_secure_cookies(cls, data: Any) -> Any:
        # Production serves over TLS, so cookies are Secure unless told otherwise.
        if isinstance(data, dict) and data.get("secure_cookies") is None:
            data = dict(data)
            data["secure_cookies"] = data.get("environment") == "production"
        return data

    @field_validator("cookie_name")
    @classmethod
    def _check_cookie_name(cls, value: str) -> str:
        if not _COOKIE_NAME_RE.fullmatch(value):
            raise ValueError(f"Invalid cookie name: {value!r}")
        return value


# =============================================================================
# ISSUED COOKIE
# =============================================================================

class IssuedCookie(BaseModel):
    """A freshly signed token ready to be sent back as a cookie."""

    name: str
    value: str
    max_age: int
    secure: bool = False

    def header_value(self) -> str:
        """Render as a Set-Cookie header value."""
        return build_set_cookie(self.name, self.value, self.max_age, secure=self.secure)


# =============================================================================
# REDEMPTION
# =============================================================================

class PurchaseKind(str, Enum):
    """What a checkout session paid for."""

    PASS = "pass"
    REPORT = "report"


class PaymentConfirmation(BaseModel):
    """
    Outcome of the external payment-verification step.

    `kind` stays a plain string: the payment provider's metadata is not
    trusted to hold a known value, and unknown kinds are rejected at redeem
    time rather than at parse time.
    """

    kind: str
    paid: bool = False
    item_id: str = ""
    fingerprint: str = ""
    # Billing period end for subscription passes (Unix seconds)
    period_end: Optional[int] = None


class RedeemResult(BaseModel):
    """Result of redeeming a confirmed purchase."""

    kind: str
    message: str
    now: int
    cookie: IssuedCookie
    record: EntitlementRecord
