"""
FairPrice Entitlements

Stateless, device-bound entitlements carried in a signed cookie.
"""

from .codec import (
    b64url_decode,
    b64url_encode,
    decode,
    decode_payload,
    encode_payload,
    join_token,
    split_token,
)
from .config import load_config
from .cookies import build_set_cookie, parse_cookie_header
from .entitlements import (
    compute_cookie_ttl,
    empty_record,
    grant_pass,
    grant_pass_until,
    grant_report_unlock,
    has_access,
    has_pass,
    has_report_unlock,
    load,
    now_seconds,
    prune,
)
from .errors import (
    ConfigError,
    DecodeError,
    EntitlementError,
    PaymentRequiredError,
    RedeemError,
    VerifyError,
)
from .redeem import apply_purchase, redeem
from .signing import Signer, sign, verify
from .store import EntitlementStore
from .types import (
    CURRENT_VERSION,
    EntitlementConfig,
    EntitlementRecord,
    IssuedCookie,
    PaymentConfirmation,
    PurchaseKind,
    RedeemResult,
    ReportUnlock,
)

__version__ = "1.0.0"

__all__ = [
    # Store
    "EntitlementStore",
    # Codec
    "b64url_encode",
    "b64url_decode",
    "encode_payload",
    "decode_payload",
    "split_token",
    "join_token",
    "decode",
    # Signing
    "Signer",
    "sign",
    "verify",
    # Operations
    "empty_record",
    "load",
    "prune",
    "grant_pass",
    "grant_pass_until",
    "grant_report_unlock",
    "has_pass",
    "has_report_unlock",
    "has_access",
    "compute_cookie_ttl",
    "now_seconds",
    # Redemption
    "apply_purchase",
    "redeem",
    # Cookies
    "parse_cookie_header",
    "build_set_cookie",
    # Config
    "load_config",
    # Errors
    "EntitlementError",
    "DecodeError",
    "VerifyError",
    "ConfigError",
    "RedeemError",
    "PaymentRequiredError",
    # Types
    "CURRENT_VERSION",
    "EntitlementConfig",
    "EntitlementRecord",
    "IssuedCookie",
    "PaymentConfirmation",
    "PurchaseKind",
    "RedeemResult",
    "ReportUnlock",
    # Version
    "__version__",
]
