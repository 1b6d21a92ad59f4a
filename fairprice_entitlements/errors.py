"""
FairPrice Entitlements Errors

Exception taxonomy for the entitlement token.

DecodeError and VerifyError never leave the load path: an untrustworthy
token is indistinguishable from no token at all.
"""

from __future__ import annotations


class EntitlementError(Exception):
    """Base class for entitlement errors."""
    pass


class DecodeError(EntitlementError):
    """Raised when a token or payload is structurally malformed."""
    pass


class VerifyError(EntitlementError):
    """Raised when a token's signature does not match, or it cannot be trusted."""
    pass


class ConfigError(EntitlementError):
    """Raised when configuration is missing or invalid at startup."""
    pass


class RedeemError(EntitlementError):
    """Raised when a confirmed purchase cannot be turned into a grant."""
    pass


class PaymentRequiredError(RedeemError):
    """Raised when the payment behind a redemption is not settled."""
    pass
