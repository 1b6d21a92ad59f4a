"""
FairPrice Entitlements Signer/Verifier

HMAC-SHA256 over the exact payload segment bytes. The payload is readable by
the client; the MAC only guarantees it has not been altered.

NORMATIVE: MAC comparison MUST stay constant-time (hmac.compare_digest).
"""

from __future__ import annotations

import hashlib
import hmac

from .codec import b64url_encode, decode_payload, encode_payload, join_token, split_token
from .errors import ConfigError, DecodeError, VerifyError
from .types import EntitlementRecord


def _key_bytes(secret: str | bytes) -> bytes:
    if not secret:
        raise ConfigError("Cookie signing secret is required")
    if isinstance(secret, str):
        return secret.encode("utf-8")
    return bytes(secret)


def sign(payload: bytes, secret: str | bytes) -> bytes:
    """Compute the HMAC-SHA256 of payload under secret."""
    return hmac.new(_key_bytes(secret), payload, hashlib.sha256).digest()


def verify(payload: bytes, mac: bytes, secret: str | bytes) -> bool:
    """Recompute the MAC and compare in constant time."""
    return hmac.compare_digest(sign(payload, secret), mac)


class Signer:
    """
    Signs and verifies entitlement tokens with a fixed secret.

    Built once at startup from configuration. Rotating the secret means
    building a new Signer, which invalidates every token issued before.
    """

    def __init__(self, secret: str | bytes) -> None:
        self._key = _key_bytes(secret)

    def __repr__(self) -> str:
        return "Signer(secret=***)"

    def sign(self, payload: bytes) -> bytes:
        """MAC over the exact payload bytes."""
        return sign(payload, self._key)

    def verify(self, payload: bytes, mac: bytes) -> bool:
        """Constant-time check of mac against the payload."""
        return verify(payload, mac, self._key)

    def sign_token(self, record: EntitlementRecord) -> str:
        """Encode a record and sign it into a `payload.signature` token."""
        payload_segment = encode_payload(record)
        signature = self.sign(payload_segment.encode("ascii"))
        return join_token(payload_segment, b64url_encode(signature))

    def verify_token(self, token: str) -> EntitlementRecord:
        """
        Verify a token and return its decoded record.

        The signature is checked before the payload is parsed, so attacker
        controlled JSON is never decoded unless it was signed by us.

        Raises:
            VerifyError: On any signature mismatch or malformed token.
        """
        try:
            payload_segment, signature_segment = split_token(token)
        except DecodeError as e:
            raise VerifyError("Token is malformed") from e

        # Compare the encoded form so non-canonical base64 spellings of the
        # same MAC bytes are rejected too.
        expected = b64url_encode(self.sign(payload_segment.encode("ascii")))
        if not hmac.compare_digest(expected.encode("ascii"), signature_segment.encode("ascii")):
            raise VerifyError("Token signature mismatch")

        try:
            return decode_payload(payload_segment)
        except DecodeError as e:
            raise VerifyError("Token payload is malformed") from e
