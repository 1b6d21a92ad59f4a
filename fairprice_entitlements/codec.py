"""
FairPrice Entitlements Token Codec

Serializes the entitlement record to and from its transport form:

    <payload_segment>.<signature_segment>

Both segments are base64url without padding, so the token is safe in URLs and
cookie values without further escaping. The payload segment is compact JSON
using the wire keys {"v", "passExp", "reports": {id: {"exp", "h"}}}.

Decoding is total: every malformed input raises DecodeError.
"""

from __future__ import annotations

import base64
import binascii
import json
import re

from pydantic import ValidationError

from .errors import DecodeError
from .types import EntitlementRecord

SEPARATOR = "."

# Browsers cap a single cookie at roughly 4 KB.
MAX_TOKEN_LENGTH = 4096

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")


# =============================================================================
# BASE64URL
# =============================================================================

def b64url_encode(data: bytes) -> str:
    """Base64url-encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """
    Decode an unpadded base64url segment.

    Only the URL-safe alphabet is accepted; padding, whitespace and the
    standard '+' and '/' characters are rejected.
    """
    if not isinstance(segment, str) or not _B64URL_RE.fullmatch(segment):
        raise DecodeError("Segment is not base64url")
    if len(segment) % 4 == 1:
        raise DecodeError("Segment has an impossible base64 length")

    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Segment is not base64url") from e


# =============================================================================
# PAYLOAD
# =============================================================================

def _canonical_json(obj: dict) -> str:
    """Canonical JSON serialization (sorted keys, no whitespace)."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


def encode_payload(record: EntitlementRecord) -> str:
    """Encode a record into its payload segment."""
    return b64url_encode(_canonical_json(record.to_wire()).encode("utf-8"))


def decode_payload(segment: str) -> EntitlementRecord:
    """
    Decode a payload segment into a record.

    Missing fields take their defaults; fields of the wrong type are rejected
    rather than coerced.
    """
    raw = b64url_decode(segment)

    try:
        obj = json.loads(raw.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        raise DecodeError("Payload is not valid JSON") from e

    if not isinstance(obj, dict):
        raise DecodeError("Payload is not a JSON object")

    try:
        return EntitlementRecord.model_validate(obj)
    except ValidationError as e:
        raise DecodeError(f"Payload has invalid fields ({e.error_count()} errors)") from e


# =============================================================================
# TOKEN
# =============================================================================

def split_token(token: str) -> tuple[str, str]:
    """Split a token into (payload_segment, signature_segment)."""
    if not isinstance(token, str) or not token:
        raise DecodeError("Token is empty")
    if len(token) > MAX_TOKEN_LENGTH:
        raise DecodeError("Token is too long")

    parts = token.split(SEPARATOR)
    if len(parts) != 2:
        raise DecodeError(f"Token has {len(parts)} segments, expected 2")

    payload_segment, signature_segment = parts
    if not payload_segment or not signature_segment:
        raise DecodeError("Token has an empty segment")
    if not _B64URL_RE.fullmatch(payload_segment) or not _B64URL_RE.fullmatch(signature_segment):
        raise DecodeError("Token segment is not base64url")

    return payload_segment, signature_segment


def join_token(payload_segment: str, signature_segment: str) -> str:
    """Join the two segments into a token."""
    return f"{payload_segment}{SEPARATOR}{signature_segment}"


def decode(token: str) -> EntitlementRecord:
    """
    Decode a token's payload WITHOUT checking its signature.

    Only for inspection; anything that grants access must go through
    Signer.verify_token().
    """
    payload_segment, _ = split_token(token)
    return decode_payload(payload_segment)
