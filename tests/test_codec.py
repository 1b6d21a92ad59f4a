"""
Token Codec Tests

Tests for base64url segments, payload encoding and total decoding.
"""

import base64
import json

import pytest

from fairprice_entitlements.codec import (
    MAX_TOKEN_LENGTH,
    b64url_decode,
    b64url_encode,
    decode,
    decode_payload,
    encode_payload,
    join_token,
    split_token,
)
from fairprice_entitlements.errors import DecodeError
from fairprice_entitlements.types import EntitlementRecord, ReportUnlock


def raw_segment(obj) -> str:
    """Payload segment for an arbitrary JSON value."""
    return b64url_encode(json.dumps(obj).encode("utf-8"))


# =============================================================================
# BASE64URL
# =============================================================================

class TestBase64Url:
    def test_encode_has_no_padding(self):
        assert b64url_encode(b"a") == "YQ"
        assert b64url_encode(b"ab") == "YWI"

    def test_encode_uses_url_safe_alphabet(self):
        encoded = b64url_encode(b"\xfb\xff\xfe")
        assert encoded == "-__-"
        assert "+" not in encoded and "/" not in encoded

    def test_decode_accepts_unpadded(self):
        assert b64url_decode("YWI") == b"ab"

    def test_decode_rejects_standard_alphabet(self):
        with pytest.raises(DecodeError):
            b64url_decode("+//+")

    def test_decode_rejects_padding(self):
        with pytest.raises(DecodeError):
            b64url_decode("YQ==")

    def test_decode_rejects_impossible_length(self):
        with pytest.raises(DecodeError, match="impossible"):
            b64url_decode("YWJjZ")

    def test_decode_rejects_trailing_newline(self):
        with pytest.raises(DecodeError):
            b64url_decode("YWI\n")

    def test_decode_rejects_non_string(self):
        with pytest.raises(DecodeError):
            b64url_decode(b"YWI")  # type: ignore[arg-type]


# =============================================================================
# PAYLOAD
# =============================================================================

class TestEncodePayload:
    def test_uses_wire_keys(self):
        record = EntitlementRecord(
            pass_expiry=1700000000,
            report_unlocks={"Q1": ReportUnlock(expiry=1700000100, fingerprint="abc")},
        )
        obj = json.loads(b64url_decode(encode_payload(record)))
        assert obj == {
            "v": 1,
            "passExp": 1700000000,
            "reports": {"Q1": {"exp": 1700000100, "h": "abc"}},
        }

    def test_is_compact_and_deterministic(self):
        record = EntitlementRecord(pass_expiry=5)
        raw = b64url_decode(encode_payload(record)).decode()
        assert " " not in raw
        assert encode_payload(record) == encode_payload(EntitlementRecord(pass_expiry=5))

    def test_segment_is_cookie_safe(self):
        record = EntitlementRecord(
            report_unlocks={"quote/with space;=": ReportUnlock(expiry=9, fingerprint="é")},
        )
        segment = encode_payload(record)
        assert all(c.isalnum() or c in "-_" for c in segment)


class TestDecodePayload:
    def test_decodes_encoded_record(self):
        record = EntitlementRecord(
            pass_expiry=42,
            report_unlocks={"Q1": ReportUnlock(expiry=43, fingerprint="h1")},
        )
        assert decode_payload(encode_payload(record)) == record

    def test_missing_fields_take_defaults(self):
        record = decode_payload(raw_segment({}))
        assert record.version == 1
        assert record.pass_expiry == 0
        assert record.report_unlocks == {}

    def test_missing_report_fields_take_defaults(self):
        record = decode_payload(raw_segment({"reports": {"Q1": {}}}))
        assert record.report_unlocks["Q1"].expiry == 0
        assert record.report_unlocks["Q1"].fingerprint == ""

    def test_unknown_version_is_normalized(self):
        assert decode_payload(raw_segment({"v": 7})).version == 1

    def test_unknown_keys_are_ignored(self):
        record = decode_payload(raw_segment({"passExp": 3, "extra": [1, 2]}))
        assert record.pass_expiry == 3

    @pytest.mark.parametrize(
        "payload",
        [
            {"passExp": "1700000000"},
            {"passExp": 1.5},
            {"passExp": True},
            {"passExp": None},
            {"passExp": -1},
            {"v": "1"},
            {"reports": []},
            {"reports": "Q1"},
            {"reports": {"Q1": 5}},
            {"reports": {"Q1": {"exp": "5"}}},
            {"reports": {"Q1": {"exp": -5}}},
            {"reports": {"Q1": {"exp": 5, "h": 123}}},
        ],
    )
    def test_rejects_wrong_types(self, payload):
        with pytest.raises(DecodeError, match="invalid fields"):
            decode_payload(raw_segment(payload))

    @pytest.mark.parametrize("payload", [[], "text", 5, None])
    def test_rejects_non_object(self, payload):
        with pytest.raises(DecodeError, match="not a JSON object"):
            decode_payload(raw_segment(payload))

    def test_rejects_invalid_json(self):
        with pytest.raises(DecodeError, match="not valid JSON"):
            decode_payload(b64url_encode(b"{not json"))

    def test_rejects_invalid_utf8(self):
        with pytest.raises(DecodeError):
            decode_payload(b64url_encode(b"\xff\xfe{}"))

    def test_rejects_nan(self):
        with pytest.raises(DecodeError):
            decode_payload(b64url_encode(b'{"passExp": NaN}'))


# =============================================================================
# TOKEN
# =============================================================================

class TestSplitToken:
    def test_splits_two_segments(self):
        assert split_token("abc.def") == ("abc", "def")

    def test_join_is_inverse(self):
        assert split_token(join_token("abc", "def")) == ("abc", "def")

    @pytest.mark.parametrize(
        "token",
        ["", "abc", "a.b.c", ".def", "abc.", "ab c.def", "abc.de=f", "abc.def\n", "ab%2E.cd"],
    )
    def test_rejects_malformed(self, token):
        with pytest.raises(DecodeError):
            split_token(token)

    def test_rejects_non_string(self):
        with pytest.raises(DecodeError):
            split_token(None)  # type: ignore[arg-type]

    def test_rejects_oversized(self):
        with pytest.raises(DecodeError, match="too long"):
            split_token("a" * MAX_TOKEN_LENGTH + ".b")


class TestDecode:
    def test_decodes_payload_without_signature_check(self):
        record = EntitlementRecord(pass_expiry=99)
        token = join_token(encode_payload(record), "bm90LWEtc2ln")
        assert decode(token) == record

    @pytest.mark.parametrize(
        "token",
        [
            "garbage",
            "!!!.???",
            f"{base64.urlsafe_b64encode(b'[]').decode().rstrip('=')}.sig",
            "e30.sig.extra",
        ],
    )
    def test_never_crashes_on_garbage(self, token):
        with pytest.raises(DecodeError):
            decode(token)
