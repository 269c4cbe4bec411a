"""Unit tests for auditchain.services.audit.hashing."""
import hashlib
import json
import math
from datetime import UTC, datetime, timedelta, timezone

import pytest

from auditchain.core.errors import ErrorCode, MetadataSerializationError
from auditchain.services.audit.hashing import (
    GENESIS_HASH,
    canonicalize,
    compute_entry_hash,
    format_timestamp,
    hash_metadata,
    normalize_metadata,
    truncate_to_millis,
)

TS = datetime(2026, 3, 14, 15, 9, 26, 535000, tzinfo=UTC)

BASE_FIELDS = dict(
    timestamp=TS,
    event_type="WIRE_CONFIRMED",
    user_id="user-1",
    partition_key="team-1",
    resource_type="Transaction",
    resource_id="tx-9",
    metadata_hash=None,
    previous_hash=GENESIS_HASH,
    sequence_number=1,
)


# ─── canonicalize ─────────────────────────────────────────────────────────────

def test_key_order_does_not_matter():
    assert canonicalize({"a": 1, "b": 2}) == canonicalize({"b": 2, "a": 1})


def test_nested_keys_sorted():
    assert canonicalize({"z": {"b": 1, "a": [2, {"d": 3, "c": 4}]}}) == (
        '{"z":{"a":[2,{"c":4,"d":3}],"b":1}}'
    )


def test_non_finite_numbers_collapse_to_null():
    assert canonicalize({"x": math.nan}) == canonicalize({"x": None})
    assert canonicalize([math.inf, -math.inf]) == "[null,null]"


def test_none_is_null():
    assert canonicalize(None) == "null"


def test_scalars():
    assert canonicalize(True) == "true"
    assert canonicalize(False) == "false"
    assert canonicalize(42) == "42"
    assert canonicalize(1.5) == "1.5"
    assert canonicalize("quote\"d") == '"quote\\"d"'


def test_integral_float_renders_as_json_number():
    assert canonicalize(1.0) == "1"
    assert canonicalize({"amount": 250000.0}) == '{"amount":250000}'


def test_array_order_preserved():
    assert canonicalize([3, 1, 2]) == "[3,1,2]"
    assert canonicalize((1, "a")) == '[1,"a"]'


def test_numeric_string_and_number_stay_distinct():
    assert canonicalize({"v": "1"}) != canonicalize({"v": 1})


def test_non_ascii_kept_verbatim():
    assert canonicalize({"name": "Zürich"}) == '{"name":"Zürich"}'


@pytest.mark.parametrize(
    "value",
    [{1, 2}, datetime(2026, 1, 1), object(), {"nested": b"bytes"}],
)
def test_unserializable_values_raise(value):
    with pytest.raises(MetadataSerializationError) as exc_info:
        canonicalize(value)
    assert exc_info.value.code == ErrorCode.AUDIT_METADATA_UNSERIALIZABLE


def test_non_string_keys_raise_instead_of_coercing():
    with pytest.raises(MetadataSerializationError) as exc_info:
        canonicalize({"outer": {1: "one"}})
    assert exc_info.value.path == "$.outer"


# ─── hash_metadata ────────────────────────────────────────────────────────────

def test_hash_metadata_none():
    assert hash_metadata(None) is None


def test_hash_metadata_is_sha256_of_canonical_form():
    expected = hashlib.sha256(b'{"a":1,"b":2}').hexdigest()
    assert hash_metadata({"b": 2, "a": 1}) == expected


def test_hash_metadata_empty_object_is_hashed():
    assert hash_metadata({}) == hashlib.sha256(b"{}").hexdigest()


# ─── normalize_metadata ───────────────────────────────────────────────────────

def test_normalize_metadata_none():
    assert normalize_metadata(None) is None


def test_normalize_metadata_is_strict_json():
    stored = normalize_metadata({"b": [float("-inf"), (1, 2.0)], "a": float("nan")})
    assert stored == {"a": None, "b": [None, [1, 2]]}
    json.dumps(stored, allow_nan=False)


def test_normalized_metadata_keeps_its_hash():
    metadata = {"rate": 0.1, "count": 3.0, "missing": float("nan"), "note": "\u00e9t\u00e9"}
    assert hash_metadata(normalize_metadata(metadata)) == hash_metadata(metadata)


# ─── format_timestamp ─────────────────────────────────────────────────────────

def test_format_timestamp_millisecond_utc():
    assert format_timestamp(TS) == "2026-03-14T15:09:26.535Z"


def test_format_timestamp_naive_treated_as_utc():
    assert format_timestamp(TS.replace(tzinfo=None)) == "2026-03-14T15:09:26.535Z"


def test_format_timestamp_converts_offsets():
    local = TS.astimezone(timezone(timedelta(hours=2)))
    assert format_timestamp(local) == "2026-03-14T15:09:26.535Z"


def test_truncate_to_millis():
    moment = datetime(2026, 1, 1, 0, 0, 0, 123456, tzinfo=UTC)
    assert truncate_to_millis(moment).microsecond == 123000


# ─── compute_entry_hash ───────────────────────────────────────────────────────

def test_entry_hash_matches_fixed_field_order():
    raw = json.dumps(
        {
            "timestamp": "2026-03-14T15:09:26.535Z",
            "eventType": "WIRE_CONFIRMED",
            "userId": "user-1",
            "partitionKey": "team-1",
            "resourceType": "Transaction",
            "resourceId": "tx-9",
            "metadataHash": None,
            "previousHash": GENESIS_HASH,
            "sequenceNumber": "1",
        },
        separators=(",", ":"),
    )
    assert compute_entry_hash(**BASE_FIELDS) == hashlib.sha256(raw.encode()).hexdigest()


def test_entry_hash_is_64_hex():
    digest = compute_entry_hash(**BASE_FIELDS)
    assert len(digest) == 64
    int(digest, 16)


@pytest.mark.parametrize(
    "field, value",
    [
        ("timestamp", TS + timedelta(milliseconds=1)),
        ("event_type", "WIRE_REVERSED"),
        ("user_id", None),
        ("partition_key", None),
        ("resource_type", "Investor"),
        ("resource_id", "tx-10"),
        ("metadata_hash", "a" * 64),
        ("previous_hash", "b" * 64),
        ("sequence_number", 2),
    ],
)
def test_every_hashed_field_changes_the_digest(field, value):
    changed = {**BASE_FIELDS, field: value}
    assert compute_entry_hash(**changed) != compute_entry_hash(**BASE_FIELDS)


def test_genesis_sentinel_shape():
    assert GENESIS_HASH == "0" * 64
