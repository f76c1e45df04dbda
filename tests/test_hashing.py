"""Tests for deterministic hashing."""

from __future__ import annotations

from refract.core.flatten import schema_key
from refract.core.hashing import canonical_json, hash_bytes, hash_dict, hash_string


def test_hash_string_deterministic():
    """Same string always produces the same hash."""
    a = hash_string("hello openrpc")
    b = hash_string("hello openrpc")
    assert a == b
    assert len(a) == 64  # SHA-256 hex


def test_hash_bytes_deterministic():
    assert hash_bytes(b"\x00\x01\x02") == hash_bytes(b"\x00\x01\x02")


def test_hash_dict_deterministic():
    """Dict hashing should be order-independent (uses sorted keys)."""
    assert hash_dict({"b": 2, "a": 1}) == hash_dict({"a": 1, "b": 2})


def test_hash_dict_different():
    assert hash_dict({"a": 1}) != hash_dict({"a": 2})


def test_canonical_json_has_no_whitespace():
    assert canonical_json({"b": [1, 2], "a": None}) == '{"a":null,"b":[1,2]}'


def test_schema_key_nested_order_independent():
    a = {"type": "object", "properties": {"x": {"type": "integer", "description": "int"}}}
    b = {"properties": {"x": {"description": "int", "type": "integer"}}, "type": "object"}
    assert schema_key(a) == schema_key(b)
    assert schema_key(a).startswith("object_")
    assert len(schema_key(a).rpartition("_")[2]) == 16


def test_schema_key_prefers_title():
    assert schema_key({"title": "Circle", "type": "object"}).startswith("Circle_")
    assert schema_key({}).startswith("schema_")
