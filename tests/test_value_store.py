"""Unit tests for core.value_store module."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from core.exceptions import FieldError
from core.value_store import (
    ValueStore,
    parse_enum,
    parse_int,
    parse_oid,
    parse_unsigned,
)


class TestParsers:
    def test_parse_int(self):
        assert parse_int("42").value == 42
        assert parse_int(" -7 ").value == -7
        assert not parse_int("4.2").ok
        assert not parse_int("").ok

    def test_parse_unsigned_rejects_negative(self):
        result = parse_unsigned("-1")
        assert not result.ok
        assert "negative" in result.reason

    def test_parse_enum(self):
        parser = parse_enum({1, 2, 3})
        assert parser("2").value == 2
        assert not parser("9").ok
        assert not parser("two").ok

    def test_parse_oid_strips_leading_dot(self):
        assert parse_oid(".1.3.6.1.2.1.33.1.6.3.2").value == "1.3.6.1.2.1.33.1.6.3.2"
        assert not parse_oid("OnBattery").ok
        assert not parse_oid("42").ok


class TestValueStore:
    def test_get_parsed(self):
        store = ValueStore({".1.3.6.1.2.1.33.1.2.4.0": "80"})
        assert store.get("1.3.6.1.2.1.33.1.2.4.0", parse_unsigned, "charge") == 80

    def test_missing_field_names_description(self):
        store = ValueStore()
        with pytest.raises(FieldError, match="battery status"):
            store.get("1.3.6.1.2.1.33.1.2.1.0", parse_int, "battery status")

    def test_malformed_field(self):
        store = ValueStore({"1.3.6.1.2.1.33.1.2.1.0": "normal"})
        with pytest.raises(FieldError, match="invalid value for battery status"):
            store.get("1.3.6.1.2.1.33.1.2.1.0", parse_int, "battery status")

    def test_values_are_write_once(self):
        store = ValueStore({"1.2.3": "1"})
        store.update({"1.2.3": "2", "1.2.4": "3"})
        assert store.raw("1.2.3") == "1"
        assert store.raw("1.2.4") == "3"
        assert len(store) == 2

    def test_get_optional(self):
        store = ValueStore({"1.2.3": "abc"})
        assert store.get_optional("1.2.3", parse_int, default=5) == 5
        assert store.get_optional("1.2.9", parse_int) is None
