# tests/services/test_settings_normalizer.py
"""
Tests for the stored <-> typed settings conversion.

These tests verify:
- The key table is one-to-one in both directions
- Stored text is coerced to bool / float / string
- Typed values are serialized to canonical text
- Round trips for supported values
- Known asymmetries (numeric-looking strings, JSON objects)
"""

import json
import math
from decimal import Decimal

import pytest

from portfolio_tracker.services.exceptions import ValidationError
from portfolio_tracker.services.settings_normalizer import (
    STORED_TO_TYPED_KEYS,
    TYPED_TO_STORED_KEYS,
    coerce_stored_value,
    serialize_value,
    stored_key,
    to_stored,
    to_typed,
    typed_key,
)


class TestKeyTable:
    """Tests for the key mapping."""

    def test_mapping_is_bijective(self):
        assert len(set(STORED_TO_TYPED_KEYS.values())) == len(STORED_TO_TYPED_KEYS)
        for stored, typed in STORED_TO_TYPED_KEYS.items():
            assert TYPED_TO_STORED_KEYS[typed] == stored

    @pytest.mark.parametrize("stored,typed", [
        ("currency", "currency"),
        ("dark_mode", "darkMode"),
        ("pro_mode", "proMode"),
        ("theme", "theme"),
        ("refresh_interval", "refreshInterval"),
        ("default_period", "defaultPeriod"),
    ])
    def test_known_keys(self, stored, typed):
        assert typed_key(stored) == typed
        assert stored_key(typed) == stored

    def test_unknown_typed_key_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            stored_key("fontSize")
        assert exc_info.value.field == "fontSize"

    def test_unknown_stored_key_rejected(self):
        with pytest.raises(ValidationError):
            typed_key("font_size")

    def test_case_conversion_is_not_applied(self):
        # A snake_case key is not accepted on the typed side
        with pytest.raises(ValidationError):
            stored_key("dark_mode")


class TestCoerceStoredValue:
    """Tests for stored text -> typed value."""

    @pytest.mark.parametrize("text,expected", [
        ("true", True),
        ("false", False),
        ("12", 12.0),
        ("-0.5", -0.5),
        ("1e3", 1000.0),
        (".25", 0.25),
        ("+7", 7.0),
        ("30.0", 30.0),
    ])
    def test_coercions(self, text, expected):
        result = coerce_stored_value(text)
        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize("text", ["USD", "12abc", "True", "", "1.2.3", "nan", "inf", " 5"])
    def test_other_text_stays_string(self, text):
        assert coerce_stored_value(text) == text


class TestSerializeValue:
    """Tests for typed value -> stored text."""

    @pytest.mark.parametrize("value,expected", [
        (True, "true"),
        (False, "false"),
        (30, "30"),
        (1.5, "1.5"),
        (Decimal("2.50"), "2.50"),
        ("dark", "dark"),
    ])
    def test_scalars(self, value, expected):
        assert serialize_value(value) == expected

    def test_dict_is_canonical_json(self):
        text = serialize_value({"b": 1, "a": [1, 2]})
        assert text == '{"a":[1,2],"b":1}'
        assert json.loads(text) == {"a": [1, 2], "b": 1}

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, Decimal("NaN")])
    def test_non_finite_numbers_rejected(self, value):
        with pytest.raises(ValidationError):
            serialize_value(value, key="refreshInterval")

    def test_none_rejected(self):
        with pytest.raises(ValidationError):
            serialize_value(None)

    def test_unsupported_type_rejected(self):
        with pytest.raises(ValidationError):
            serialize_value(object())


class TestMappings:
    """Tests for whole-settings conversion."""

    def test_to_typed(self):
        stored = {
            "currency": "EUR",
            "dark_mode": "true",
            "pro_mode": "false",
            "refresh_interval": "30",
        }

        assert to_typed(stored) == {
            "currency": "EUR",
            "darkMode": True,
            "proMode": False,
            "refreshInterval": 30.0,
        }

    def test_to_stored(self):
        typed = {"darkMode": True, "refreshInterval": 30, "theme": "dark"}

        assert to_stored(typed) == {
            "dark_mode": "true",
            "refresh_interval": "30",
            "theme": "dark",
        }

    def test_to_stored_rejects_unknown_key(self):
        with pytest.raises(ValidationError):
            to_stored({"currency": "USD", "fontSize": 12})

    def test_to_typed_skips_unknown_stored_key(self, caplog):
        result = to_typed({"currency": "USD", "legacy_flag": "true"})

        assert result == {"currency": "USD"}
        assert "legacy_flag" in caplog.text

    @pytest.mark.parametrize("typed", [
        {"currency": "GBP"},
        {"darkMode": True, "proMode": False},
        {"refreshInterval": 45.5},
        {"refreshInterval": 60},
        {"theme": "system", "defaultPeriod": "1Y"},
    ])
    def test_round_trip(self, typed):
        assert to_typed(to_stored(typed)) == typed

    def test_numeric_string_does_not_round_trip(self):
        # A string that reads as a number comes back as a float
        assert to_typed(to_stored({"theme": "42"})) == {"theme": 42.0}

    def test_json_value_comes_back_as_string(self):
        result = to_typed(to_stored({"theme": {"accent": "blue"}}))
        assert result == {"theme": '{"accent":"blue"}'}
