"""
EntityDesk Kernel -- Value Coercion Tests

Edit <-> wire conversion per field type, and the lenient drop-on-failure
policy: a value that cannot be coerced is left out of the payload, never
raised.
"""

from datetime import UTC, datetime

from entitydesk.kernel.coercion import (
    OMIT,
    day_end,
    day_start,
    from_edit_datetime,
    normalize_boolean,
    parse_datetime,
    to_edit_datetime,
    to_number,
    to_text,
    to_wire,
)
from entitydesk.kernel.types import FieldConfig

# ============================================================================
# Helpers
# ============================================================================


def make_field(key="value", type="text", **kwargs):
    return FieldConfig(key=key, label=key.title(), type=type, **kwargs)


# ============================================================================
# Dates
# ============================================================================


class TestDatetime:
    """Wire timestamps are UTC ISO strings; the form edits local minutes."""

    def test_to_edit_is_local_minutes(self, tz):
        assert to_edit_datetime("2024-03-10T01:30:00.000Z", tz) == "2024-03-10T08:30"

    def test_to_edit_invalid_is_empty(self, tz):
        assert to_edit_datetime("not a date", tz) == ""
        assert to_edit_datetime(None, tz) == ""
        assert to_edit_datetime("", tz) == ""

    def test_from_edit_is_utc_with_millis(self, tz):
        assert from_edit_datetime("2024-03-10T08:30", tz) == "2024-03-10T01:30:00.000Z"

    def test_from_edit_empty_or_garbage_is_none(self, tz):
        assert from_edit_datetime("", tz) is None
        assert from_edit_datetime(None, tz) is None
        assert from_edit_datetime("tomorrow", tz) is None

    def test_naive_wire_value_is_local(self, tz):
        parsed = parse_datetime("2024-03-10T08:30:00", tz)
        assert parsed.utcoffset() == tz.utcoffset(None)
        assert parsed.astimezone(UTC) == datetime(2024, 3, 10, 1, 30, tzinfo=UTC)

    def test_day_bounds(self, tz):
        start = day_start("2024-03-10", tz)
        end = day_end("2024-03-10", tz)
        assert (start.hour, start.minute, start.second, start.microsecond) == (0, 0, 0, 0)
        assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 999000)
        assert start.tzinfo is tz

    def test_day_bound_unparsable(self, tz):
        assert day_start("10/03/2024", tz) is None
        assert day_end("", tz) is None


# ============================================================================
# Booleans
# ============================================================================


class TestNormalizeBoolean:
    """Ternary: True, False, or None for anything unrecognised."""

    def test_true_spellings(self):
        for value in (True, 1, "true", "TRUE", " 1 ", "yes", "Yes"):
            assert normalize_boolean(value) is True, value

    def test_false_spellings(self):
        for value in (False, 0, "false", "0", "no", " No "):
            assert normalize_boolean(value) is False, value

    def test_unknown(self):
        for value in (None, "", "maybe", 2, -1, [], {}):
            assert normalize_boolean(value) is None, value


# ============================================================================
# Numbers and text
# ============================================================================


class TestToNumber:
    def test_parses(self):
        assert to_number("42") == 42
        assert to_number(" 3.5 ") == 3.5
        assert to_number(7.0) == 7
        assert isinstance(to_number("10.0"), int)

    def test_failures_are_none(self):
        for value in (None, "", "abc", "1,000", float("nan"), float("inf"), {}):
            assert to_number(value) is None, value

    def test_booleans_count_as_bits(self):
        assert to_number(True) == 1
        assert to_number(False) == 0


class TestToText:
    def test_shapes(self):
        assert to_text(None) == ""
        assert to_text(True) == "true"
        assert to_text(3.0) == "3"
        assert to_text({"a": 1}) == '{"a": 1}'


# ============================================================================
# to_wire
# ============================================================================


class TestToWire:
    """One form value -> payload value, or OMIT."""

    def test_text_passes_through(self):
        assert to_wire(make_field(), "hello") == "hello"

    def test_empty_is_omitted(self):
        assert to_wire(make_field(), "") is OMIT
        assert to_wire(make_field(), None) is OMIT

    def test_empty_sends_null_when_configured(self):
        field = make_field(send_null_when_empty=True)
        assert to_wire(field, "") is None

    def test_send_null_applies_to_every_type(self):
        for type in ("number", "datetime", "boolean", "select", "dependent-choice"):
            field = make_field(type=type, send_null_when_empty=True)
            assert to_wire(field, "") is None, type

    def test_number_parsed(self):
        assert to_wire(make_field(type="number"), "12.50") == 12.5

    def test_unparsable_number_dropped_silently(self):
        assert to_wire(make_field(type="number"), "12abc") is OMIT

    def test_unparsable_number_dropped_even_with_send_null(self):
        field = make_field(type="number", send_null_when_empty=True)
        assert to_wire(field, "abc") is OMIT

    def test_boolean_normalised(self):
        field = make_field(type="boolean")
        assert to_wire(field, "yes") is True
        assert to_wire(field, False) is False
        assert to_wire(field, "perhaps") is OMIT

    def test_datetime_to_utc(self, tz):
        field = make_field(type="datetime")
        assert to_wire(field, "2024-01-01T07:00", tz) == "2024-01-01T00:00:00.000Z"
        assert to_wire(field, "garbage", tz) is OMIT

    def test_dependent_choice_numeric_string_becomes_number(self):
        field = make_field("branchId", type="dependent-choice")
        assert to_wire(field, "3") == 3
        assert to_wire(field, "rent") == "rent"

    def test_omit_is_falsy(self):
        assert not OMIT
        assert repr(OMIT) == "OMIT"
