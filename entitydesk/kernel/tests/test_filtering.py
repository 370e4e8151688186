"""
EntityDesk Kernel -- Filter Engine Tests

Search plus conjunctive filters. Properties covered:
  - adding a non-empty filter never grows the result
  - date-range bounds are inclusive from local midnight to 23:59:59.999
  - empty filter values are inert
  - boolean filters fall back to raw string compare for unknown values
"""

from datetime import timedelta

from entitydesk.kernel.coercion import day_end, day_start
from entitydesk.kernel.filtering import apply_filters, matches_filter, matches_search
from entitydesk.kernel.types import FilterConfig

# ============================================================================
# Helpers
# ============================================================================

TRANSACTIONS = [
    {"id": 1, "type": "income", "title": "Haircut", "amount": 300, "status": "paid", "notes": "walk-in"},
    {"id": 2, "type": "expense", "title": "Rent", "amount": 9000, "status": "paid", "notes": None},
    {"id": 3, "type": "income", "title": "Shampoo sale", "amount": "120", "status": "pending"},
    {"id": 4, "type": "expense", "title": "Towels", "amount": 450, "status": "refunded", "notes": "Walk-in cooler"},
]

FILTERS = (
    FilterConfig("type", "Type"),
    FilterConfig("status", "Status"),
    FilterConfig("amount", "Amount", type="number"),
    FilterConfig("title", "Title", type="text"),
)


def ids(records):
    return [r["id"] for r in records]


# ============================================================================
# Search
# ============================================================================


class TestSearch:
    def test_case_insensitive_over_search_keys(self):
        result = apply_filters(TRANSACTIONS, "WALK", ("title", "notes"))
        assert ids(result) == [1, 4]

    def test_only_configured_keys(self):
        assert ids(apply_filters(TRANSACTIONS, "paid", ("title",))) == []

    def test_all_keys_when_none_configured(self):
        assert ids(apply_filters(TRANSACTIONS, "refunded")) == [4]

    def test_numbers_are_searchable(self):
        assert matches_search({"id": 12345}, "234", ("id",))

    def test_empty_term_keeps_everything(self):
        assert ids(apply_filters(TRANSACTIONS, "", ("title",))) == [1, 2, 3, 4]

    def test_embedded_objects_match_by_value_not_key(self):
        record = {"id": 1, "branch": {"id": 7, "name": "Central"}}
        assert matches_search(record, "central", ("branch",))
        assert not matches_search(record, "name", ("branch",))
        assert not matches_search(record, "id", ())


# ============================================================================
# Conjunctive filters
# ============================================================================


class TestFilters:
    def test_exact_match(self):
        result = apply_filters(TRANSACTIONS, filters=FILTERS, values={"type": "income"})
        assert ids(result) == [1, 3]

    def test_conjunction(self):
        result = apply_filters(
            TRANSACTIONS, filters=FILTERS, values={"type": "income", "status": "paid"}
        )
        assert ids(result) == [1]

    def test_number_equality_across_representations(self):
        result = apply_filters(TRANSACTIONS, filters=FILTERS, values={"amount": "120.0"})
        assert ids(result) == [3]

    def test_text_containment(self):
        result = apply_filters(TRANSACTIONS, filters=FILTERS, values={"title": "sHaM"})
        assert ids(result) == [3]

    def test_empty_values_are_inert(self):
        result = apply_filters(
            TRANSACTIONS, filters=FILTERS, values={"type": "", "status": None, "amount": ""}
        )
        assert ids(result) == [1, 2, 3, 4]

    def test_input_order_kept(self):
        reversed_records = list(reversed(TRANSACTIONS))
        result = apply_filters(reversed_records, filters=FILTERS, values={"status": "paid"})
        assert ids(result) == [2, 1]

    def test_monotonic_narrowing(self):
        """Adding any non-empty filter value never grows the result."""
        steps = [
            {},
            {"type": "income"},
            {"type": "income", "title": "a"},
            {"type": "income", "title": "a", "status": "pending"},
        ]
        previous = None
        for values in steps:
            current = set(ids(apply_filters(TRANSACTIONS, "", (), FILTERS, values)))
            if previous is not None:
                assert current <= previous
            previous = current


# ============================================================================
# Boolean
# ============================================================================


class TestBooleanFilter:
    FILTER = FilterConfig("isActive", "Active", type="boolean")

    def test_spellings_agree(self):
        records = [
            {"id": 1, "isActive": True},
            {"id": 2, "isActive": "true"},
            {"id": 3, "isActive": False},
        ]
        result = apply_filters(records, filters=(self.FILTER,), values={"isActive": "true"})
        assert ids(result) == [1, 2]

    def test_unknown_falls_back_to_raw_string(self):
        """"maybe" is not a boolean; it matches only a record holding "maybe"."""
        assert matches_filter({"isActive": "maybe"}, self.FILTER, {"isActive": "maybe"})
        assert not matches_filter({"isActive": True}, self.FILTER, {"isActive": "maybe"})


# ============================================================================
# Date range
# ============================================================================


class TestDateRange:
    FILTER = FilterConfig("occurredAt", "Date", type="date-range")

    def test_bounds_inclusive_at_microsecond_precision(self, tz):
        lower = day_start("2024-03-10", tz)
        upper = day_end("2024-03-12", tz)
        records = [
            {"id": 1, "occurredAt": (lower - timedelta(microseconds=1000)).isoformat()},
            {"id": 2, "occurredAt": lower.isoformat()},
            {"id": 3, "occurredAt": upper.isoformat()},
            {"id": 4, "occurredAt": (upper + timedelta(microseconds=1000)).isoformat()},
        ]
        values = {"occurredAtFrom": "2024-03-10", "occurredAtTo": "2024-03-12"}

        result = apply_filters(records, filters=(self.FILTER,), values=values, tz=tz)

        assert ids(result) == [2, 3]

    def test_utc_wire_value_read_in_local_day(self, tz):
        """23:30Z on the 9th is 06:30 on the 10th at UTC+7."""
        record = {"occurredAt": "2024-03-09T23:30:00.000Z"}
        values = {"occurredAtFrom": "2024-03-10", "occurredAtTo": "2024-03-10"}
        assert matches_filter(record, self.FILTER, values, tz)

    def test_single_bound(self, tz):
        record = {"occurredAt": "2024-03-10T10:00:00+07:00"}
        assert matches_filter(record, self.FILTER, {"occurredAtFrom": "2024-03-10"}, tz)
        assert not matches_filter(record, self.FILTER, {"occurredAtTo": "2024-03-09"}, tz)

    def test_unparsable_record_date_excluded_when_bounded(self, tz):
        record = {"occurredAt": "soon"}
        assert not matches_filter(record, self.FILTER, {"occurredAtFrom": "2024-03-10"}, tz)
        assert matches_filter(record, self.FILTER, {}, tz)
