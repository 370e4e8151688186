"""
EntityDesk Kernel -- Sort Engine Tests

Typed compare (number, then date, then string), stability in both
directions, missing values last regardless of direction.
"""

from entitydesk.kernel.sorting import apply_sort, compare_values


def ids(records):
    return [r["id"] for r in records]


class TestCompareValues:
    def test_numeric_not_lexicographic(self):
        assert compare_values("10", "9") == 1
        assert compare_values(2, "2.0") == 0

    def test_dates(self, tz):
        assert compare_values("2024-01-02T00:00:00Z", "2024-01-01T23:00:00-05:00", tz) == -1

    def test_strings_case_sensitive(self):
        assert compare_values("B", "a") == -1
        assert compare_values("apple", "apple") == 0


class TestApplySort:
    def test_default_is_id_descending(self):
        records = [{"id": 2}, {"id": 10}, {"id": 1}]
        assert ids(apply_sort(records)) == [10, 2, 1]

    def test_ascending(self):
        records = [{"id": 2}, {"id": 10}, {"id": 1}]
        assert ids(apply_sort(records, order="asc")) == [1, 2, 10]

    def test_stable_both_directions(self):
        records = [
            {"id": 1, "status": "paid"},
            {"id": 2, "status": "pending"},
            {"id": 3, "status": "paid"},
            {"id": 4, "status": "pending"},
        ]
        assert ids(apply_sort(records, "status", "asc")) == [1, 3, 2, 4]
        assert ids(apply_sort(records, "status", "desc")) == [2, 4, 1, 3]

    def test_missing_last_in_both_directions(self):
        records = [{"id": 1, "at": None}, {"id": 2, "at": 5}, {"id": 3}, {"id": 4, "at": 7}]
        assert ids(apply_sort(records, "at", "asc")) == [2, 4, 1, 3]
        assert ids(apply_sort(records, "at", "desc")) == [4, 2, 1, 3]

    def test_by_timestamp(self, tz):
        records = [
            {"id": 1, "occurredAt": "2024-03-01T10:00:00Z"},
            {"id": 2, "occurredAt": "2024-03-02T09:00:00+07:00"},
            {"id": 3, "occurredAt": "2024-02-28T00:00:00Z"},
        ]
        assert ids(apply_sort(records, "occurredAt", "desc", tz)) == [2, 1, 3]

    def test_input_untouched(self):
        records = [{"id": 1}, {"id": 2}]
        apply_sort(records)
        assert ids(records) == [1, 2]
