"""
EntityDesk Kernel -- Form State Tests

Seeding drafts from defaults and records, building payloads from the
visible fields, and the edit round trip: opening a record and saving it
unchanged sends back what the record already holds.
"""

from entitydesk.kernel.form import (
    build_payload,
    missing_required,
    resolve_relation_id,
    seed_create_values,
    seed_edit_values,
)
from entitydesk.kernel.types import ColumnConfig, EntitySchema, FieldConfig

# ============================================================================
# Helpers
# ============================================================================


def make_schema(**kwargs):
    defaults = dict(
        title="Appointments",
        endpoint="appointments",
        columns=(ColumnConfig("id", "ID"),),
        fields=(
            FieldConfig("branchId", "Branch", type="dependent-choice", required=True),
            FieldConfig("startAt", "Start", type="datetime", required=True),
            FieldConfig("price", "Price", type="number"),
            FieldConfig("status", "Status", type="select"),
            FieldConfig("paid", "Paid", type="boolean"),
            FieldConfig("email", "Email", visibility="create"),
            FieldConfig("notes", "Notes", type="textarea", send_null_when_empty=True),
        ),
        default_form_values={"status": "scheduled", "tags": ["new"]},
    )
    defaults.update(kwargs)
    return EntitySchema(**defaults)


# ============================================================================
# Relations
# ============================================================================


class TestResolveRelationId:
    def test_direct_key(self):
        assert resolve_relation_id({"branchId": 3}, "branchId") == 3

    def test_capitalised_alias(self):
        assert resolve_relation_id({"BranchId": 4}, "branchId") == 4

    def test_embedded_object(self):
        assert resolve_relation_id({"branch": {"id": 5, "name": "Central"}}, "branchId") == 5
        assert resolve_relation_id({"Branch": {"id": 6}}, "branchId") == 6

    def test_unresolved_is_empty(self):
        assert resolve_relation_id({}, "branchId") == ""
        assert resolve_relation_id({"branch": "Central"}, "branchId") == ""


# ============================================================================
# Seeding
# ============================================================================


class TestSeed:
    def test_create_copies_defaults(self):
        schema = make_schema()
        values = seed_create_values(schema)
        values["tags"].append("mutated")
        assert schema.default_form_values["tags"] == ["new"]

    def test_edit_keeps_unknown_keys_and_converts(self, tz):
        record = {
            "id": 9,
            "branch": {"id": 2, "name": "Central"},
            "startAt": "2024-03-10T01:30:00.000Z",
            "extra": "kept",
        }
        values = seed_edit_values(make_schema(), record, tz)
        assert values["branchId"] == 2
        assert values["startAt"] == "2024-03-10T08:30"
        assert values["extra"] == "kept"


# ============================================================================
# Payload
# ============================================================================


class TestBuildPayload:
    def test_visible_fields_only(self, tz):
        schema = make_schema()
        values = {"branchId": "2", "startAt": "2024-03-10T08:30", "email": "a@b.c", "notes": ""}

        payload = build_payload(schema.visible_fields("edit"), values, tz)

        assert payload == {"branchId": 2, "startAt": "2024-03-10T01:30:00.000Z", "notes": None}

    def test_unparsable_number_absent(self):
        payload = build_payload([FieldConfig("price", "Price", type="number")], {"price": "ten"})
        assert "price" not in payload

    def test_edit_round_trip(self, tz):
        """Seeding an edit draft and sending it unchanged reproduces the record."""
        schema = make_schema()
        record = {
            "id": 1,
            "branchId": 2,
            "startAt": "2024-03-10T01:30:00.000Z",
            "price": 450,
            "status": "completed",
            "paid": True,
            "notes": "Trim",
        }
        values = seed_edit_values(schema, record, tz)
        payload = build_payload(schema.visible_fields("edit"), values, tz)

        for key, value in payload.items():
            assert record[key] == value, key
        assert set(payload) == {"branchId", "startAt", "price", "status", "paid", "notes"}

    def test_round_trip_is_idempotent(self, tz):
        schema = make_schema()
        record = {"id": 1, "branchId": 2, "startAt": "2024-03-10T01:30:00.000Z", "price": 12.5}
        first = build_payload(schema.visible_fields("edit"), seed_edit_values(schema, record, tz), tz)
        second = build_payload(
            schema.visible_fields("edit"), seed_edit_values(schema, {**record, **first}, tz), tz
        )
        assert first == second


class TestMissingRequired:
    def test_lists_labels(self):
        fields = make_schema().visible_fields("create")
        assert missing_required(fields, {"branchId": "", "startAt": None}) == ["Branch", "Start"]
        assert missing_required(fields, {"branchId": 1, "startAt": "2024-01-01T00:00"}) == []
