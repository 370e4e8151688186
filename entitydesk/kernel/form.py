"""
EntityDesk Kernel -- Form State

Pure helpers behind the create/edit dialog:

  seed_create_values  -- fresh draft from configured defaults
  seed_edit_values    -- draft derived from a selected record
  build_payload       -- outgoing body from the draft
  drop_stale_choices  -- clear dependent choices no longer on offer

Relationship fields (`dependent-choice`) are seeded by looking for the id
in three places: the key itself, its capitalised alias, then the id of an
embedded related object (`branchId` -> record["branch"]["id"]).
"""

from __future__ import annotations

import copy
from datetime import tzinfo
from typing import Any

from entitydesk.kernel.coercion import OMIT, to_edit, to_wire
from entitydesk.kernel.options import is_selectable
from entitydesk.kernel.types import ComputedOptions, EntitySchema, FieldConfig, Record, is_blank


def _capitalize(key: str) -> str:
    return key[:1].upper() + key[1:]


def resolve_relation_id(record: Record, key: str) -> Any:
    """
    Find the value of a relationship key. Returns "" when unresolved.
    """
    direct = record.get(key)
    if not is_blank(direct):
        return direct

    alias = record.get(_capitalize(key))
    if not is_blank(alias):
        return alias

    if key.endswith("Id") and len(key) > 2:
        base = key[:-2]
        embedded = record.get(base)
        if embedded is None:
            embedded = record.get(_capitalize(base))
        if isinstance(embedded, dict) and "id" in embedded:
            return embedded["id"]

    return ""


def seed_create_values(schema: EntitySchema) -> dict[str, Any]:
    return copy.deepcopy(schema.default_form_values)


def seed_edit_values(schema: EntitySchema, record: Record, tz: tzinfo | None = None) -> dict[str, Any]:
    """
    Draft for editing `record`. Starts from a copy of the whole record so
    unknown keys survive, then converts each configured field to its edit
    representation.
    """
    values = dict(record)
    for field in schema.fields:
        if field.type == "dependent-choice":
            values[field.key] = resolve_relation_id(record, field.key)
        elif field.type == "datetime":
            values[field.key] = to_edit(field, record.get(field.key), tz)
    return values


def build_payload(
    fields: list[FieldConfig],
    values: dict[str, Any],
    tz: tzinfo | None = None,
) -> dict[str, Any]:
    """
    Outgoing body for the visible fields only. Empty values are omitted
    unless the field sends null; values that fail coercion are dropped.
    """
    payload: dict[str, Any] = {}
    for field in fields:
        wire = to_wire(field, values.get(field.key), tz)
        if wire is OMIT:
            continue
        payload[field.key] = wire
    return payload


def missing_required(fields: list[FieldConfig], values: dict[str, Any]) -> list[str]:
    """Labels of required visible fields that are still empty."""
    return [f.label for f in fields if f.required and is_blank(values.get(f.key))]


def _stale_choice(field: FieldConfig, values: dict[str, Any]) -> bool:
    if not isinstance(field.options, ComputedOptions):
        return False
    value = values.get(field.key)
    return not is_blank(value) and not is_selectable(field.options, values, value)


def drop_stale_choices(fields: list[FieldConfig], values: dict[str, Any]) -> dict[str, Any]:
    """
    Clear dependent choices whose value is no longer on offer, e.g. an
    expense category after the type switched to income. Returns a new mapping.
    """
    updated = dict(values)
    for field in fields:
        if _stale_choice(field, updated):
            updated[field.key] = ""
    return updated


def unavailable_choices(fields: list[FieldConfig], values: dict[str, Any]) -> list[str]:
    """Labels of dependent-choice fields holding a value that is not on offer."""
    return [f.label for f in fields if _stale_choice(f, values)]
