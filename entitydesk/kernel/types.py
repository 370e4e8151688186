"""
EntityDesk Kernel -- Shared Types

Data classes used across coercion, options, filtering, sorting, form and
the controller. These are the contracts that bind the kernel together.

An EntitySchema is plain configuration: the same engine serves every
entity, and nothing in the kernel knows which entity it is looking at.
Records are plain dicts. Unknown keys are preserved and round-tripped.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

Record = dict[str, Any]

# ---------------------------------------------------------------------------
# Type registries
# ---------------------------------------------------------------------------

FIELD_TYPES: set[str] = {
    "text",
    "number",
    "select",
    "datetime",
    "boolean",
    "textarea",
    "password",
    "dependent-choice",
}

FILTER_TYPES: set[str] = {
    "text",
    "number",
    "boolean",
    "exact-match",
    "date-range",
    "dependent-choice",
}

VISIBILITY_VALUES: set[str] = {"create", "edit", "both"}

SORT_ORDERS: set[str] = {"asc", "desc"}

NOTICE_KINDS: set[str] = {
    "success",
    "network",
    "authentication",
    "validation",
    "permission",
    "error",
}

DEFAULT_PAGE_SIZE = 100
DEFAULT_REVEAL_STEP = 20


# ---------------------------------------------------------------------------
# Options (tagged union: static list | computed from values)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Option:
    """One selectable choice."""

    value: Any
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class StaticOptions:
    """A fixed choice list, returned unchanged on every resolve."""

    options: tuple[Option, ...] = ()

    def resolve(self, values: dict[str, Any]) -> list[Option]:
        return list(self.options)


@dataclass(frozen=True)
class ComputedOptions:
    """
    A choice list computed from the live value mapping.
    Form fields see form values, filters see filter values.
    """

    fn: Callable[[dict[str, Any]], list[Option]]

    def resolve(self, values: dict[str, Any]) -> list[Option]:
        return list(self.fn(dict(values)))


Options = StaticOptions | ComputedOptions


def static(*pairs: tuple[Any, str]) -> StaticOptions:
    """Build StaticOptions from (value, label) pairs."""
    return StaticOptions(tuple(Option(value, label) for value, label in pairs))


def computed(fn: Callable[[dict[str, Any]], list[Option]]) -> ComputedOptions:
    return ComputedOptions(fn)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldConfig:
    """One editable attribute of the managed entity."""

    key: str
    label: str
    type: str = "text"
    options: Options | None = None
    required: bool = False
    step: str | None = None
    visibility: str = "both"  # "create", "edit" or "both"
    send_null_when_empty: bool = False
    layout: str | None = None  # "full" or "half"

    def visible_in(self, mode: str) -> bool:
        """True if the field is shown in "create" or "edit" mode."""
        if mode == "create":
            return self.visibility != "edit"
        return self.visibility != "create"


@dataclass(frozen=True)
class ColumnConfig:
    """
    A list/export column. `render` is either the name of a registered cell
    renderer (see kernel.cells) or a callable record -> value.
    """

    key: str
    label: str
    render: str | Callable[[Record], Any] | None = None


@dataclass(frozen=True)
class FilterConfig:
    """One list filter. Date-range filters read `<key>From` and `<key>To`."""

    key: str
    label: str
    type: str = "exact-match"
    options: Options | None = None
    disabled: bool | Callable[[dict[str, Any]], bool] = False
    on_change: Callable[[Any, dict[str, Any]], dict[str, Any] | None] | None = None

    @property
    def from_key(self) -> str:
        return f"{self.key}From"

    @property
    def to_key(self) -> str:
        return f"{self.key}To"


@dataclass(frozen=True)
class EntitySchema:
    """Everything the engine needs to manage one entity."""

    title: str
    endpoint: str
    columns: tuple[ColumnConfig, ...]
    fields: tuple[FieldConfig, ...]
    filters: tuple[FilterConfig, ...] = ()
    search_keys: tuple[str, ...] = ()
    sort_key: str = "id"
    sort_order: str = "desc"
    default_filters: dict[str, Any] = field(default_factory=dict)
    default_form_values: dict[str, Any] = field(default_factory=dict)
    page_size: int = DEFAULT_PAGE_SIZE
    reveal_step: int = DEFAULT_REVEAL_STEP
    required_role: str | None = None

    def visible_fields(self, mode: str) -> list[FieldConfig]:
        return [f for f in self.fields if f.visible_in(mode)]

    def get_field(self, key: str) -> FieldConfig | None:
        for f in self.fields:
            if f.key == key:
                return f
        return None

    def get_filter(self, key: str) -> FilterConfig | None:
        for f in self.filters:
            if f.key == key:
                return f
        return None


# ---------------------------------------------------------------------------
# Engine state
# ---------------------------------------------------------------------------


@dataclass
class Notice:
    """A transient user-visible notification."""

    kind: str
    message: str


@dataclass
class EngineState:
    """
    Per-instance state of one mounted entity manager.

    `records` is replaced wholesale on every fetch. `editing_record` None
    means the form is in create mode.
    """

    records: list[Record] = field(default_factory=list)
    search_term: str = ""
    filter_values: dict[str, Any] = field(default_factory=dict)
    reveal_count: int = 0
    editing_record: Record | None = None
    form_values: dict[str, Any] = field(default_factory=dict)
    form_open: bool = False
    delete_open: bool = False
    delete_target: Record | None = None
    loading: bool = False
    last_error: Notice | None = None
    last_success: Notice | None = None

    @property
    def form_mode(self) -> str:
        return "create" if self.editing_record is None else "edit"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_blank(value: Any) -> bool:
    """True for None and the empty string (the engine's "no value")."""
    return value is None or value == ""


def is_valid_field_type(value: str) -> bool:
    return value in FIELD_TYPES


def is_valid_filter_type(value: str) -> bool:
    return value in FILTER_TYPES
