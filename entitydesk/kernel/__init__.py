"""
EntityDesk Kernel -- the configuration-driven record engine.

Pure components:
  coercion   -- edit <-> wire value conversion, lenient parsing
  options    -- static / computed choice lists, filter cascades
  filtering  -- search + conjunctive filters
  sorting    -- stable typed sort, missing values last
  reveal     -- incremental disclosure window
  form       -- draft seeding and outgoing payloads

IO component:
  controller -- RecordManager, the record lifecycle over a remote collection
"""

from entitydesk.kernel.coercion import (
    OMIT,
    from_edit_datetime,
    normalize_boolean,
    to_edit_datetime,
    to_number,
    to_wire,
)
from entitydesk.kernel.filtering import apply_filters, record_matches
from entitydesk.kernel.form import build_payload, seed_create_values, seed_edit_values
from entitydesk.kernel.options import depends_on, requires, resets, resolve_options
from entitydesk.kernel.reveal import RevealWindow, count_label
from entitydesk.kernel.sorting import apply_sort
from entitydesk.kernel.types import (
    ColumnConfig,
    EngineState,
    EntitySchema,
    FieldConfig,
    FilterConfig,
    Notice,
    Option,
    static,
    computed,
)
from entitydesk.kernel.controller import RecordManager

__all__ = [
    "OMIT",
    "from_edit_datetime",
    "normalize_boolean",
    "to_edit_datetime",
    "to_number",
    "to_wire",
    "apply_filters",
    "record_matches",
    "build_payload",
    "seed_create_values",
    "seed_edit_values",
    "depends_on",
    "requires",
    "resets",
    "resolve_options",
    "RevealWindow",
    "count_label",
    "apply_sort",
    "ColumnConfig",
    "EngineState",
    "EntitySchema",
    "FieldConfig",
    "FilterConfig",
    "Notice",
    "Option",
    "static",
    "computed",
    "RecordManager",
]
