"""
EntityDesk Kernel -- Option Resolver

Resolves the selectable choices of a field or filter. Choices are either a
static list or computed from the current values (form values for fields,
filter values for filters). Computed choices are re-evaluated on every
call: a stale list is a bug, not a cache hit.
"""

from __future__ import annotations

from typing import Any

from entitydesk.kernel.coercion import to_text
from entitydesk.kernel.types import FilterConfig, Option, Options, is_blank


def resolve_options(options: Options | None, values: dict[str, Any]) -> list[Option]:
    """Return the current choice list. No options configured -> []."""
    if options is None:
        return []
    return options.resolve(values)


def resolve_disabled(filter_config: FilterConfig, values: dict[str, Any]) -> bool:
    """Evaluate a filter's `disabled` flag or predicate."""
    disabled = filter_config.disabled
    if callable(disabled):
        return bool(disabled(dict(values)))
    return bool(disabled)


def find_option(options: list[Option], value: Any) -> Option | None:
    """Match by string form, so 3 and "3" select the same choice."""
    if is_blank(value):
        return None
    wanted = to_text(value)
    for option in options:
        if to_text(option.value) == wanted:
            return option
    return None


def is_selectable(options: Options | None, values: dict[str, Any], value: Any) -> bool:
    """True if `value` is one of the choices currently on offer."""
    return find_option(resolve_options(options, values), value) is not None


def apply_filter_change(
    filter_config: FilterConfig,
    key: str,
    value: Any,
    values: dict[str, Any],
) -> dict[str, Any]:
    """
    Store `value` under `key` (the filter key, or a date-range companion
    key) and merge the filter's on_change patch. Returns a new mapping.
    """
    updated = {**values, key: value}
    if filter_config.on_change is not None:
        patch = filter_config.on_change(value, dict(updated))
        if patch:
            updated.update(patch)
    return updated


# ---------------------------------------------------------------------------
# Config helpers
# ---------------------------------------------------------------------------


def resets(*keys: str):
    """on_change hook that clears dependent filter values."""

    def _reset(value: Any, values: dict[str, Any]) -> dict[str, Any]:
        return {key: "" for key in keys}

    return _reset


def requires(key: str):
    """disabled predicate: true until `key` has a value."""

    def _disabled(values: dict[str, Any]) -> bool:
        return is_blank(values.get(key))

    return _disabled


def depends_on(key: str, choices: dict[str, list[Option]]):
    """
    Options function keyed by another value. An unset or unknown parent
    yields no choices.
    """

    def _options(values: dict[str, Any]) -> list[Option]:
        parent = values.get(key)
        if is_blank(parent):
            return []
        return list(choices.get(to_text(parent), []))

    return _options
