"""
EntityDesk Kernel -- Record Lifecycle Controller

Sits between the pure kernel (filtering, sorting, form, reveal) and the
outside world (the collection client, the session, the export writers).
Owns one EngineState per mounted entity.

Operations: fetch_all, open_create, open_edit, save, request_delete,
confirm_delete, set_search, set_filter, reveal_more, export

This is where IO happens. Everything it calls into is pure.

Errors never leave the controller. Transport failures become a single
Notice on `state.last_error`; successes land on `state.last_success`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, tzinfo
from typing import Any

from entitydesk.api.errors import ApiError, AuthenticationError
from entitydesk.api.session import Session
from entitydesk.config import Settings, settings as default_settings
from entitydesk.export.document import ExportContext, TableData, TemplateRegistry
from entitydesk.export.templates import default_registry
from entitydesk.export.workbook import workbook_filename, write_workbook
from entitydesk.kernel.filtering import apply_filters
from entitydesk.kernel.form import (
    build_payload,
    drop_stale_choices,
    missing_required,
    seed_create_values,
    seed_edit_values,
    unavailable_choices,
)
from entitydesk.kernel.options import apply_filter_change, find_option, resolve_disabled, resolve_options
from entitydesk.kernel.reveal import RevealWindow, count_label
from entitydesk.kernel.sorting import apply_sort
from entitydesk.kernel.types import (
    SORT_ORDERS,
    EngineState,
    EntitySchema,
    FieldConfig,
    FilterConfig,
    Notice,
    Option,
    Record,
    is_blank,
)

logger = logging.getLogger(__name__)


class RecordManager:
    """
    Drives the list, the create/edit dialog, the delete confirmation and
    the exports for one EntitySchema.

    `client` is anything with async list/create/update/delete (normally a
    CollectionClient). `session` is optional: without one the manager
    talks to the collection unauthenticated.

    Every fetch takes a new request token; a response whose token is no
    longer the latest is discarded, so the last fetch issued always wins.
    """

    def __init__(
        self,
        schema: EntitySchema,
        client: Any,
        session: Session | None = None,
        tz: tzinfo | None = None,
        templates: TemplateRegistry | None = None,
        settings: Settings | None = None,
    ):
        self.schema = schema
        self.client = client
        self.session = session
        self.tz = tz
        self.templates = templates or default_registry()
        self.settings = settings or default_settings

        self.state = EngineState(filter_values=dict(schema.default_filters))
        self.sort_key = schema.sort_key
        self.sort_order = schema.sort_order
        self.reveal = RevealWindow(step=schema.reveal_step)

        self._fetch_token = 0
        self._pending = 0
        self._form_generation = 0

    # -- busy --

    @property
    def busy(self) -> bool:
        return self._pending > 0

    def _begin(self) -> None:
        self._pending += 1
        self.state.loading = True

    def _end(self) -> None:
        self._pending -= 1
        self.state.loading = self._pending > 0

    def _report(self, error: ApiError, fallback: str) -> None:
        if isinstance(error, AuthenticationError) and self.session is not None:
            self.session.invalidate()
        self.state.last_error = Notice(error.kind, error.message or fallback)

    # -- access --

    def _check_access(self) -> bool:
        """
        Gate a fetch on the session. A missing credential asks the host to
        re-authenticate without an inline error; an expired one is
        invalidated and reported.
        """
        session = self.session
        if session is None:
            return True
        if session.token is None:
            logger.debug("controller: no credential for %s, requesting re-auth", self.schema.endpoint)
            session.request_reauth()
            return False
        if session.is_expired():
            session.invalidate()
            self.state.last_error = Notice("authentication", "Session expired, please sign in again")
            return False
        required = self.schema.required_role
        if required is not None and session.role != required:
            self.state.last_error = Notice("permission", f"{self.schema.title} requires the {required} role")
            return False
        return True

    # -- fetch --

    async def fetch_all(self) -> bool:
        """
        Replace the record set with one bounded page from the collection.
        Returns False when the fetch failed or was refused.
        """
        if not self._check_access():
            self.state.records = []
            return False

        self._fetch_token += 1
        token = self._fetch_token
        endpoint = self.schema.endpoint

        self._begin()
        try:
            records = await self.client.list(endpoint, limit=self.schema.page_size)
        except ApiError as e:
            if token != self._fetch_token:
                logger.debug("controller: discarding stale failed fetch %d for %s", token, endpoint)
                return False
            logger.warning("controller: fetch %s failed: %s", endpoint, e)
            self.state.records = []
            self._report(e, "Failed to load records")
            return False
        finally:
            self._end()

        if token != self._fetch_token:
            logger.debug("controller: discarding stale fetch %d for %s", token, endpoint)
            return False

        self.state.records = list(records)
        logger.debug("controller: fetched %d records for %s", len(self.state.records), endpoint)
        return True

    # -- form --

    def open_create(self) -> None:
        self._form_generation += 1
        self.state.editing_record = None
        self.state.form_values = seed_create_values(self.schema)
        self.state.form_open = True

    def open_edit(self, record: Record) -> None:
        self._form_generation += 1
        self.state.editing_record = record
        self.state.form_values = seed_edit_values(self.schema, record, self.tz)
        self.state.form_open = True

    def set_form_value(self, key: str, value: Any) -> bool:
        """
        Update one draft value. A value outside the field's current choices
        is refused; dependent choices the change invalidates are cleared.
        """
        field = self.schema.get_field(key)
        if field is not None and field.options is not None and not is_blank(value):
            if find_option(resolve_options(field.options, self.state.form_values), value) is None:
                logger.debug("controller: %r is not a choice for %s", value, key)
                return False
        values = {**self.state.form_values, key: value}
        self.state.form_values = drop_stale_choices(list(self.schema.fields), values)
        return True

    def close_form(self) -> None:
        self._form_generation += 1
        self.state.form_open = False
        self.state.editing_record = None
        self.state.form_values = {}

    def visible_fields(self) -> list[FieldConfig]:
        return self.schema.visible_fields(self.state.form_mode)

    def field_options(self, key: str) -> list[Option]:
        field = self.schema.get_field(key)
        if field is None:
            raise KeyError(key)
        return resolve_options(field.options, self.state.form_values)

    async def save(self) -> bool:
        """
        Create or update from the current draft, then refetch. The dialog
        closes only if it is still the same dialog session that started
        the save. On failure the dialog stays open with the error.
        """
        if self.busy:
            logger.debug("controller: save ignored while busy")
            return False
        if not self.state.form_open:
            return False

        editing = self.state.editing_record
        fields = self.visible_fields()
        values = self.state.form_values

        missing = missing_required(fields, values)
        if missing:
            self.state.last_error = Notice("validation", f"Required: {', '.join(missing)}")
            return False
        unavailable = unavailable_choices(fields, values)
        if unavailable:
            self.state.last_error = Notice("validation", f"Not available: {', '.join(unavailable)}")
            return False

        payload = build_payload(fields, values, self.tz)
        generation = self._form_generation
        endpoint = self.schema.endpoint
        self.state.last_error = None

        self._begin()
        try:
            if editing is not None:
                await self.client.update(endpoint, editing.get("id"), payload)
            else:
                await self.client.create(endpoint, payload)
        except ApiError as e:
            logger.warning("controller: save to %s failed: %s", endpoint, e)
            self._report(e, "Save failed")
            return False
        finally:
            self._end()

        self.state.last_success = Notice("success", "Updated" if editing is not None else "Created")
        await self.fetch_all()
        if self._form_generation == generation and self.state.form_open:
            self.close_form()
        return True

    # -- delete --

    def request_delete(self, record: Record) -> None:
        self.state.delete_target = record
        self.state.delete_open = True

    def cancel_delete(self) -> None:
        self.state.delete_target = None
        self.state.delete_open = False

    async def confirm_delete(self) -> bool:
        if self.busy:
            logger.debug("controller: delete ignored while busy")
            return False
        target = self.state.delete_target
        if not self.state.delete_open or target is None:
            return False

        endpoint = self.schema.endpoint
        self.state.last_error = None

        self._begin()
        try:
            await self.client.delete(endpoint, target.get("id"))
        except ApiError as e:
            logger.warning("controller: delete %s/%s failed: %s", endpoint, target.get("id"), e)
            self._report(e, "Delete failed")
            return False
        finally:
            self._end()

        self.state.last_success = Notice("success", "Deleted")
        await self.fetch_all()
        self.cancel_delete()
        return True

    # -- list --

    def set_search(self, term: str) -> None:
        self.state.search_term = term or ""

    def _filter_for(self, key: str) -> FilterConfig:
        for f in self.schema.filters:
            if key == f.key:
                return f
            if f.type == "date-range" and key in (f.from_key, f.to_key):
                return f
        raise KeyError(key)

    def set_filter(self, key: str, value: Any) -> bool:
        """
        Set a filter value (or a date-range `<key>From`/`<key>To` bound).
        A disabled filter keeps its value and False is returned.
        """
        filter_config = self._filter_for(key)
        if resolve_disabled(filter_config, self.state.filter_values):
            logger.debug("controller: filter %s is disabled, ignoring %r", key, value)
            return False
        self.state.filter_values = apply_filter_change(
            filter_config, key, value, self.state.filter_values
        )
        return True

    def reset_filters(self) -> None:
        self.state.search_term = ""
        self.state.filter_values = dict(self.schema.default_filters)

    def filter_options(self, key: str) -> list[Option]:
        return resolve_options(self._filter_for(key).options, self.state.filter_values)

    def filter_disabled(self, key: str) -> bool:
        return resolve_disabled(self._filter_for(key), self.state.filter_values)

    def set_sort(self, key: str, order: str | None = None) -> None:
        order = order or self.sort_order
        if order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {order}")
        self.sort_key = key
        self.sort_order = order

    def filtered_records(self) -> list[Record]:
        return apply_filters(
            self.state.records,
            self.state.search_term,
            self.schema.search_keys,
            self.schema.filters,
            self.state.filter_values,
            self.tz,
        )

    def sorted_records(self) -> list[Record]:
        return apply_sort(self.filtered_records(), self.sort_key, self.sort_order, self.tz)

    def visible_records(self) -> list[Record]:
        records = self.sorted_records()
        self.state.reveal_count = self.reveal.sync(len(records))
        return records[: self.state.reveal_count]

    def reveal_more(self) -> int:
        self.reveal.sync(len(self.sorted_records()))
        self.state.reveal_count = self.reveal.reveal_more()
        return self.state.reveal_count

    @property
    def has_more(self) -> bool:
        return self.reveal.has_more

    def total_label(self) -> str:
        return count_label(len(self.state.records), self.schema.page_size)

    # -- export --

    def criteria(self) -> list[tuple[str, str]]:
        """Active search and filters as (label, shown value) pairs."""
        criteria: list[tuple[str, str]] = []
        values = self.state.filter_values
        if self.state.search_term.strip():
            criteria.append(("Search", self.state.search_term.strip()))
        for f in self.schema.filters:
            if f.type == "date-range":
                low, high = values.get(f.from_key), values.get(f.to_key)
                if not is_blank(low) or not is_blank(high):
                    criteria.append((f.label, f"{low or '...'} to {high or '...'}"))
                continue
            value = values.get(f.key)
            if is_blank(value):
                continue
            option = find_option(resolve_options(f.options, values), value)
            criteria.append((f.label, option.label if option else str(value)))
        return criteria

    def build_table(self) -> TableData:
        template = self.templates.get(self.schema.endpoint)
        return template.build_table(self.schema.columns, self.sorted_records(), self.tz)

    async def export_workbook(self) -> tuple[str, bytes]:
        """(filename, xlsx bytes) for the filtered, sorted records."""
        table = self.build_table()
        data = await asyncio.to_thread(write_workbook, table, self.schema.title)
        return workbook_filename(self.schema.endpoint), data

    def export_document(self, generated_at: datetime | None = None) -> str:
        """Printable HTML for the filtered, sorted records."""
        template = self.templates.get(self.schema.endpoint)
        ctx = ExportContext(
            title=self.schema.title,
            endpoint=self.schema.endpoint,
            columns=self.schema.columns,
            records=self.sorted_records(),
            generated_at=generated_at or datetime.now(UTC),
            criteria=self.criteria(),
            total_label=self.total_label(),
            tz=self.tz,
            options={"low_stock_threshold": self.settings.LOW_STOCK_THRESHOLD},
        )
        logger.debug("controller: rendering %s document with %s", self.schema.endpoint, template.name)
        return template.build_document(ctx)
