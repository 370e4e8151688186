"""
Entity presets -- the five collections the engine manages out of the box.

Each preset is plain configuration. Nothing here is entity logic: the
engine behaves identically for all of them, and per-entity reporting
lives in entitydesk.export.templates.
"""

from __future__ import annotations

from entitydesk.kernel.options import depends_on, requires, resets
from entitydesk.kernel.types import (
    ColumnConfig,
    EntitySchema,
    FieldConfig,
    FilterConfig,
    Option,
    computed,
    static,
)

ACTIVE_CHOICES = static(("true", "Active"), ("false", "Inactive"))

APPOINTMENT_STATUSES = static(
    ("scheduled", "Scheduled"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
)

TRANSACTION_TYPES = static(("income", "Income"), ("expense", "Expense"))

TRANSACTION_STATUSES = static(
    ("pending", "Pending"),
    ("paid", "Paid"),
    ("refunded", "Refunded"),
)

PAYMENT_METHODS = static(
    ("cash", "Cash"),
    ("transfer", "Bank transfer"),
    ("card", "Card"),
    ("qr", "QR payment"),
)

# Category choices per transaction type. The lists never overlap.
TRANSACTION_CATEGORIES: dict[str, list[Option]] = {
    "income": [
        Option("service", "Service"),
        Option("product", "Product sale"),
        Option("membership", "Membership"),
        Option("other-income", "Other income"),
    ],
    "expense": [
        Option("rent", "Rent"),
        Option("salary", "Salary"),
        Option("supplies", "Supplies"),
        Option("utilities", "Utilities"),
        Option("other-expense", "Other expense"),
    ],
}

USER_ROLES = static(("member", "Member"), ("employee", "Staff"), ("admin", "Admin"))


APPOINTMENTS = EntitySchema(
    title="Appointments",
    endpoint="appointments",
    columns=(
        ColumnConfig("id", "ID"),
        ColumnConfig("branchId", "Branch", render="relation"),
        ColumnConfig("memberId", "Customer", render="relation"),
        ColumnConfig("employeeId", "Staff", render="relation"),
        ColumnConfig("startAt", "Start", render="datetime"),
        ColumnConfig("endAt", "End", render="datetime"),
        ColumnConfig("status", "Status", render="status"),
    ),
    fields=(
        FieldConfig("branchId", "Branch ID", type="number", required=True, layout="half"),
        FieldConfig("memberId", "Customer ID", type="number", required=True, layout="half"),
        FieldConfig("employeeId", "Staff ID", type="number", send_null_when_empty=True, layout="half"),
        FieldConfig("startAt", "Start", type="datetime", required=True, layout="half"),
        FieldConfig("endAt", "End", type="datetime", required=True, layout="half"),
        FieldConfig("status", "Status", type="select", options=APPOINTMENT_STATUSES, layout="half"),
        FieldConfig("notes", "Notes", type="textarea", layout="full"),
    ),
    filters=(
        FilterConfig("status", "Status", options=APPOINTMENT_STATUSES),
        FilterConfig("startAt", "Start date", type="date-range"),
    ),
    search_keys=("notes", "id"),
    sort_key="startAt",
    default_form_values={"status": "scheduled"},
)

BRANCHES = EntitySchema(
    title="Branches",
    endpoint="branches",
    columns=(
        ColumnConfig("id", "ID"),
        ColumnConfig("name", "Name"),
        ColumnConfig("address", "Address"),
        ColumnConfig("phone", "Phone"),
        ColumnConfig("isActive", "Status", render="active"),
    ),
    fields=(
        FieldConfig("name", "Name", required=True),
        FieldConfig("address", "Address", layout="full"),
        FieldConfig("phone", "Phone"),
        FieldConfig("isActive", "Active", type="boolean"),
    ),
    filters=(FilterConfig("isActive", "Status", type="boolean", options=ACTIVE_CHOICES),),
    search_keys=("name", "address", "phone"),
    default_form_values={"isActive": True},
)

INVENTORY = EntitySchema(
    title="Inventory",
    endpoint="inventory",
    columns=(
        ColumnConfig("id", "ID"),
        ColumnConfig("branchId", "Branch", render="relation"),
        ColumnConfig("sku", "SKU"),
        ColumnConfig("name", "Item"),
        ColumnConfig("quantity", "Quantity"),
        ColumnConfig("unit", "Unit"),
        ColumnConfig("cost", "Cost", render="money"),
    ),
    fields=(
        FieldConfig("branchId", "Branch ID", type="number", required=True),
        FieldConfig("sku", "SKU", required=True),
        FieldConfig("name", "Item name", required=True),
        FieldConfig("quantity", "Quantity", type="number", step="1"),
        FieldConfig("unit", "Unit"),
        FieldConfig("cost", "Cost", type="number", step="0.01"),
    ),
    filters=(FilterConfig("branchId", "Branch", type="number"),),
    search_keys=("sku", "name"),
)

TRANSACTIONS = EntitySchema(
    title="Income & expenses",
    endpoint="transection",
    columns=(
        ColumnConfig("id", "ID"),
        ColumnConfig("type", "Type"),
        ColumnConfig("category", "Category"),
        ColumnConfig("title", "Item"),
        ColumnConfig("amount", "Amount", render="money"),
        ColumnConfig("currency", "Currency"),
        ColumnConfig("paymentMethod", "Payment"),
        ColumnConfig("branchId", "Branch", render="relation"),
        ColumnConfig("status", "Status", render="status"),
        ColumnConfig("occurredAt", "Date", render="datetime"),
        ColumnConfig("notes", "Notes"),
    ),
    fields=(
        FieldConfig("type", "Type", type="select", options=TRANSACTION_TYPES, required=True),
        FieldConfig(
            "category",
            "Category",
            type="dependent-choice",
            options=computed(depends_on("type", TRANSACTION_CATEGORIES)),
        ),
        FieldConfig("title", "Item", required=True),
        FieldConfig("amount", "Amount", type="number", step="0.01", required=True),
        FieldConfig("currency", "Currency"),
        FieldConfig("paymentMethod", "Payment method", type="select", options=PAYMENT_METHODS),
        FieldConfig("branchId", "Branch ID", type="dependent-choice", send_null_when_empty=True),
        FieldConfig("status", "Status", type="select", options=TRANSACTION_STATUSES),
        FieldConfig("occurredAt", "Date", type="datetime", required=True),
        FieldConfig("notes", "Notes", type="textarea", layout="full"),
    ),
    filters=(
        FilterConfig("type", "Type", options=TRANSACTION_TYPES, on_change=resets("category")),
        FilterConfig(
            "category",
            "Category",
            type="dependent-choice",
            options=computed(depends_on("type", TRANSACTION_CATEGORIES)),
            disabled=requires("type"),
        ),
        FilterConfig("status", "Status", options=TRANSACTION_STATUSES),
        FilterConfig("paymentMethod", "Payment", options=PAYMENT_METHODS),
        FilterConfig("occurredAt", "Date", type="date-range"),
    ),
    search_keys=("title", "notes"),
    sort_key="occurredAt",
    default_form_values={"currency": "THB", "status": "pending"},
)

USERS = EntitySchema(
    title="Users",
    endpoint="users",
    columns=(
        ColumnConfig("id", "ID"),
        ColumnConfig("email", "Email"),
        ColumnConfig("name", "Name"),
        ColumnConfig("phone", "Phone"),
        ColumnConfig("role", "Role"),
        ColumnConfig("isActive", "Status", render="active"),
    ),
    fields=(
        FieldConfig("email", "Email", required=True, visibility="create"),
        FieldConfig("password", "Password", type="password"),
        FieldConfig("name", "Name", required=True),
        FieldConfig("phone", "Phone"),
        FieldConfig("role", "Role", type="select", options=USER_ROLES),
        FieldConfig("isActive", "Active", type="boolean"),
    ),
    filters=(
        FilterConfig("role", "Role", options=USER_ROLES),
        FilterConfig("isActive", "Status", type="boolean", options=ACTIVE_CHOICES),
    ),
    search_keys=("email", "name", "phone"),
    required_role="admin",
    default_form_values={"role": "member", "isActive": True},
)

SCHEMAS: dict[str, EntitySchema] = {
    schema.endpoint: schema for schema in (APPOINTMENTS, BRANCHES, INVENTORY, TRANSACTIONS, USERS)
}
ALIASES = {"transactions": "transection"}


def get_schema(name: str) -> EntitySchema:
    """Preset by endpoint (or alias). Raises KeyError for unknown names."""
    return SCHEMAS[ALIASES.get(name, name)]


def schema_names() -> list[str]:
    return sorted(SCHEMAS)
