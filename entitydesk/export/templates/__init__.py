"""
Export templates, one per entity endpoint, plus the generic fallback.
"""

from entitydesk.export.document import TemplateRegistry
from entitydesk.export.templates.appointments import AppointmentsTemplate
from entitydesk.export.templates.branches import BranchesTemplate
from entitydesk.export.templates.generic import GenericTemplate
from entitydesk.export.templates.inventory import InventoryTemplate
from entitydesk.export.templates.transactions import TransactionsTemplate
from entitydesk.export.templates.users import UsersTemplate


def default_registry() -> TemplateRegistry:
    registry = TemplateRegistry(fallback=GenericTemplate())
    registry.register("appointments", AppointmentsTemplate())
    registry.register("branches", BranchesTemplate())
    registry.register("inventory", InventoryTemplate())
    registry.register("transection", TransactionsTemplate())
    registry.register("transactions", TransactionsTemplate())
    registry.register("users", UsersTemplate())
    return registry


__all__ = [
    "default_registry",
    "AppointmentsTemplate",
    "BranchesTemplate",
    "GenericTemplate",
    "InventoryTemplate",
    "TransactionsTemplate",
    "UsersTemplate",
]
