# kitchen_inventory/services/__init__.py
"""
Business logic services for Kitchen Inventory.
"""
from kitchen_inventory.services.reconciliation import (
    ReconciliationService,
    UpsertResult,
    derive_status,
)
from kitchen_inventory.services.recipes import RecipeClient

__all__ = [
    "ReconciliationService",
    "UpsertResult",
    "derive_status",
    "RecipeClient",
]
