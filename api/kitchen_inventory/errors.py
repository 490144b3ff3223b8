# kitchen_inventory/errors.py
"""
Error taxonomy shared by store, services and routers.

Routers translate these into HTTP status codes:
ValidationError -> 400, NotFoundError -> 404, StorageError/UpstreamError -> 500.
"""
from __future__ import annotations


class InventoryError(Exception):
    """Base class for all kitchen inventory errors."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(InventoryError):
    """Missing or malformed required field. Client-caused, never retried."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(InventoryError):
    status_code = 404


class StorageError(InventoryError):
    """Persistence unreachable or a write failed."""

    status_code = 500


class UpstreamError(InventoryError):
    """Third-party API (recipes) failed or was unreachable."""

    status_code = 500
