from __future__ import annotations

from typing import Any


class ServiceError(ValueError):
    status_code = 400

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ServiceError):
    status_code = 400


class InvalidRoleError(ValidationError):
    pass


class InsufficientStockError(ServiceError):
    status_code = 400

    def __init__(self, message: str, *, item_code: str, requested: int, available: int, dispatch_id: int | None = None) -> None:
        super().__init__(message, details={'item_code': item_code, 'requested': requested, 'available': available})
        self.item_code = item_code
        self.requested = requested
        self.available = available
        # Set when the dispatch row was written before the stock check.
        self.dispatch_id = dispatch_id


class NotFoundError(ServiceError):
    status_code = 404


class AuthenticationRequiredError(ServiceError):
    status_code = 401


class PermissionDeniedError(ServiceError):
    status_code = 403
