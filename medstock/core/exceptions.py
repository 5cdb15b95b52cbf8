# medstock/core/exceptions.py
"""
Domain exceptions raised by the services layer.

Each class carries the HTTP status it maps to; the handlers registered in
medstock.main render them as {"message": str(exc)}.
"""


class InventoryError(Exception):
    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class ValidationError(InventoryError):
    status_code = 400
    default_message = "Invalid request."


class InsufficientStockError(ValidationError):
    default_message = "Invalid quantity."


class InvalidCurrentPasswordError(ValidationError):
    default_message = "Incorrect current password."


class AuthenticationError(InventoryError):
    status_code = 401
    default_message = "Incorrect password."


class AuthorizationError(InventoryError):
    status_code = 401
    default_message = "Unauthorized."


class LoginRequiredError(AuthorizationError):
    """Anonymous request for an HTML page; answered with a redirect."""


class NotFoundError(InventoryError):
    status_code = 404
    default_message = "Item not found."


class ConflictError(InventoryError):
    status_code = 409
    default_message = "An item with the same code or barcode already exists in this category."


class StorageError(InventoryError):
    status_code = 500
    default_message = "Storage error."
