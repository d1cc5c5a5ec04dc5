"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class InvalidInputError(AppError):
    """Raised when arguments are malformed or out of range."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


class NotFoundError(AppError):
    """Raised when a requested resource is missing or owned by another store."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictingReferenceError(AppError):
    """Raised when a write points at a customer of a different store."""

    def __init__(self, message: str = "Customer belongs to a different store"):
        super().__init__(message, status_code=409)


class AuthenticationError(AppError):
    """Raised when the request carries no signed-in user."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401)


class StoreUnavailableError(AppError):
    """Raised when the backing store fails; carries the driver message."""

    def __init__(self, message: str = "Store unavailable"):
        super().__init__(message, status_code=503)


def to_response(error: AppError, correlation_id: Optional[str] = None) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    body = {"message": str(error), "status": "error"}
    if correlation_id:
        body["correlation_id"] = correlation_id
    return {
        "statusCode": error.status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
