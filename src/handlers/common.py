"""
Helpers shared by the route handlers: responses, request parsing,
store resolution and error mapping.
"""

from __future__ import annotations

import functools
import json
import uuid
from typing import Any, Callable, Dict, Optional

from repositories.ledger_store import LedgerStore
from utils.error_handling import (
    AppError,
    AuthenticationError,
    InvalidInputError,
    StoreUnavailableError,
    to_response,
)
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded store to avoid import-time DB connections
_ledger_store: Optional[LedgerStore] = None


def get_ledger_store() -> LedgerStore:
    """Lazy-load the SQL ledger store on first use."""
    global _ledger_store
    if _ledger_store is None:
        from repositories.connection import get_db_engine
        from repositories.sql_repo import SqlLedgerStore

        engine = get_db_engine()
        if engine is None:
            raise StoreUnavailableError("Database is not configured")
        _ledger_store = SqlLedgerStore(engine)
    return _ledger_store


def json_response(status: int, body: Any) -> Dict:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def parse_body(event: Dict) -> Dict[str, Any]:
    """Decode the JSON body; anything but an object is rejected."""
    try:
        payload = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Request body is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object")
    return payload


def query_params(event: Dict) -> Dict[str, str]:
    return event.get("queryStringParameters") or {}


def path_param(event: Dict, name: str) -> str:
    value = (event.get("pathParameters") or {}).get(name)
    if not value:
        raise InvalidInputError(f"Path parameter '{name}' is required")
    return value


def current_user_id(event: Dict) -> str:
    """The `sub` claim placed on the request by the JWT authorizer."""
    claims = (
        event.get("requestContext", {})
        .get("authorizer", {})
        .get("jwt", {})
        .get("claims", {})
    )
    user_id = claims.get("sub")
    if not user_id:
        raise AuthenticationError()
    return user_id


def current_store_id(event: Dict) -> str:
    """Resolve the signed-in owner to their store id."""
    from services.profile_service import ProfileService

    return ProfileService(get_ledger_store()).resolve_store(current_user_id(event)).id


def api_route(handler: Callable[[Dict, Any], Dict]) -> Callable[[Dict, Any], Dict]:
    """Map AppError to its status code and anything unexpected to a logged 500."""

    @functools.wraps(handler)
    def wrapper(event, context):
        correlation_id = event.get("requestContext", {}).get("requestId") or str(uuid.uuid4())
        try:
            return handler(event, context)
        except AppError as exc:
            logger.info(
                "Request rejected",
                extra={
                    "correlation_id": correlation_id,
                    "handler": handler.__name__,
                    "status_code": exc.status_code,
                    "error": str(exc),
                },
            )
            return to_response(exc, correlation_id)
        except Exception:
            logger.exception(
                "Request failed", extra={"correlation_id": correlation_id, "handler": handler.__name__}
            )
            return json_response(
                500, {"message": "Internal error", "status": "error", "correlation_id": correlation_id}
            )

    return wrapper
