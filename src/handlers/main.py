"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

One Lambda keeps the database pool warm across routes while each route
still lives in its own module.
"""

import re
from typing import Callable, Dict, Pattern, Tuple

from . import customers, dashboard, health_check, reminders
from .common import json_response

_ID = r"(?P<id>[^/]+)"

# (method, path pattern, handler attribute) checked in order.
_ROUTES: Tuple[Tuple[str, Pattern, Tuple[object, str]], ...] = (
    ("GET", re.compile(r"^/health$"), (health_check, "lambda_handler")),
    ("GET", re.compile(r"^/dashboard$"), (dashboard, "lambda_handler")),
    ("GET", re.compile(r"^/customers$"), (customers, "list_handler")),
    ("POST", re.compile(r"^/customers$"), (customers, "create_handler")),
    ("GET", re.compile(rf"^/customers/{_ID}$"), (customers, "detail_handler")),
    ("POST", re.compile(rf"^/customers/{_ID}/purchases$"), (customers, "purchase_handler")),
    ("PUT", re.compile(rf"^/customers/{_ID}/stage$"), (customers, "stage_handler")),
    ("POST", re.compile(rf"^/customers/{_ID}/notes$"), (customers, "note_handler")),
    ("POST", re.compile(rf"^/customers/{_ID}/tags$"), (customers, "tags_handler")),
    ("POST", re.compile(rf"^/customers/{_ID}/reminders$"), (customers, "reminder_handler")),
    ("GET", re.compile(r"^/reminders/upcoming$"), (reminders, "upcoming_handler")),
    ("POST", re.compile(rf"^/reminders/{_ID}/sent$"), (reminders, "mark_sent_handler")),
)


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    Path parameters captured by the route pattern are merged into
    event["pathParameters"] before the route handler runs.
    """
    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method", "").upper()
    path = http.get("path", "").rstrip("/") or "/"

    for route_method, pattern, (module, attr) in _ROUTES:
        match = pattern.match(path)
        if route_method == method and match:
            if match.groupdict():
                event["pathParameters"] = {**(event.get("pathParameters") or {}), **match.groupdict()}
            handler: Callable[[Dict, object], Dict] = getattr(module, attr)
            return handler(event, context)

    return json_response(404, {"message": "Route not found", "route": f"{method} {path}"})
