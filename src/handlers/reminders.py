"""Handlers for /reminders routes."""

from datetime import date, timedelta
from typing import Optional

from handlers.common import api_route, current_store_id, get_ledger_store, json_response, path_param, query_params

# Lazy-loaded service to avoid import-time DB connections
_reminder_service: Optional["ReminderService"] = None


def _get_reminder_service():
    """Lazy-load ReminderService."""
    global _reminder_service
    if _reminder_service is None:
        from services.reminder_service import ReminderService
        _reminder_service = ReminderService(get_ledger_store())
    return _reminder_service


@api_route
def upcoming_handler(event, context):
    """GET /reminders/upcoming?from=YYYY-MM-DD&to=YYYY-MM-DD (defaults to the coming week)."""
    service = _get_reminder_service()
    params = query_params(event)
    start = params.get("from") or date.today()
    end = params.get("to") or date.today() + timedelta(days=service.settings.upcoming_reminder_days)
    reminders = service.list_upcoming(current_store_id(event), start, end)
    return json_response(
        200,
        {"count": len(reminders), "reminders": [r.model_dump(mode="json") for r in reminders]},
    )


@api_route
def mark_sent_handler(event, context):
    """POST /reminders/{id}/sent, called by whatever delivered the reminder."""
    reminder = _get_reminder_service().mark_sent(current_store_id(event), path_param(event, "id"))
    return json_response(200, reminder.model_dump(mode="json"))
