"""Handler for GET /dashboard."""

from typing import Optional

from handlers.common import api_route, current_store_id, get_ledger_store, json_response

# Lazy-loaded service to avoid import-time DB connections
_dashboard_service: Optional["DashboardService"] = None


def _get_dashboard_service():
    """Lazy-load DashboardService."""
    global _dashboard_service
    if _dashboard_service is None:
        from services.dashboard_service import DashboardService
        _dashboard_service = DashboardService(get_ledger_store())
    return _dashboard_service


@api_route
def lambda_handler(event, context):
    """Return dashboard stats and the message of the day."""
    from services.dashboard_service import motivational_message

    stats = _get_dashboard_service().get_stats(current_store_id(event))
    return json_response(200, {"stats": stats.model_dump(mode="json"), "message": motivational_message()})
