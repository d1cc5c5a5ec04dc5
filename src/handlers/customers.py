"""Handlers for /customers routes."""

from typing import Optional

from handlers.common import (
    api_route,
    current_store_id,
    get_ledger_store,
    json_response,
    parse_body,
    path_param,
    query_params,
)
from models.customer import CustomerFilter
from models.response import ApiResponse
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded services to avoid import-time DB connections
_customer_service: Optional["CustomerService"] = None
_funnel_service: Optional["FunnelService"] = None
_reminder_service: Optional["ReminderService"] = None


def _get_customer_service():
    """Lazy-load CustomerService."""
    global _customer_service
    if _customer_service is None:
        from services.customer_service import CustomerService
        _customer_service = CustomerService(get_ledger_store())
    return _customer_service


def _get_funnel_service():
    """Lazy-load FunnelService."""
    global _funnel_service
    if _funnel_service is None:
        from services.funnel_service import FunnelService
        _funnel_service = FunnelService(get_ledger_store())
    return _funnel_service


def _get_reminder_service():
    """Lazy-load ReminderService."""
    global _reminder_service
    if _reminder_service is None:
        from services.reminder_service import ReminderService
        _reminder_service = ReminderService(get_ledger_store())
    return _reminder_service


@api_route
def list_handler(event, context):
    """GET /customers?search=&stage=&tag="""
    params = query_params(event)
    filters = CustomerFilter(
        search_term=params.get("search", ""),
        stage_filter=params.get("stage", ""),
        tag_filter=params.get("tag", ""),
    )
    customers = _get_customer_service().list_customers(current_store_id(event), filters)
    return json_response(200, {"customers": [c.model_dump(mode="json") for c in customers]})


@api_route
def create_handler(event, context):
    """POST /customers"""
    result = _get_customer_service().create_customer(current_store_id(event), parse_body(event))
    response = ApiResponse(
        message=f"{result.customer.name} foi cadastrado no sistema.",
        data=result.customer.model_dump(mode="json"),
        warnings=[f"{f.step}: {f.message}" for f in result.failures],
    )
    return json_response(201, response.model_dump(mode="json"))


@api_route
def detail_handler(event, context):
    """GET /customers/{id}: customer with notes, purchases and reminders."""
    store_id = current_store_id(event)
    customer_id = path_param(event, "id")
    service = _get_customer_service()
    customer = service.load_customer(store_id, customer_id)
    body = customer.model_dump(mode="json")
    body["stage_label"] = customer.stage.label
    body["notes"] = [n.model_dump(mode="json") for n in service.list_notes(store_id, customer_id)]
    body["purchases"] = [p.model_dump(mode="json") for p in service.list_purchases(store_id, customer_id)]
    body["reminders"] = [
        r.model_dump(mode="json")
        for r in _get_reminder_service().list_for_customer(store_id, customer_id)
    ]
    return json_response(200, body)


@api_route
def purchase_handler(event, context):
    """POST /customers/{id}/purchases {purchase_value, points_per_real?, description?}"""
    payload = parse_body(event)
    purchase = _get_customer_service().record_purchase(
        current_store_id(event),
        path_param(event, "id"),
        payload.get("purchase_value"),
        rate=payload.get("points_per_real"),
        description=payload.get("description"),
    )
    response = ApiResponse(
        message=f"{purchase.points_earned} pontos adicionados ao cliente.",
        data=purchase.model_dump(mode="json"),
    )
    return json_response(201, response.model_dump(mode="json"))


@api_route
def stage_handler(event, context):
    """PUT /customers/{id}/stage {stage, notes?}"""
    payload = parse_body(event)
    status = _get_funnel_service().set_stage(
        current_store_id(event),
        path_param(event, "id"),
        payload.get("stage"),
        notes=payload.get("notes"),
    )
    response = ApiResponse(message="Status atualizado com sucesso!", data=status.model_dump(mode="json"))
    return json_response(200, response.model_dump(mode="json"))


@api_route
def note_handler(event, context):
    """POST /customers/{id}/notes {note}"""
    note = _get_customer_service().add_note(
        current_store_id(event), path_param(event, "id"), parse_body(event).get("note")
    )
    response = ApiResponse(message="Nota adicionada com sucesso!", data=note.model_dump(mode="json"))
    return json_response(201, response.model_dump(mode="json"))


@api_route
def tags_handler(event, context):
    """POST /customers/{id}/tags {tags: [...]}"""
    tags = _get_customer_service().add_tags(
        current_store_id(event), path_param(event, "id"), parse_body(event).get("tags") or []
    )
    response = ApiResponse(
        message="Tags atualizadas com sucesso!", data=[t.model_dump(mode="json") for t in tags]
    )
    return json_response(201, response.model_dump(mode="json"))


@api_route
def reminder_handler(event, context):
    """POST /customers/{id}/reminders {reminder_date, message?}"""
    payload = parse_body(event)
    reminder = _get_reminder_service().schedule(
        current_store_id(event),
        path_param(event, "id"),
        payload.get("reminder_date"),
        message=payload.get("message"),
    )
    response = ApiResponse(message="Lembrete criado com sucesso!", data=reminder.model_dump(mode="json"))
    return json_response(201, response.model_dump(mode="json"))
