"""Validation helpers shared by services; all raise InvalidInputError."""

import re
from datetime import date, datetime
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from utils.error_handling import InvalidInputError

ModelT = TypeVar("ModelT", bound=BaseModel)

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def ensure_present(value: Any, field: str) -> None:
    """Raise InvalidInputError if value is missing or blank."""
    if value is None or (isinstance(value, str) and not value.strip()) or value == []:
        raise InvalidInputError(f"{field} is required")


def parse_date(value: Any, field: str = "date") -> date:
    """Accept a date, datetime or ISO YYYY-MM-DD string and return a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.fullmatch(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidInputError(f"{field} must be a valid calendar date (YYYY-MM-DD)")


def parse_model(model_cls: Type[ModelT], payload: Any) -> ModelT:
    """Validate a payload into a pydantic model, mapping errors to InvalidInputError."""
    if isinstance(payload, model_cls):
        return payload
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidInputError(details) from exc
