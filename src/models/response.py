"""Envelope for write endpoints."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Confirmation shown to the store owner plus the affected record."""

    message: str
    data: Optional[Any] = None
    warnings: List[str] = Field(default_factory=list)
    correlation_id: Optional[str] = None
