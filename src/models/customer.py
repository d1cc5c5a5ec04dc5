"""Customer models."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from models.funnel import FunnelStage


class Customer(BaseModel):
    """A customer row; `name`/`phone` map to customer_name/whatsapp_number."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    store_id: str
    name: str = Field("", alias="customer_name")
    phone: str = Field("", alias="whatsapp_number")
    email: Optional[str] = None
    product_interest: Optional[str] = None
    total_points: int = Field(0, ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def null_to_empty(cls, value):
        return "" if value is None else value


class CustomerView(Customer):
    """Customer joined with its current funnel stage and tags."""

    stage: FunnelStage = FunnelStage.NEW
    tags: List[str] = Field(default_factory=list)


class CustomerCreate(BaseModel):
    """Registration form: the customer plus optional funnel, tags, note and reminder."""

    name: str = Field(validation_alias=AliasChoices("name", "customer_name"))
    phone: str = Field(validation_alias=AliasChoices("phone", "whatsapp_number"))
    email: Optional[str] = None
    product_interest: Optional[str] = None
    stage: FunnelStage = FunnelStage.NEW
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    reminder_date: Optional[date] = None
    reminder_message: Optional[str] = None

    @field_validator("name", "phone")
    @classmethod
    def validate_required(cls, value: str) -> str:
        """Name and WhatsApp number are mandatory on the registration form."""
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("must not be empty")
        return cleaned

    @field_validator("email", "product_interest", "notes", "reminder_message", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("reminder_date", mode="before")
    @classmethod
    def blank_date_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CustomerFilter(BaseModel):
    """List filters; empty values disable a predicate, all predicates are ANDed."""

    search_term: str = ""
    stage_filter: str = ""
    tag_filter: str = ""


class SecondaryFailure(BaseModel):
    """A follow-up insert of create_customer that did not go through."""

    step: str
    message: str


class CustomerCreateResult(BaseModel):
    """Outcome of registering a customer; the customer survives secondary failures."""

    customer: CustomerView
    failures: List[SecondaryFailure] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures
