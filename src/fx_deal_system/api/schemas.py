"""Pydantic v2 schemas for API request/response models.

JSON field names are camelCase on the wire; snake_case names are accepted
on input too.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from fx_deal_system.domain.deals import DealRequest, DealResponse

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Deal Schemas
class DealCreate(CamelModel):
    """Schema for importing a single deal; enforces the transport-level shape rules."""

    model_config = ConfigDict(str_strip_whitespace=True)

    deal_unique_id: str = Field(..., min_length=1)
    from_currency_iso_code: str = Field(..., min_length=3, max_length=3)
    to_currency_iso_code: str = Field(..., min_length=3, max_length=3)
    deal_timestamp: datetime
    deal_amount: Decimal = Field(..., gt=0)

    @field_validator("deal_timestamp")
    @classmethod
    def timestamp_not_in_future(cls, v: datetime) -> datetime:
        if v > datetime.now(v.tzinfo):
            raise ValueError("cannot be in the future")
        return v

    def to_domain(self) -> DealRequest:
        return DealRequest(
            deal_unique_id=self.deal_unique_id,
            from_currency_iso_code=self.from_currency_iso_code,
            to_currency_iso_code=self.to_currency_iso_code,
            deal_timestamp=self.deal_timestamp,
            deal_amount=self.deal_amount,
        )


class DealImportItem(CamelModel):
    """Schema for one bulk-import item.

    Every field is optional: business validation happens per item in the
    service so one bad item becomes a FAILED entry instead of rejecting the
    whole batch.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    deal_unique_id: str | None = None
    from_currency_iso_code: str | None = None
    to_currency_iso_code: str | None = None
    deal_timestamp: datetime | None = None
    deal_amount: Decimal | None = None

    def to_domain(self) -> DealRequest:
        return DealRequest(
            deal_unique_id=self.deal_unique_id,
            from_currency_iso_code=self.from_currency_iso_code,
            to_currency_iso_code=self.to_currency_iso_code,
            deal_timestamp=self.deal_timestamp,
            deal_amount=self.deal_amount,
        )


class DealResponseSchema(CamelModel):
    """Schema for a deal result, successful or failed."""

    id: int | None = None
    deal_unique_id: str | None = None
    status: str
    message: str
    from_currency_iso_code: str | None = None
    to_currency_iso_code: str | None = None
    deal_timestamp: datetime | None = None
    deal_amount: Decimal | None = None
    created_at: datetime | None = None

    @field_serializer("deal_timestamp", "created_at")
    def _format_timestamp(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return value.strftime(TIMESTAMP_FORMAT)

    @classmethod
    def from_domain(cls, response: DealResponse) -> "DealResponseSchema":
        return cls(
            id=response.id,
            deal_unique_id=response.deal_unique_id,
            status=response.status.value,
            message=response.message,
            from_currency_iso_code=response.from_currency_iso_code,
            to_currency_iso_code=response.to_currency_iso_code,
            deal_timestamp=response.deal_timestamp,
            deal_amount=response.deal_amount,
            created_at=response.created_at,
        )


# Error Schemas
class ErrorResponse(BaseModel):
    """Body returned for a single error."""

    timestamp: str
    status: int
    error: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Body returned when transport-level shape checks fail."""

    timestamp: str
    status: int
    error: str
    messages: dict[str, str]
