from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from fx_deal_system.domain.value_objects import DealStatus


@dataclass
class DealRequest:
    """An incoming deal as submitted; every field may be missing."""

    deal_unique_id: str | None = None
    from_currency_iso_code: str | None = None
    to_currency_iso_code: str | None = None
    deal_timestamp: datetime | None = None
    deal_amount: Decimal | None = None


@dataclass
class Deal:
    deal_unique_id: str
    from_currency_iso_code: str
    to_currency_iso_code: str
    deal_timestamp: datetime
    deal_amount: Decimal
    id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_request(cls, request: DealRequest) -> "Deal":
        """Build an unsaved deal from a validated request, uppercasing the currency pair."""
        assert request.deal_unique_id is not None
        assert request.from_currency_iso_code is not None
        assert request.to_currency_iso_code is not None
        assert request.deal_timestamp is not None
        assert request.deal_amount is not None
        return cls(
            deal_unique_id=request.deal_unique_id,
            from_currency_iso_code=request.from_currency_iso_code.upper(),
            to_currency_iso_code=request.to_currency_iso_code.upper(),
            deal_timestamp=request.deal_timestamp,
            deal_amount=request.deal_amount,
        )

    @property
    def currency_pair(self) -> str:
        return f"{self.from_currency_iso_code}/{self.to_currency_iso_code}"


@dataclass
class DealResponse:
    deal_unique_id: str | None
    status: DealStatus
    message: str
    id: int | None = None
    from_currency_iso_code: str | None = None
    to_currency_iso_code: str | None = None
    deal_timestamp: datetime | None = None
    deal_amount: Decimal | None = None
    created_at: datetime | None = None

    @classmethod
    def from_deal(cls, deal: Deal, message: str) -> "DealResponse":
        return cls(
            id=deal.id,
            deal_unique_id=deal.deal_unique_id,
            status=DealStatus.SUCCESS,
            message=message,
            from_currency_iso_code=deal.from_currency_iso_code,
            to_currency_iso_code=deal.to_currency_iso_code,
            deal_timestamp=deal.deal_timestamp,
            deal_amount=deal.deal_amount,
            created_at=deal.created_at,
        )

    @classmethod
    def failed(cls, deal_unique_id: str | None, message: str) -> "DealResponse":
        return cls(
            deal_unique_id=deal_unique_id,
            status=DealStatus.FAILED,
            message=message,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == DealStatus.SUCCESS
