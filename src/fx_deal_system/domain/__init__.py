from fx_deal_system.domain.deals import Deal, DealRequest, DealResponse
from fx_deal_system.domain.value_objects import (
    ISO_4217_CODES,
    RESERVED_CURRENCY_CODES,
    DealStatus,
    is_active_currency,
)

__all__ = [
    "Deal",
    "DealRequest",
    "DealResponse",
    "DealStatus",
    "ISO_4217_CODES",
    "RESERVED_CURRENCY_CODES",
    "is_active_currency",
]
