from fx_deal_system.domain.deals import Deal, DealRequest, DealResponse
from fx_deal_system.domain.value_objects import DealStatus

__all__ = [
    "Deal",
    "DealRequest",
    "DealResponse",
    "DealStatus",
]

__version__ = "0.1.0"
