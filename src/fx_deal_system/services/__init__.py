from fx_deal_system.services.deals import (
    FETCHED_MESSAGE,
    IMPORTED_MESSAGE,
    DealServiceImpl,
)
from fx_deal_system.services.interfaces import DealService
from fx_deal_system.services.validation import (
    validate_currency_codes,
    validate_deal,
    validate_mandatory_fields,
)

__all__ = [
    "DealService",
    "DealServiceImpl",
    "FETCHED_MESSAGE",
    "IMPORTED_MESSAGE",
    "validate_currency_codes",
    "validate_deal",
    "validate_mandatory_fields",
]
