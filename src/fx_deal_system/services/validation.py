"""Business validation for incoming deals.

Validation is pure: it never touches storage, so the import workflow can run
it to completion before issuing any duplicate check or write.
"""

import re
from datetime import datetime

from fx_deal_system.domain.deals import DealRequest
from fx_deal_system.domain.value_objects import (
    RESERVED_CURRENCY_CODES,
    is_active_currency,
)
from fx_deal_system.exceptions import InvalidDealError

_ISO_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_mandatory_fields(request: DealRequest) -> None:
    if _is_blank(request.deal_unique_id):
        raise InvalidDealError("Deal unique ID is required")
    if _is_blank(request.from_currency_iso_code):
        raise InvalidDealError("From currency ISO code is required")
    if _is_blank(request.to_currency_iso_code):
        raise InvalidDealError("To currency ISO code is required")
    if request.deal_amount is None:
        raise InvalidDealError("Deal amount is required")
    if request.deal_timestamp is None:
        raise InvalidDealError("Deal timestamp is required")


def _invalid_code(code: str) -> InvalidDealError:
    return InvalidDealError(
        f"Invalid currency ISO code: {code}", context={"currency_code": code}
    )


def validate_currency_codes(request: DealRequest) -> None:
    """Check both ISO 4217 codes: shape, then reserved codes, then table membership.

    Each stage covers both codes before the next stage runs. Error messages
    echo the code exactly as submitted.
    """
    codes = (request.from_currency_iso_code or "", request.to_currency_iso_code or "")

    for code in codes:
        if not _ISO_CODE_PATTERN.match(code.upper()):
            raise _invalid_code(code)
    for code in codes:
        if code.upper() in RESERVED_CURRENCY_CODES:
            raise _invalid_code(code)
    for code in codes:
        if not is_active_currency(code):
            raise _invalid_code(code)


def validate_deal(request: DealRequest, now: datetime | None = None) -> None:
    """Validate a deal request, raising InvalidDealError on the first failed rule.

    Rules, in order: mandatory fields, currency code shape, reserved codes,
    ISO 4217 membership, distinct currencies, positive amount, timestamp not
    in the future.

    Args:
        request: The deal as submitted.
        now: Reference time for the future-timestamp rule; defaults to the
            current wall-clock time in the timestamp's own timezone.
    """
    validate_mandatory_fields(request)
    validate_currency_codes(request)

    assert request.from_currency_iso_code is not None
    assert request.to_currency_iso_code is not None
    if request.from_currency_iso_code.upper() == request.to_currency_iso_code.upper():
        raise InvalidDealError("From and To currencies must be different")

    if request.deal_amount is None or request.deal_amount <= 0:
        raise InvalidDealError("Deal amount must be positive")

    timestamp = request.deal_timestamp
    if timestamp is not None:
        if now is None:
            now = datetime.now(timestamp.tzinfo)
        if timestamp > now:
            raise InvalidDealError("Deal timestamp cannot be in the future")
