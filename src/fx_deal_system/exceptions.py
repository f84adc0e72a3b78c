"""Error taxonomy for the FX Deal System.

Every error the system raises on purpose derives from FXDealSystemError and
carries the HTTP status and error title the API boundary renders for it.
Anything outside this hierarchy is treated as unexpected and surfaces as a
generic 500.
"""

from datetime import datetime
from typing import Any


class FXDealSystemError(Exception):
    """Base exception for all FX Deal System errors."""

    error_code: str = "FXD_ERROR"
    status_code: int = 500
    title: str = "Internal Server Error"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Render the error body returned by the API."""
        return {
            "timestamp": datetime.now().strftime("%Y-%m-%dT%H:%M:%S"),
            "status": self.status_code,
            "error": self.title,
            "message": self.message,
        }


# =============================================================================
# Deal Errors
# =============================================================================


class DealError(FXDealSystemError):
    """Base exception for deal-related client errors."""

    error_code = "DEAL_ERROR"
    status_code = 400


class InvalidDealError(DealError):
    """Raised for malformed or semantically invalid deals, and for unknown ids on read."""

    error_code = "INVALID_DEAL"
    title = "Invalid Deal"


class DuplicateDealError(DealError):
    """Raised when a deal with the same unique id already exists."""

    error_code = "DUPLICATE_DEAL"
    status_code = 409
    title = "Duplicate Deal"

    def __init__(self, deal_unique_id: str) -> None:
        super().__init__(
            f"Deal with ID {deal_unique_id} already exists",
            context={"deal_unique_id": deal_unique_id},
        )
        self.deal_unique_id = deal_unique_id


class RequestValidationFailedError(DealError):
    """Raised when a request fails transport-level shape checks.

    Carries a field -> reason mapping instead of a single message.
    """

    error_code = "VALIDATION_FAILED"
    title = "Validation Failed"

    def __init__(self, messages: dict[str, str]) -> None:
        super().__init__(
            "; ".join(f"{field}: {reason}" for field, reason in messages.items()),
            context={"fields": sorted(messages)},
        )
        self.messages = messages

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        del body["message"]
        body["messages"] = self.messages
        return body


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(FXDealSystemError):
    """Base exception for storage failures."""

    error_code = "DATABASE_ERROR"
    status_code = 500
    title = "Database Error"


class IntegrityError(DatabaseError):
    """Raised when the store rejects a write on a constraint.

    ``is_unique_violation`` is set when the rejected constraint is a
    uniqueness constraint, which the import workflow reports as a duplicate.
    """

    error_code = "INTEGRITY_ERROR"
    status_code = 409
    title = "Data Integrity Violation"

    def __init__(self, message: str, *, is_unique_violation: bool = False) -> None:
        super().__init__(
            message, context={"is_unique_violation": is_unique_violation}
        )
        self.is_unique_violation = is_unique_violation
