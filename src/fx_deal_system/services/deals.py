"""Deal import, bulk import and query workflows."""

from __future__ import annotations

from collections.abc import Iterable

from fx_deal_system.domain.deals import Deal, DealRequest, DealResponse
from fx_deal_system.exceptions import (
    DuplicateDealError,
    FXDealSystemError,
    IntegrityError,
    InvalidDealError,
)
from fx_deal_system.logging_config import LogContext, get_logger
from fx_deal_system.repositories.interfaces import DealRepository, TransactionManager
from fx_deal_system.services.interfaces import DealService
from fx_deal_system.services.validation import validate_deal

logger = get_logger(__name__)

IMPORTED_MESSAGE = "Deal imported successfully"
FETCHED_MESSAGE = "Deal fetched successfully"


class DealServiceImpl(DealService):
    """Validates, deduplicates and persists FX deals.

    The transaction manager is optional. Without one, deals are written
    straight through the repository, which is how the service is exercised
    in isolation; with one, every deal is saved in its own transaction scope
    so a failure never rolls back a sibling in the same batch.
    """

    def __init__(
        self,
        deal_repo: DealRepository,
        transaction_manager: TransactionManager | None = None,
    ) -> None:
        self._deal_repo = deal_repo
        self._transaction_manager = transaction_manager

    def import_deal(self, request: DealRequest) -> DealResponse:
        with LogContext(deal_unique_id=request.deal_unique_id):
            logger.info("deal_import_started")

            try:
                validate_deal(request)
            except InvalidDealError as e:
                logger.info("deal_import_rejected", reason=e.message)
                raise

            assert request.deal_unique_id is not None
            if self._deal_repo.exists_by_deal_unique_id(request.deal_unique_id):
                logger.info("deal_duplicate_detected")
                raise DuplicateDealError(request.deal_unique_id)

            saved = self._persist(Deal.from_request(request))

            logger.info(
                "deal_imported",
                deal_id=saved.id,
                currency_pair=saved.currency_pair,
                deal_amount=str(saved.deal_amount),
            )
            return DealResponse.from_deal(saved, IMPORTED_MESSAGE)

    def _persist(self, deal: Deal) -> Deal:
        try:
            if self._transaction_manager is not None:
                with self._transaction_manager.requires_new():
                    saved = self._deal_repo.add(deal)
            else:
                saved = self._deal_repo.add(deal)
        except IntegrityError as e:
            logger.warning(
                "deal_integrity_violation",
                error=e.message,
                is_unique_violation=e.is_unique_violation,
            )
            if not e.is_unique_violation:
                raise
            # Another writer inserted the same id after the existence check.
            raise DuplicateDealError(deal.deal_unique_id) from e
        except (DuplicateDealError, InvalidDealError):
            raise
        except Exception as e:
            logger.exception("deal_import_failed", error=str(e))
            raise InvalidDealError(f"Invalid deal data: {e}") from e

        if saved is None:
            logger.error("deal_import_failed", error="repository returned no deal")
            raise InvalidDealError("Failed to persist deal to database")
        return saved

    def import_deals(self, requests: Iterable[DealRequest]) -> list[DealResponse]:
        responses: list[DealResponse] = []
        for request in requests:
            try:
                responses.append(self.import_deal(request))
            except FXDealSystemError as e:
                responses.append(DealResponse.failed(request.deal_unique_id, e.message))
            except Exception as e:
                logger.exception(
                    "bulk_item_failed", deal_unique_id=request.deal_unique_id
                )
                responses.append(DealResponse.failed(request.deal_unique_id, str(e)))

        succeeded = sum(1 for r in responses if r.succeeded)
        logger.info(
            "bulk_import_completed",
            total=len(responses),
            succeeded=succeeded,
            failed=len(responses) - succeeded,
        )
        return responses

    def get_deal_by_unique_id(self, deal_unique_id: str | None) -> DealResponse:
        if deal_unique_id is None or not deal_unique_id.strip():
            raise InvalidDealError("Deal unique ID cannot be null or empty")

        deal = self._deal_repo.get_by_deal_unique_id(deal_unique_id)
        if deal is None:
            raise InvalidDealError(
                f"Deal not found with ID: {deal_unique_id}",
                context={"deal_unique_id": deal_unique_id},
            )
        return DealResponse.from_deal(deal, FETCHED_MESSAGE)

    def get_all_deals(self) -> list[DealResponse]:
        return [
            DealResponse.from_deal(deal, FETCHED_MESSAGE)
            for deal in self._deal_repo.list_all()
        ]
