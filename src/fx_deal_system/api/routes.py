"""API routes for the FX Deal System."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from fx_deal_system.api.schemas import (
    DealCreate,
    DealImportItem,
    DealResponseSchema,
    ErrorResponse,
    ValidationErrorResponse,
)
from fx_deal_system.container import get_deal_service
from fx_deal_system.logging_config import get_logger
from fx_deal_system.services.interfaces import DealService

logger = get_logger(__name__)

HEALTH_MESSAGE = "FX Deal System is running!"

deal_router = APIRouter(prefix="/deals", tags=["deals"])

DealServiceDep = Annotated[DealService, Depends(get_deal_service)]


@deal_router.post(
    "",
    response_model=DealResponseSchema,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ValidationErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def import_deal(payload: DealCreate, service: DealServiceDep) -> DealResponseSchema:
    """Import a single deal."""
    logger.info("import_deal_requested", deal_unique_id=payload.deal_unique_id)
    response = service.import_deal(payload.to_domain())
    return DealResponseSchema.from_domain(response)


@deal_router.post(
    "/bulk",
    response_model=list[DealResponseSchema],
    status_code=status.HTTP_201_CREATED,
)
def import_deals(
    payload: list[DealImportItem], service: DealServiceDep
) -> list[DealResponseSchema]:
    """Import a batch of deals; each item succeeds or fails on its own."""
    logger.info("bulk_import_requested", count=len(payload))
    responses = service.import_deals(item.to_domain() for item in payload)
    return [DealResponseSchema.from_domain(r) for r in responses]


@deal_router.get("", response_model=list[DealResponseSchema])
def list_deals(service: DealServiceDep) -> list[DealResponseSchema]:
    """List all deals."""
    return [DealResponseSchema.from_domain(r) for r in service.get_all_deals()]


# Registered before the {deal_unique_id} route so "health" is never read as an id.
@deal_router.get("/health", response_class=PlainTextResponse)
def health_check() -> str:
    """Liveness marker."""
    return HEALTH_MESSAGE


@deal_router.get(
    "/{deal_unique_id}",
    response_model=DealResponseSchema,
    responses={400: {"model": ErrorResponse}},
)
def get_deal(deal_unique_id: str, service: DealServiceDep) -> DealResponseSchema:
    """Get a deal by its unique id."""
    return DealResponseSchema.from_domain(service.get_deal_by_unique_id(deal_unique_id))
