from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from fx_deal_system.domain.deals import DealRequest, DealResponse


class DealService(ABC):
    @abstractmethod
    def import_deal(self, request: DealRequest) -> DealResponse:
        pass

    @abstractmethod
    def import_deals(self, requests: Iterable[DealRequest]) -> list[DealResponse]:
        pass

    @abstractmethod
    def get_deal_by_unique_id(self, deal_unique_id: str | None) -> DealResponse:
        pass

    @abstractmethod
    def get_all_deals(self) -> list[DealResponse]:
        pass
