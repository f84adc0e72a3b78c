from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager

from fx_deal_system.domain.deals import Deal


class DealRepository(ABC):
    @abstractmethod
    def exists_by_deal_unique_id(self, deal_unique_id: str) -> bool:
        pass

    @abstractmethod
    def add(self, deal: Deal) -> Deal:
        """Insert a deal and return it with ``id`` and ``created_at`` assigned.

        Raises fx_deal_system.exceptions.IntegrityError when the store rejects
        the row, with ``is_unique_violation`` set for a duplicate unique id.
        """

    @abstractmethod
    def get_by_deal_unique_id(self, deal_unique_id: str) -> Deal | None:
        pass

    @abstractmethod
    def list_all(self) -> Iterable[Deal]:
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class TransactionManager(ABC):
    @abstractmethod
    def requires_new(self) -> AbstractContextManager[None]:
        """Open a transaction scope independent of any sibling scope.

        Repository writes inside the scope are committed together when the
        block exits normally and rolled back when it raises.
        """
