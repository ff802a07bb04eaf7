from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from uuid_utils import UUID

from src.service.checkout.domain.entity.transaction_entity import (
    Transaction,
    TransactionStatus,
)


class ITransactionRepo(ABC):
    @abstractmethod
    async def create(self, *, transaction: Transaction) -> Transaction:
        """Insert the transaction and its line items"""
        pass

    @abstractmethod
    async def get_by_id(self, *, transaction_id: UUID) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def update_status(
        self, *, transaction: Transaction, expected_status: TransactionStatus
    ) -> Transaction:
        """
        Persist a transition only if the stored status still equals expected_status

        Raises:
            InvalidTransitionError: stored status changed since it was read
        """
        pass

    @abstractmethod
    async def list_by_user(
        self, *, user_id: int, status: Optional[TransactionStatus] = None
    ) -> List[Transaction]:
        """Newest first"""
        pass

    @abstractmethod
    async def list_overdue_ids(self, *, now: datetime, limit: int) -> List[UUID]:
        """Ids of WAITING_FOR_PAYMENT transactions whose deadline is before now"""
        pass
