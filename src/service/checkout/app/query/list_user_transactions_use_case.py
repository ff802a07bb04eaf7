from typing import List, Optional

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.checkout.domain.entity.transaction_entity import (
    Transaction,
    TransactionStatus,
)


class ListUserTransactionsUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    async def execute(
        self, *, user_id: int, status: Optional[TransactionStatus] = None
    ) -> List[Transaction]:
        """Newest first, optionally filtered by status"""
        async with self.uow_factory() as uow:
            return await uow.transaction_repo.list_by_user(user_id=user_id, status=status)
