from uuid_utils import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.checkout.domain.checkout_error import TransactionNotFoundError
from src.service.checkout.domain.entity.transaction_entity import Transaction


class GetTransactionUseCase:
    def __init__(self, *, uow_factory: UnitOfWorkFactory) -> None:
        self.uow_factory = uow_factory

    @Logger.io
    async def execute(self, *, transaction_id: UUID) -> Transaction:
        async with self.uow_factory() as uow:
            transaction = await uow.transaction_repo.get_by_id(transaction_id=transaction_id)

        if not transaction:
            raise TransactionNotFoundError(f'Transaction {transaction_id} not found')

        return transaction
