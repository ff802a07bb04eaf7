"""
Transaction Repository Implementation

Status changes are compare-and-swap updates on the stored status: of two
concurrent transitions from the same state only one matches a row.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.database.orm_db_setting import affected_rows
from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_transaction_repo import ITransactionRepo
from src.service.checkout.domain.checkout_error import InvalidTransitionError
from src.service.checkout.domain.entity.transaction_entity import (
    Transaction,
    TransactionStatus,
    TransactionTicket,
)
from src.service.checkout.driven_adapter.model.transaction_model import (
    TransactionModel,
    TransactionTicketModel,
)


class TransactionRepoImpl(ITransactionRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _model_to_entity(model: TransactionModel) -> Transaction:
        return Transaction(
            id=UUID(model.id),
            user_id=model.user_id,
            event_id=model.event_id,
            total_amount=model.total_amount,
            promotion_discount=model.promotion_discount,
            coupon_discount=model.coupon_discount,
            points_used=model.points_used,
            final_amount=model.final_amount,
            status=TransactionStatus(model.status),
            payment_deadline=model.payment_deadline,
            tickets=[
                TransactionTicket(
                    ticket_id=ticket.ticket_id,
                    ticket_name=ticket.ticket_name,
                    quantity=ticket.quantity,
                    unit_price=ticket.unit_price,
                )
                for ticket in model.tickets
            ],
            promotion_id=model.promotion_id,
            promotion_code=model.promotion_code,
            coupon_id=model.coupon_id,
            payment_proof=model.payment_proof,
            created_at=model.created_at,
            updated_at=model.updated_at,
            paid_at=model.paid_at,
            canceled_at=model.canceled_at,
        )

    @Logger.io
    async def create(self, *, transaction: Transaction) -> Transaction:
        model = TransactionModel(
            id=str(transaction.id),
            user_id=transaction.user_id,
            event_id=transaction.event_id,
            total_amount=transaction.total_amount,
            promotion_discount=transaction.promotion_discount,
            coupon_discount=transaction.coupon_discount,
            points_used=transaction.points_used,
            final_amount=transaction.final_amount,
            promotion_id=transaction.promotion_id,
            promotion_code=transaction.promotion_code,
            coupon_id=transaction.coupon_id,
            status=transaction.status.value,
            payment_deadline=transaction.payment_deadline,
            payment_proof=transaction.payment_proof,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
            paid_at=transaction.paid_at,
            canceled_at=transaction.canceled_at,
            tickets=[
                TransactionTicketModel(
                    ticket_id=ticket.ticket_id,
                    ticket_name=ticket.ticket_name,
                    quantity=ticket.quantity,
                    unit_price=ticket.unit_price,
                )
                for ticket in transaction.tickets
            ],
        )
        self.session.add(model)
        await self.session.flush()

        Logger.base.info(
            f'🧾 [TRANSACTION] Created {transaction.id} ({transaction.status}) '
            f'final_amount={transaction.final_amount}'
        )
        return self._model_to_entity(model)

    @Logger.io
    async def get_by_id(self, *, transaction_id: UUID) -> Optional[Transaction]:
        model = await self.session.scalar(
            select(TransactionModel)
            .where(TransactionModel.id == str(transaction_id))
            .execution_options(populate_existing=True)
        )
        return self._model_to_entity(model) if model else None

    @Logger.io
    async def update_status(
        self, *, transaction: Transaction, expected_status: TransactionStatus
    ) -> Transaction:
        result = await self.session.execute(
            update(TransactionModel)
            .where(
                TransactionModel.id == str(transaction.id),
                TransactionModel.status == expected_status.value,
            )
            .values(
                status=transaction.status.value,
                payment_proof=transaction.payment_proof,
                updated_at=transaction.updated_at,
                paid_at=transaction.paid_at,
                canceled_at=transaction.canceled_at,
            )
            .execution_options(synchronize_session=False)
        )
        if affected_rows(result) == 0:
            raise InvalidTransitionError(
                f'Transaction {transaction.id} is no longer {expected_status}; '
                f'it was changed concurrently'
            )
        return transaction

    @Logger.io
    async def list_by_user(
        self, *, user_id: int, status: Optional[TransactionStatus] = None
    ) -> List[Transaction]:
        query = select(TransactionModel).where(TransactionModel.user_id == user_id)
        if status is not None:
            query = query.where(TransactionModel.status == status.value)

        result = await self.session.execute(
            query.order_by(TransactionModel.created_at.desc(), TransactionModel.id.desc())
        )
        return [self._model_to_entity(model) for model in result.scalars()]

    @Logger.io
    async def list_overdue_ids(self, *, now: datetime, limit: int) -> List[UUID]:
        result = await self.session.execute(
            select(TransactionModel.id)
            .where(
                TransactionModel.status == TransactionStatus.WAITING_FOR_PAYMENT.value,
                TransactionModel.payment_deadline < now,
            )
            .order_by(TransactionModel.payment_deadline)
            .limit(limit)
        )
        return [UUID(transaction_id) for transaction_id in result.scalars()]
