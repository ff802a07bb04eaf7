from opentelemetry import trace
from uuid_utils import UUID

from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.checkout_metrics import metrics
from src.service.checkout.app.command.transaction_effects import (
    fulfill_transaction,
    notify_safely,
)
from src.service.checkout.app.command.unit_scope import atomic_unit
from src.service.checkout.app.interface.i_clock import IClock
from src.service.checkout.app.interface.i_notification_sink import (
    INotificationSink,
    NotificationKind,
)
from src.service.checkout.domain.checkout_error import TransactionNotFoundError
from src.service.checkout.domain.entity.transaction_entity import (
    Transaction,
    TransactionStatus,
)
from src.service.checkout.domain.loyalty_rule import (
    purchase_bonus_points,
    referral_reward_points,
)


class ConfirmPaymentUseCase:
    """
    Admin confirmation: WAITING_FOR_ADMIN_CONFIRMATION -> DONE.

    In the same unit: attendees, the buyer's bonus points and, the first time
    a referred buyer pays, the referrer's reward. Confirming a DONE
    transaction again changes nothing.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        clock: IClock,
        notification_sink: INotificationSink,
    ) -> None:
        self.uow_factory = uow_factory
        self.clock = clock
        self.notification_sink = notification_sink
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, transaction_id: UUID) -> Transaction:
        with self.tracer.start_as_current_span(
            'use_case.confirm_payment',
            attributes={'transaction.id': str(transaction_id)},
        ):
            now = self.clock.now()
            async with atomic_unit(self.uow_factory, operation='CONFIRM') as uow:
                transaction = await uow.transaction_repo.get_by_id(transaction_id=transaction_id)
                if transaction is None:
                    raise TransactionNotFoundError(f'Transaction {transaction_id} not found')

                if transaction.status == TransactionStatus.DONE:
                    Logger.base.info(f'✅ [CONFIRM] Transaction {transaction_id} already DONE')
                    return transaction

                confirmed = transaction.confirm(now=now)
                await uow.transaction_repo.update_status(
                    transaction=confirmed, expected_status=transaction.status
                )
                await fulfill_transaction(
                    uow=uow,
                    transaction=confirmed,
                    bonus_points=purchase_bonus_points(confirmed.final_amount),
                )
                await self._reward_referrer(uow=uow, transaction=confirmed)
                await uow.commit()

        metrics.record_transition(from_status=transaction.status, to_status=confirmed.status)
        Logger.base.info(
            f'✅ [CONFIRM] Transaction {transaction_id} DONE, '
            f'{confirmed.seat_units} attendee(s) issued'
        )

        await notify_safely(
            sink=self.notification_sink,
            kind=NotificationKind.TRANSACTION_ACCEPTED,
            transaction=confirmed,
        )
        return confirmed

    @staticmethod
    async def _reward_referrer(*, uow: AbstractUnitOfWork, transaction: Transaction) -> None:
        referral = await uow.loyalty_ledger.find_unused_referral(
            referred_user_id=transaction.user_id
        )
        if referral is None:
            return

        # The used flag is the guard; a concurrent confirmation that loses it pays nothing
        if not await uow.loyalty_ledger.mark_referral_used(referral_id=referral.id):
            return

        reward = referral_reward_points(transaction.final_amount)
        await uow.loyalty_ledger.credit_points(
            user_id=referral.referrer_id,
            amount=reward,
            reason=f'Referral reward for transaction #{transaction.id}',
        )
        Logger.base.info(
            f'🎁 [REFERRAL] User {referral.referrer_id} rewarded {reward} points '
            f'for referring user {transaction.user_id}'
        )
