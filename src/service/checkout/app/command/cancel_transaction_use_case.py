from opentelemetry import trace
from uuid_utils import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.checkout_metrics import metrics
from src.service.checkout.app.command.transaction_effects import (
    notify_safely,
    reverse_commit_effects,
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


class CancelTransactionUseCase:
    """
    Cancel an unpaid or unconfirmed transaction and restore seats, promotion
    use, coupon and points. Cancelling a CANCELED transaction changes nothing.

    overdue_only is the expiry path: the transaction is cancelled only if it is
    still WAITING_FOR_PAYMENT past its deadline when the unit runs.
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
    async def execute(self, *, transaction_id: UUID, overdue_only: bool = False) -> Transaction:
        with self.tracer.start_as_current_span(
            'use_case.cancel_transaction',
            attributes={'transaction.id': str(transaction_id), 'overdue_only': overdue_only},
        ):
            now = self.clock.now()
            async with atomic_unit(self.uow_factory, operation='CANCEL') as uow:
                transaction = await uow.transaction_repo.get_by_id(transaction_id=transaction_id)
                if transaction is None:
                    raise TransactionNotFoundError(f'Transaction {transaction_id} not found')

                if transaction.status == TransactionStatus.CANCELED:
                    return transaction
                if overdue_only and not transaction.is_overdue(now=now):
                    Logger.base.info(
                        f'⏭️ [CANCEL] Transaction {transaction_id} is no longer overdue '
                        f'({transaction.status}), skipped'
                    )
                    return transaction

                canceled = transaction.cancel(now=now)
                await uow.transaction_repo.update_status(
                    transaction=canceled, expected_status=transaction.status
                )
                await reverse_commit_effects(
                    uow=uow,
                    transaction=canceled,
                    reason='expired' if overdue_only else 'cancelled',
                )
                await uow.commit()

        metrics.record_transition(from_status=transaction.status, to_status=canceled.status)
        Logger.base.info(
            f'🚫 [CANCEL] Transaction {transaction_id} canceled, '
            f'{canceled.seat_units} seat(s) released'
        )

        await notify_safely(
            sink=self.notification_sink,
            kind=NotificationKind.TRANSACTION_CANCELED,
            transaction=canceled,
        )
        return canceled
