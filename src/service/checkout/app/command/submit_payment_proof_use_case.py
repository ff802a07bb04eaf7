from opentelemetry import trace
from uuid_utils import UUID

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.checkout_metrics import metrics
from src.service.checkout.app.command.transaction_effects import notify_safely
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


class SubmitPaymentProofUseCase:
    """
    WAITING_FOR_PAYMENT -> WAITING_FOR_ADMIN_CONFIRMATION, before the deadline only.

    Resubmitting the proof already on file is a no-op.
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
    async def execute(self, *, transaction_id: UUID, proof: str) -> Transaction:
        with self.tracer.start_as_current_span(
            'use_case.submit_payment_proof',
            attributes={'transaction.id': str(transaction_id)},
        ):
            now = self.clock.now()
            async with atomic_unit(self.uow_factory, operation='PAYMENT_PROOF') as uow:
                transaction = await uow.transaction_repo.get_by_id(transaction_id=transaction_id)
                if transaction is None:
                    raise TransactionNotFoundError(f'Transaction {transaction_id} not found')

                if (
                    transaction.status == TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION
                    and transaction.payment_proof == proof
                ):
                    return transaction

                submitted = transaction.submit_payment_proof(proof=proof, now=now)
                await uow.transaction_repo.update_status(
                    transaction=submitted, expected_status=transaction.status
                )
                await uow.commit()

        metrics.record_transition(from_status=transaction.status, to_status=submitted.status)
        Logger.base.info(f'🧾 [PAYMENT_PROOF] Transaction {transaction_id} awaits confirmation')

        await notify_safely(
            sink=self.notification_sink,
            kind=NotificationKind.PAYMENT_PROOF_SUBMITTED,
            transaction=submitted,
        )
        return submitted
