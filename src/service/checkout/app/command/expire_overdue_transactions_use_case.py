from collections import Counter
from typing import List, Optional

import attrs
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.checkout_metrics import metrics
from src.service.checkout.app.command.cancel_transaction_use_case import (
    CancelTransactionUseCase,
)
from src.service.checkout.app.interface.i_clock import IClock
from src.service.checkout.domain.entity.transaction_entity import TransactionStatus


@attrs.define
class ExpirySweepResult:
    canceled_ids: List[UUID] = attrs.field(factory=list)
    skipped_ids: List[UUID] = attrs.field(factory=list)
    failed_ids: List[UUID] = attrs.field(factory=list)


class ExpireOverdueTransactionsUseCase:
    """
    Cancel WAITING_FOR_PAYMENT transactions whose payment deadline has passed.

    Each transaction is cancelled in its own unit of work; one failure is
    logged and does not stop the rest of the batch.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        clock: IClock,
        cancel_transaction_use_case: CancelTransactionUseCase,
        batch_size: int = settings.EXPIRY_SWEEP_BATCH_SIZE,
    ) -> None:
        self.uow_factory = uow_factory
        self.clock = clock
        self.cancel_transaction_use_case = cancel_transaction_use_case
        self.batch_size = batch_size
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, limit: Optional[int] = None) -> ExpirySweepResult:
        with self.tracer.start_as_current_span('use_case.expire_overdue_transactions') as span:
            now = self.clock.now()
            async with self.uow_factory() as uow:
                overdue_ids = await uow.transaction_repo.list_overdue_ids(
                    now=now, limit=limit or self.batch_size
                )

            result = ExpirySweepResult()
            failures: Counter[str] = Counter()
            for transaction_id in overdue_ids:
                try:
                    transaction = await self.cancel_transaction_use_case.execute(
                        transaction_id=transaction_id, overdue_only=True
                    )
                except Exception as e:
                    Logger.base.warning(
                        f'⏰ [EXPIRY] Could not cancel transaction {transaction_id}: '
                        f'{type(e).__name__}: {e}'
                    )
                    failures[type(e).__name__] += 1
                    result.failed_ids.append(transaction_id)
                    continue

                if transaction.status == TransactionStatus.CANCELED:
                    result.canceled_ids.append(transaction_id)
                else:
                    result.skipped_ids.append(transaction_id)

            span.set_attribute('expiry.canceled', len(result.canceled_ids))
            span.set_attribute('expiry.failed', len(result.failed_ids))

        metrics.record_sweep(canceled=len(result.canceled_ids), failures=dict(failures))
        if overdue_ids:
            Logger.base.info(
                f'⏰ [EXPIRY] Sweep done: {len(result.canceled_ids)} canceled, '
                f'{len(result.skipped_ids)} skipped, {len(result.failed_ids)} failed'
            )
        return result
