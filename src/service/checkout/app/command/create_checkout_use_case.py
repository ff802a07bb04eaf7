import time
from datetime import timedelta
from typing import Optional, Sequence

from opentelemetry import trace
import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError
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
from src.service.checkout.app.query.quote_checkout_use_case import load_priced_quote
from src.service.checkout.domain.entity.transaction_entity import (
    Transaction,
    TransactionStatus,
)
from src.service.checkout.domain.loyalty_rule import purchase_bonus_points
from src.service.checkout.domain.pricing_engine import PricingEngine
from src.service.checkout.domain.value_object.cart_line import CartLine


class CreateCheckoutUseCase:
    """
    Price a cart and commit the resulting transaction in one unit of work.

    Flow:
    1. Event must exist, be active and not have started
    2. Price against a fresh catalog snapshot (fails on unavailable seats)
    3. Reserve every line, insert the transaction, debit points, consume the
       coupon, count the promotion use
    4. Zero-cost orders are settled immediately: attendees + bonus points
    5. Commit, then notify

    Any failure before the commit leaves seats, points, coupon and promotion
    exactly as they were.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        clock: IClock,
        notification_sink: INotificationSink,
        pricing_engine: PricingEngine,
        payment_window_hours: int = settings.PAYMENT_WINDOW_HOURS,
    ) -> None:
        self.uow_factory = uow_factory
        self.clock = clock
        self.notification_sink = notification_sink
        self.pricing_engine = pricing_engine
        self.payment_window = timedelta(hours=payment_window_hours)
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self,
        *,
        user_id: int,
        event_id: int,
        cart: Sequence[CartLine],
        promotion_code: Optional[str] = None,
        coupon_id: Optional[int] = None,
        points_to_use: int = 0,
    ) -> Transaction:
        with self.tracer.start_as_current_span(
            'use_case.create_checkout',
            attributes={
                'user.id': user_id,
                'event.id': event_id,
                'cart.lines': len(cart),
                'points.requested': points_to_use,
            },
        ) as span:
            started = time.perf_counter()
            try:
                transaction = await self._checkout(
                    user_id=user_id,
                    event_id=event_id,
                    cart=cart,
                    promotion_code=promotion_code,
                    coupon_id=coupon_id,
                    points_to_use=points_to_use,
                )
            except CustomBaseError as e:
                metrics.record_checkout(
                    event_id=event_id,
                    result=type(e).__name__,
                    duration=time.perf_counter() - started,
                )
                raise

            metrics.record_checkout(
                event_id=event_id,
                result=transaction.status.lower(),
                duration=time.perf_counter() - started,
            )
            metrics.record_checkout_amount(event_id=event_id, final_amount=transaction.final_amount)
            span.set_attribute('transaction.id', str(transaction.id))
            span.set_attribute('transaction.status', transaction.status)

        Logger.base.info(
            f'🛒 [CHECKOUT] user {user_id} event {event_id}: transaction {transaction.id} '
            f'{transaction.status} total={transaction.total_amount} '
            f'final={transaction.final_amount} points={transaction.points_used}'
        )

        await notify_safely(
            sink=self.notification_sink,
            kind=(
                NotificationKind.TRANSACTION_ACCEPTED
                if transaction.status == TransactionStatus.DONE
                else NotificationKind.TRANSACTION_CREATED
            ),
            transaction=transaction,
        )
        return transaction

    async def _checkout(
        self,
        *,
        user_id: int,
        event_id: int,
        cart: Sequence[CartLine],
        promotion_code: Optional[str],
        coupon_id: Optional[int],
        points_to_use: int,
    ) -> Transaction:
        now = self.clock.now()

        async with atomic_unit(self.uow_factory, operation='CHECKOUT') as uow:
            quote = await load_priced_quote(
                uow=uow,
                pricing_engine=self.pricing_engine,
                now=now,
                user_id=user_id,
                event_id=event_id,
                cart=cart,
                promotion_code=promotion_code,
                coupon_id=coupon_id,
                points_to_use=points_to_use,
                enforce_availability=True,
            )

            transaction = Transaction.create(
                id=uuid_utils.uuid7(),
                quote=quote,
                now=now,
                payment_window=self.payment_window,
            )

            # Authoritative availability check; the quote's view may be stale
            for line in quote.lines:
                await uow.inventory_ledger.reserve(ticket_id=line.ticket_id, quantity=line.quantity)

            transaction = await uow.transaction_repo.create(transaction=transaction)

            if quote.points_used > 0:
                await uow.loyalty_ledger.debit_points(
                    user_id=user_id,
                    amount=quote.points_used,
                    reason=f'Points used for transaction #{transaction.id}',
                )
            if quote.coupon_id is not None:
                await uow.loyalty_ledger.consume_coupon(coupon_id=quote.coupon_id)
            if quote.promotion_id is not None:
                await uow.loyalty_ledger.apply_promotion_use(promotion_id=quote.promotion_id)

            if transaction.status == TransactionStatus.DONE:
                await fulfill_transaction(
                    uow=uow,
                    transaction=transaction,
                    bonus_points=purchase_bonus_points(transaction.total_amount),
                )

            await uow.commit()

        return transaction
