from datetime import datetime
from typing import Optional, Sequence

from opentelemetry import trace

from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import InvalidInputError
from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_clock import IClock
from src.service.checkout.domain.checkout_error import EventNotFoundError
from src.service.checkout.domain.pricing_engine import PricingEngine
from src.service.checkout.domain.value_object.cart_line import CartLine
from src.service.checkout.domain.value_object.priced_quote import PricedQuote


async def load_priced_quote(
    *,
    uow: AbstractUnitOfWork,
    pricing_engine: PricingEngine,
    now: datetime,
    user_id: int,
    event_id: int,
    cart: Sequence[CartLine],
    promotion_code: Optional[str],
    coupon_id: Optional[int],
    points_to_use: int,
    enforce_availability: bool,
) -> PricedQuote:
    """
    Load a fresh catalog snapshot, promotion, coupon and balance and price the cart.

    A promotion code or coupon id that resolves to nothing is ignored, the
    same as one that is not applicable.
    """
    if points_to_use < 0:
        raise InvalidInputError('points_to_use must not be negative')

    event = await uow.catalog_query_repo.get_event(event_id=event_id)
    if event is None:
        raise EventNotFoundError(f'Event {event_id} not found')
    if not event.is_active:
        raise EventNotFoundError(f'Event {event_id} is not active')
    if event.has_started(now=now):
        raise EventNotFoundError(f'Event {event_id} has already started')

    promotion = (
        await uow.catalog_query_repo.find_promotion_by_code(
            code=promotion_code, event_id=event_id, now=now
        )
        if promotion_code
        else None
    )
    coupon = (
        await uow.catalog_query_repo.get_coupon(coupon_id=coupon_id)
        if coupon_id is not None
        else None
    )
    catalog = await uow.catalog_query_repo.get_tiers_by_event(event_id=event_id)
    point_balance = (
        await uow.loyalty_ledger.get_point_balance(user_id=user_id) if points_to_use > 0 else 0
    )

    return pricing_engine.price(
        cart=cart,
        catalog=catalog,
        event_id=event_id,
        user_id=user_id,
        now=now,
        promotion=promotion,
        coupon=coupon,
        points_requested=points_to_use,
        point_balance=point_balance,
        enforce_availability=enforce_availability,
    )


class QuoteCheckoutUseCase:
    """
    Read-only price preview.

    Unlike checkout, a line that exceeds availability does not fail the quote;
    it comes back with all_available=False.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        clock: IClock,
        pricing_engine: PricingEngine,
    ) -> None:
        self.uow_factory = uow_factory
        self.clock = clock
        self.pricing_engine = pricing_engine
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
    ) -> PricedQuote:
        with self.tracer.start_as_current_span(
            'use_case.quote_checkout',
            attributes={'user.id': user_id, 'event.id': event_id, 'cart.lines': len(cart)},
        ):
            # No commit: leaving the block rolls back the read transaction
            async with self.uow_factory() as uow:
                return await load_priced_quote(
                    uow=uow,
                    pricing_engine=self.pricing_engine,
                    now=self.clock.now(),
                    user_id=user_id,
                    event_id=event_id,
                    cart=cart,
                    promotion_code=promotion_code,
                    coupon_id=coupon_id,
                    points_to_use=points_to_use,
                    enforce_availability=False,
                )
