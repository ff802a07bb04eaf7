"""
Pricing Engine
Pure checkout pricing: no I/O, no clock, no randomness. The same inputs always
produce the same quote.

Order of application (each step sees the amount left by the previous one):
1. Resolve every cart line against the catalog snapshot
2. total_amount = sum(unit_price * quantity)
3. Promotion (ignored unless applicable)
4. Coupon on the post-promotion amount (ignored unless applicable)
5. Points, capped at half of the pre-discount total and at the balance
6. final_amount = max(0, total - promotion - coupon - points)
"""

from datetime import datetime
from typing import Mapping, Optional, Sequence

from src.service.checkout.domain.checkout_error import (
    EmptyCartError,
    InsufficientSeatsError,
    InvalidQuantityError,
    TicketNotFoundError,
)
from src.service.checkout.domain.entity.event_entity import TicketTier
from src.service.checkout.domain.entity.promotion_entity import Coupon, Promotion
from src.service.checkout.domain.value_object.cart_line import CartLine
from src.service.checkout.domain.value_object.priced_quote import (
    AppliedDiscount,
    DiscountSource,
    PricedQuote,
    QuoteLine,
)


# Share of the pre-discount total that points may cover
MAX_POINTS_RATIO_NUMERATOR = 1
MAX_POINTS_RATIO_DENOMINATOR = 2


def max_usable_points(*, total_amount: int, point_balance: int) -> int:
    cap = (total_amount * MAX_POINTS_RATIO_NUMERATOR) // MAX_POINTS_RATIO_DENOMINATOR
    return max(0, min(point_balance, cap))


class PricingEngine:
    def price(
        self,
        *,
        cart: Sequence[CartLine],
        catalog: Mapping[int, TicketTier],
        event_id: int,
        user_id: int,
        now: datetime,
        promotion: Optional[Promotion] = None,
        coupon: Optional[Coupon] = None,
        points_requested: int = 0,
        point_balance: int = 0,
        enforce_availability: bool = True,
    ) -> PricedQuote:
        """
        Price a cart.

        With enforce_availability the first line that exceeds its tier's
        available seats raises InsufficientSeatsError; without it the quote is
        returned with all_available=False (advisory quote for display).

        Raises:
            EmptyCartError: no lines
            InvalidQuantityError: a line quantity is not a positive integer
            TicketNotFoundError: a line references a tier outside this event
            InsufficientSeatsError: see enforce_availability
        """
        lines = self._resolve_lines(
            cart=cart,
            catalog=catalog,
            event_id=event_id,
            enforce_availability=enforce_availability,
        )
        total_amount = sum(line.subtotal for line in lines)

        discounts: list[AppliedDiscount] = []
        running = total_amount

        promotion_id = promotion_code = None
        if promotion is not None and promotion.is_applicable(event_id=event_id, now=now):
            promotion_discount = promotion.discount_on(running)
            running -= promotion_discount
            promotion_id, promotion_code = promotion.id, promotion.code
            discounts.append(
                AppliedDiscount(
                    source=DiscountSource.PROMOTION,
                    amount=promotion_discount,
                    reference=promotion.code,
                )
            )

        coupon_id = None
        if coupon is not None and coupon.is_applicable(user_id=user_id, event_id=event_id, now=now):
            coupon_discount = coupon.discount_on(running)
            running -= coupon_discount
            coupon_id = coupon.id
            discounts.append(
                AppliedDiscount(
                    source=DiscountSource.COUPON, amount=coupon_discount, reference=coupon.code
                )
            )

        # Cap uses the pre-discount total on purpose
        points_used = min(
            max(0, points_requested),
            max_usable_points(total_amount=total_amount, point_balance=point_balance),
        )
        if points_used > 0:
            discounts.append(AppliedDiscount(source=DiscountSource.POINTS, amount=points_used))

        final_amount = max(0, total_amount - sum(d.amount for d in discounts))

        return PricedQuote(
            event_id=event_id,
            user_id=user_id,
            lines=tuple(lines),
            total_amount=total_amount,
            discounts=tuple(discounts),
            points_used=points_used,
            final_amount=final_amount,
            all_available=all(line.is_available for line in lines),
            promotion_id=promotion_id,
            promotion_code=promotion_code,
            coupon_id=coupon_id,
        )

    @staticmethod
    def _resolve_lines(
        *,
        cart: Sequence[CartLine],
        catalog: Mapping[int, TicketTier],
        event_id: int,
        enforce_availability: bool,
    ) -> list[QuoteLine]:
        if not cart:
            raise EmptyCartError()

        lines: list[QuoteLine] = []
        for cart_line in cart:
            quantity = cart_line.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise InvalidQuantityError(
                    f'Quantity for ticket {cart_line.ticket_id} must be a positive integer'
                )

            tier = catalog.get(cart_line.ticket_id)
            if tier is None or tier.event_id != event_id:
                raise TicketNotFoundError(f'Ticket {cart_line.ticket_id} not found')

            if enforce_availability and cart_line.quantity > tier.available_seats:
                raise InsufficientSeatsError(
                    f'Not enough seats available for {tier.name}: '
                    f'requested {cart_line.quantity}, available {tier.available_seats}'
                )

            lines.append(
                QuoteLine(
                    ticket_id=tier.id,
                    ticket_name=tier.name,
                    unit_price=tier.price,
                    quantity=cart_line.quantity,
                    subtotal=tier.price * cart_line.quantity,
                    available_seats=tier.available_seats,
                )
            )
        return lines
