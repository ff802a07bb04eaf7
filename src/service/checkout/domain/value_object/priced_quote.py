"""
Priced quote value objects

A quote is the full, auditable result of pricing a cart: per-line subtotals,
every applied discount tagged with its source, and the final payable amount.
Nothing in here is written to the store until checkout commits it.
"""

from enum import StrEnum
from typing import Optional

import attrs


class DiscountSource(StrEnum):
    PROMOTION = 'PROMOTION'
    COUPON = 'COUPON'
    POINTS = 'POINTS'


@attrs.frozen
class QuoteLine:
    ticket_id: int
    ticket_name: str
    unit_price: int
    quantity: int
    subtotal: int
    available_seats: int

    @property
    def is_available(self) -> bool:
        return self.quantity <= self.available_seats


@attrs.frozen
class AppliedDiscount:
    source: DiscountSource
    amount: int
    reference: Optional[str] = None  # promotion code / coupon code


@attrs.frozen
class PricedQuote:
    event_id: int
    user_id: int
    lines: tuple[QuoteLine, ...]
    total_amount: int
    discounts: tuple[AppliedDiscount, ...]
    points_used: int
    final_amount: int
    all_available: bool
    promotion_id: Optional[int] = None
    promotion_code: Optional[str] = None
    coupon_id: Optional[int] = None

    def discount_for(self, source: DiscountSource) -> int:
        return sum(d.amount for d in self.discounts if d.source == source)

    @property
    def promotion_discount(self) -> int:
        return self.discount_for(DiscountSource.PROMOTION)

    @property
    def coupon_discount(self) -> int:
        return self.discount_for(DiscountSource.COUPON)

    @property
    def seat_units(self) -> int:
        return sum(line.quantity for line in self.lines)
