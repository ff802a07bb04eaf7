from datetime import datetime
from typing import Optional

import attrs


def discount_amount(*, base: int, discount: int, is_percentage: bool) -> int:
    """Percentage floors; the result never exceeds the amount it is taken from"""
    if base <= 0:
        return 0
    amount = (base * discount) // 100 if is_percentage else discount
    return max(0, min(amount, base))


@attrs.define
class Promotion:
    id: int
    code: str
    discount: int
    is_percentage: bool
    start_date: datetime
    end_date: datetime
    max_uses: int
    used_count: int = 0
    event_id: Optional[int] = None
    is_active: bool = True

    def is_applicable(self, *, event_id: int, now: datetime) -> bool:
        return (
            self.is_active
            and (self.event_id is None or self.event_id == event_id)
            and self.start_date <= now <= self.end_date
            and self.used_count < self.max_uses
        )

    def discount_on(self, amount: int) -> int:
        return discount_amount(base=amount, discount=self.discount, is_percentage=self.is_percentage)


@attrs.define
class Coupon:
    id: int
    user_id: int
    code: str
    discount: int
    is_percentage: bool
    expiry_date: datetime
    is_used: bool = False
    event_id: Optional[int] = None

    def is_applicable(self, *, user_id: int, event_id: int, now: datetime) -> bool:
        return (
            self.user_id == user_id
            and not self.is_used
            and now <= self.expiry_date
            and (self.event_id is None or self.event_id == event_id)
        )

    def discount_on(self, amount: int) -> int:
        return discount_amount(base=amount, discount=self.discount, is_percentage=self.is_percentage)
