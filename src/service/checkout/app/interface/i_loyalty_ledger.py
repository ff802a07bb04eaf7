"""
Loyalty Ledger Interface

Point balances with their append-only history, promotion usage counters,
single-use coupons and referral rewards.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.checkout.domain.entity.loyalty_entity import PointHistory, Referral


class ILoyaltyLedger(ABC):
    # ========== Points ==========

    @abstractmethod
    async def get_point_balance(self, *, user_id: int) -> int:
        pass

    @abstractmethod
    async def debit_points(self, *, user_id: int, amount: int, reason: str) -> None:
        """
        Decrement the balance and append a negative history row

        Raises:
            InsufficientPointsError: balance is lower than amount
        """
        pass

    @abstractmethod
    async def credit_points(self, *, user_id: int, amount: int, reason: str) -> None:
        """
        Increment the balance and append a positive history row.
        A zero amount writes nothing.

        Raises:
            InvalidInputError: amount is negative
        """
        pass

    @abstractmethod
    async def list_point_history(self, *, user_id: int) -> List[PointHistory]:
        pass

    # ========== Promotions ==========

    @abstractmethod
    async def apply_promotion_use(self, *, promotion_id: int) -> None:
        """
        Raises:
            UsageExhaustedError: used_count already reached max_uses
        """
        pass

    @abstractmethod
    async def revert_promotion_use(self, *, promotion_id: int) -> None:
        pass

    # ========== Coupons ==========

    @abstractmethod
    async def consume_coupon(self, *, coupon_id: int) -> None:
        """
        Raises:
            CouponAlreadyUsedError: coupon was already consumed
        """
        pass

    @abstractmethod
    async def restore_coupon(self, *, coupon_id: int) -> None:
        pass

    # ========== Referrals ==========

    @abstractmethod
    async def find_unused_referral(self, *, referred_user_id: int) -> Optional[Referral]:
        pass

    @abstractmethod
    async def mark_referral_used(self, *, referral_id: int) -> bool:
        """
        Returns:
            False when another caller already used the referral
        """
        pass
