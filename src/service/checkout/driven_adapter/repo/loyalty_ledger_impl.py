"""
Loyalty Ledger Implementation

Balance, usage-count and coupon flags change only through conditional
UPDATEs; each balance change adds exactly one PointHistory row in the same
session, so the balance always equals the sum of the history.
"""

from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import affected_rows
from src.platform.exception.exceptions import InvalidInputError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_loyalty_ledger import ILoyaltyLedger
from src.service.checkout.domain.checkout_error import (
    CouponAlreadyUsedError,
    InsufficientPointsError,
    InvariantViolationError,
    UsageExhaustedError,
)
from src.service.checkout.domain.entity.loyalty_entity import PointHistory, Referral
from src.service.checkout.driven_adapter.model.coupon_model import CouponModel
from src.service.checkout.driven_adapter.model.point_history_model import PointHistoryModel
from src.service.checkout.driven_adapter.model.promotion_model import PromotionModel
from src.service.checkout.driven_adapter.model.referral_model import ReferralModel
from src.service.checkout.driven_adapter.model.user_model import UserModel


class LoyaltyLedgerImpl(ILoyaltyLedger):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    # ========== Points ==========

    @Logger.io
    async def get_point_balance(self, *, user_id: int) -> int:
        balance = await self.session.scalar(
            select(UserModel.point_balance).where(UserModel.id == user_id)
        )
        if balance is None:
            raise NotFoundError(f'User {user_id} not found')
        return balance

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if amount < 0:
            raise InvalidInputError(f'Point amount must not be negative: {amount}')

    @Logger.io
    async def debit_points(self, *, user_id: int, amount: int, reason: str) -> None:
        self._validate_amount(amount)
        if amount == 0:
            return

        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.point_balance >= amount)
            .values(point_balance=UserModel.point_balance - amount)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(result) == 0:
            # Distinguish a missing user from a short balance
            await self.get_point_balance(user_id=user_id)
            raise InsufficientPointsError(f'User {user_id} has fewer than {amount} points')

        self.session.add(PointHistoryModel(user_id=user_id, points=-amount, description=reason))

    @Logger.io
    async def credit_points(self, *, user_id: int, amount: int, reason: str) -> None:
        self._validate_amount(amount)
        if amount == 0:
            return

        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(point_balance=UserModel.point_balance + amount)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(result) == 0:
            raise NotFoundError(f'User {user_id} not found')

        self.session.add(PointHistoryModel(user_id=user_id, points=amount, description=reason))

    @Logger.io
    async def list_point_history(self, *, user_id: int) -> List[PointHistory]:
        result = await self.session.execute(
            select(PointHistoryModel)
            .where(PointHistoryModel.user_id == user_id)
            .order_by(PointHistoryModel.id)
        )
        return [
            PointHistory(
                user_id=row.user_id,
                points=row.points,
                description=row.description,
                id=row.id,
                created_at=row.created_at,
            )
            for row in result.scalars()
        ]

    # ========== Promotions ==========

    @Logger.io
    async def apply_promotion_use(self, *, promotion_id: int) -> None:
        result = await self.session.execute(
            update(PromotionModel)
            .where(
                PromotionModel.id == promotion_id,
                PromotionModel.used_count < PromotionModel.max_uses,
            )
            .values(used_count=PromotionModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(result) == 0:
            raise UsageExhaustedError(f'Promotion {promotion_id} has no uses left')

    @Logger.io
    async def revert_promotion_use(self, *, promotion_id: int) -> None:
        result = await self.session.execute(
            update(PromotionModel)
            .where(PromotionModel.id == promotion_id, PromotionModel.used_count > 0)
            .values(used_count=PromotionModel.used_count - 1)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(result) == 0:
            raise InvariantViolationError(f'Promotion {promotion_id} has no use to revert')

    # ========== Coupons ==========

    @Logger.io
    async def consume_coupon(self, *, coupon_id: int) -> None:
        result = await self.session.execute(
            update(CouponModel)
            .where(CouponModel.id == coupon_id, CouponModel.is_used.is_(False))
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(result) == 0:
            raise CouponAlreadyUsedError(f'Coupon {coupon_id} has already been used')

    @Logger.io
    async def restore_coupon(self, *, coupon_id: int) -> None:
        await self.session.execute(
            update(CouponModel)
            .where(CouponModel.id == coupon_id)
            .values(is_used=False)
            .execution_options(synchronize_session=False)
        )

    # ========== Referrals ==========

    @Logger.io
    async def find_unused_referral(self, *, referred_user_id: int) -> Optional[Referral]:
        model = await self.session.scalar(
            select(ReferralModel).where(
                ReferralModel.referred_user_id == referred_user_id,
                ReferralModel.is_used.is_(False),
            )
        )
        if model is None:
            return None
        return Referral(
            id=model.id,
            referrer_id=model.referrer_id,
            referred_user_id=model.referred_user_id,
            is_used=model.is_used,
        )

    @Logger.io
    async def mark_referral_used(self, *, referral_id: int) -> bool:
        result = await self.session.execute(
            update(ReferralModel)
            .where(ReferralModel.id == referral_id, ReferralModel.is_used.is_(False))
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        return affected_rows(result) == 1
