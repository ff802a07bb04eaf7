"""
Catalog Query Repository Implementation

Returns domain entities, never ORM rows, so callers cannot mutate counters
behind the ledgers' backs.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_catalog_query_repo import ICatalogQueryRepo
from src.service.checkout.domain.entity.event_entity import Event, TicketTier
from src.service.checkout.domain.entity.promotion_entity import Coupon, Promotion
from src.service.checkout.driven_adapter.model.coupon_model import CouponModel
from src.service.checkout.driven_adapter.model.event_model import EventModel
from src.service.checkout.driven_adapter.model.promotion_model import PromotionModel
from src.service.checkout.driven_adapter.model.ticket_model import TicketModel


class CatalogQueryRepoImpl(ICatalogQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _model_to_event(model: EventModel) -> Event:
        return Event(
            id=model.id,
            name=model.name,
            organizer_id=model.organizer_id,
            start_date=model.start_date,
            end_date=model.end_date,
            total_seats=model.total_seats,
            available_seats=model.available_seats,
            location=model.location,
            is_active=model.is_active,
            created_at=model.created_at,
        )

    @staticmethod
    def _model_to_tier(model: TicketModel) -> TicketTier:
        return TicketTier(
            id=model.id,
            event_id=model.event_id,
            name=model.name,
            price=model.price,
            total_seats=model.total_seats,
            available_seats=model.available_seats,
        )

    @staticmethod
    def _model_to_promotion(model: PromotionModel) -> Promotion:
        return Promotion(
            id=model.id,
            code=model.code,
            discount=model.discount,
            is_percentage=model.is_percentage,
            start_date=model.start_date,
            end_date=model.end_date,
            max_uses=model.max_uses,
            used_count=model.used_count,
            event_id=model.event_id,
            is_active=model.is_active,
        )

    @staticmethod
    def _model_to_coupon(model: CouponModel) -> Coupon:
        return Coupon(
            id=model.id,
            user_id=model.user_id,
            code=model.code,
            discount=model.discount,
            is_percentage=model.is_percentage,
            expiry_date=model.expiry_date,
            is_used=model.is_used,
            event_id=model.event_id,
        )

    @Logger.io
    async def get_event(self, *, event_id: int) -> Optional[Event]:
        model = await self.session.scalar(
            select(EventModel)
            .where(EventModel.id == event_id)
            .execution_options(populate_existing=True)
        )
        return self._model_to_event(model) if model else None

    @Logger.io
    async def get_tiers_by_event(self, *, event_id: int) -> Dict[int, TicketTier]:
        result = await self.session.execute(
            select(TicketModel)
            .where(TicketModel.event_id == event_id)
            .order_by(TicketModel.id)
            .execution_options(populate_existing=True)
        )
        return {model.id: self._model_to_tier(model) for model in result.scalars()}

    @Logger.io
    async def find_promotion_by_code(
        self, *, code: str, event_id: int, now: datetime
    ) -> Optional[Promotion]:
        model = await self.session.scalar(
            select(PromotionModel)
            .where(
                PromotionModel.code == code,
                or_(PromotionModel.event_id == event_id, PromotionModel.event_id.is_(None)),
                PromotionModel.is_active.is_(True),
                PromotionModel.start_date <= now,
                PromotionModel.end_date >= now,
                PromotionModel.used_count < PromotionModel.max_uses,
            )
            # Event-scoped promotion wins over an event-agnostic one with the same code
            .order_by(PromotionModel.event_id.is_(None), PromotionModel.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return self._model_to_promotion(model) if model else None

    @Logger.io
    async def get_coupon(self, *, coupon_id: int) -> Optional[Coupon]:
        model = await self.session.scalar(
            select(CouponModel)
            .where(CouponModel.id == coupon_id)
            .execution_options(populate_existing=True)
        )
        return self._model_to_coupon(model) if model else None

    @Logger.io
    async def list_available_coupons(
        self, *, user_id: int, now: datetime, event_id: Optional[int] = None
    ) -> List[Coupon]:
        query = select(CouponModel).where(
            CouponModel.user_id == user_id,
            CouponModel.is_used.is_(False),
            CouponModel.expiry_date >= now,
        )
        if event_id is not None:
            query = query.where(
                or_(CouponModel.event_id == event_id, CouponModel.event_id.is_(None))
            )

        result = await self.session.execute(
            query.order_by(CouponModel.expiry_date, CouponModel.id).execution_options(
                populate_existing=True
            )
        )
        return [self._model_to_coupon(model) for model in result.scalars()]
