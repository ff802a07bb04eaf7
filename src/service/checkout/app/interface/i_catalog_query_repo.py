"""
Catalog Query Repository Interface

Read side of events, ticket tiers, promotions and coupons. Counters on these
rows are only ever changed through the inventory and loyalty ledgers.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from src.service.checkout.domain.entity.event_entity import Event, TicketTier
from src.service.checkout.domain.entity.promotion_entity import Coupon, Promotion


class ICatalogQueryRepo(ABC):
    @abstractmethod
    async def get_event(self, *, event_id: int) -> Optional[Event]:
        pass

    @abstractmethod
    async def get_tiers_by_event(self, *, event_id: int) -> Dict[int, TicketTier]:
        """
        Fresh catalog snapshot for pricing

        Returns:
            Ticket tiers of the event keyed by ticket id
        """
        pass

    @abstractmethod
    async def find_promotion_by_code(
        self, *, code: str, event_id: int, now: datetime
    ) -> Optional[Promotion]:
        """
        Applicable promotion with this code: active, within its window and under
        its use cap. One scoped to the event wins over an event-agnostic one.
        """
        pass

    @abstractmethod
    async def get_coupon(self, *, coupon_id: int) -> Optional[Coupon]:
        pass

    @abstractmethod
    async def list_available_coupons(
        self, *, user_id: int, now: datetime, event_id: Optional[int] = None
    ) -> List[Coupon]:
        """Unused, unexpired coupons of the user, optionally usable on one event"""
        pass
