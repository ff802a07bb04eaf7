from typing import List, Optional

from src.platform.database.unit_of_work import UnitOfWorkFactory
from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_clock import IClock
from src.service.checkout.domain.entity.promotion_entity import Coupon


class ListAvailableCouponsUseCase:
    """Coupons the user could apply right now (unused, unexpired, usable on the event)"""

    def __init__(self, *, uow_factory: UnitOfWorkFactory, clock: IClock) -> None:
        self.uow_factory = uow_factory
        self.clock = clock

    @Logger.io
    async def execute(self, *, user_id: int, event_id: Optional[int] = None) -> List[Coupon]:
        async with self.uow_factory() as uow:
            return await uow.catalog_query_repo.list_available_coupons(
                user_id=user_id, now=self.clock.now(), event_id=event_id
            )
