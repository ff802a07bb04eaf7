from abc import ABC, abstractmethod
from typing import List

from uuid_utils import UUID

from src.service.checkout.domain.entity.attendee_entity import Attendee


class IAttendeeRepo(ABC):
    @abstractmethod
    async def create_many(self, *, attendees: List[Attendee]) -> None:
        pass

    @abstractmethod
    async def list_by_transaction(self, *, transaction_id: UUID) -> List[Attendee]:
        pass
