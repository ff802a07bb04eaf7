from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_attendee_repo import IAttendeeRepo
from src.service.checkout.domain.entity.attendee_entity import Attendee, AttendeeStatus
from src.service.checkout.driven_adapter.model.attendee_model import AttendeeModel


class AttendeeRepoImpl(IAttendeeRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create_many(self, *, attendees: List[Attendee]) -> None:
        self.session.add_all(
            [
                AttendeeModel(
                    user_id=attendee.user_id,
                    event_id=attendee.event_id,
                    transaction_id=str(attendee.transaction_id),
                    ticket_type=attendee.ticket_type,
                    status=attendee.status.value,
                )
                for attendee in attendees
            ]
        )
        await self.session.flush()

    @Logger.io
    async def list_by_transaction(self, *, transaction_id: UUID) -> List[Attendee]:
        result = await self.session.execute(
            select(AttendeeModel)
            .where(AttendeeModel.transaction_id == str(transaction_id))
            .order_by(AttendeeModel.id)
        )
        return [
            Attendee(
                user_id=model.user_id,
                event_id=model.event_id,
                transaction_id=UUID(model.transaction_id),
                ticket_type=model.ticket_type,
                status=AttendeeStatus(model.status),
                id=model.id,
                created_at=model.created_at,
            )
            for model in result.scalars()
        ]
