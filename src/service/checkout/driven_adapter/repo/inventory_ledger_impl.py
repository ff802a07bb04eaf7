"""
Inventory Ledger Implementation

Every counter change is one conditional UPDATE; the WHERE clause is the
availability check, so it is evaluated against the row as it is at write time
(row lock on PostgreSQL, database lock on SQLite). No matched row means the
check failed.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import affected_rows
from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.checkout.domain.checkout_error import (
    InsufficientSeatsError,
    InvalidQuantityError,
    InvariantViolationError,
    TicketNotFoundError,
)
from src.service.checkout.driven_adapter.model.event_model import EventModel
from src.service.checkout.driven_adapter.model.ticket_model import TicketModel


class InventoryLedgerImpl(IInventoryLedger):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    async def _get_event_id(self, *, ticket_id: int) -> int:
        event_id = await self.session.scalar(
            select(TicketModel.event_id).where(TicketModel.id == ticket_id)
        )
        if event_id is None:
            raise TicketNotFoundError(f'Ticket {ticket_id} not found')
        return event_id

    @staticmethod
    def _validate_quantity(*, ticket_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise InvalidQuantityError(
                f'Quantity for ticket {ticket_id} must be a positive integer'
            )

    @Logger.io
    async def reserve(self, *, ticket_id: int, quantity: int) -> None:
        self._validate_quantity(ticket_id=ticket_id, quantity=quantity)
        event_id = await self._get_event_id(ticket_id=ticket_id)

        tier_result = await self.session.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket_id, TicketModel.available_seats >= quantity)
            .values(available_seats=TicketModel.available_seats - quantity)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(tier_result) == 0:
            raise InsufficientSeatsError(
                f'Not enough seats available for ticket {ticket_id}: requested {quantity}'
            )

        event_result = await self.session.execute(
            update(EventModel)
            .where(EventModel.id == event_id, EventModel.available_seats >= quantity)
            .values(available_seats=EventModel.available_seats - quantity)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(event_result) == 0:
            raise InsufficientSeatsError(
                f'Not enough seats available for event {event_id}: requested {quantity}'
            )

    @Logger.io
    async def release(self, *, ticket_id: int, quantity: int) -> None:
        self._validate_quantity(ticket_id=ticket_id, quantity=quantity)
        event_id = await self._get_event_id(ticket_id=ticket_id)

        tier_result = await self.session.execute(
            update(TicketModel)
            .where(
                TicketModel.id == ticket_id,
                TicketModel.available_seats + quantity <= TicketModel.total_seats,
            )
            .values(available_seats=TicketModel.available_seats + quantity)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(tier_result) == 0:
            raise InvariantViolationError(
                f'Releasing {quantity} seats would exceed total seats of ticket {ticket_id}'
            )

        event_result = await self.session.execute(
            update(EventModel)
            .where(
                EventModel.id == event_id,
                EventModel.available_seats + quantity <= EventModel.total_seats,
            )
            .values(available_seats=EventModel.available_seats + quantity)
            .execution_options(synchronize_session=False)
        )
        if affected_rows(event_result) == 0:
            raise InvariantViolationError(
                f'Releasing {quantity} seats would exceed total seats of event {event_id}'
            )
