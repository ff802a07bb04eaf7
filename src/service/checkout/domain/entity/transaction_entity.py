from datetime import datetime, timedelta
from enum import StrEnum
from typing import List, Optional

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import InvalidInputError
from src.platform.logging.loguru_io import Logger
from src.service.checkout.domain.checkout_error import (
    InvalidTransitionError,
    PaymentWindowExpiredError,
)
from src.service.checkout.domain.entity.attendee_entity import Attendee
from src.service.checkout.domain.value_object.priced_quote import PricedQuote


class TransactionStatus(StrEnum):
    WAITING_FOR_PAYMENT = 'WAITING_FOR_PAYMENT'
    WAITING_FOR_ADMIN_CONFIRMATION = 'WAITING_FOR_ADMIN_CONFIRMATION'
    DONE = 'DONE'
    CANCELED = 'CANCELED'
    REJECTED = 'REJECTED'


CANCELLABLE_STATUSES = frozenset(
    {TransactionStatus.WAITING_FOR_PAYMENT, TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION}
)


@attrs.define
class TransactionTicket:
    """Line item; unit price is the price at purchase time"""

    ticket_id: int
    ticket_name: str
    quantity: int
    unit_price: int

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity


@attrs.define
class Transaction:
    id: UUID
    user_id: int
    event_id: int
    total_amount: int
    promotion_discount: int
    coupon_discount: int
    points_used: int
    final_amount: int
    status: TransactionStatus
    payment_deadline: datetime
    tickets: List[TransactionTicket] = attrs.field(factory=list)
    promotion_id: Optional[int] = None
    promotion_code: Optional[str] = None
    coupon_id: Optional[int] = None
    payment_proof: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        quote: PricedQuote,
        now: datetime,
        payment_window: timedelta,
    ) -> 'Transaction':
        # Fully covered orders settle inside the checkout itself
        is_free = quote.final_amount == 0
        return cls(
            id=id,
            user_id=quote.user_id,
            event_id=quote.event_id,
            total_amount=quote.total_amount,
            promotion_discount=quote.promotion_discount,
            coupon_discount=quote.coupon_discount,
            points_used=quote.points_used,
            final_amount=quote.final_amount,
            status=TransactionStatus.DONE if is_free else TransactionStatus.WAITING_FOR_PAYMENT,
            payment_deadline=now + payment_window,
            tickets=[
                TransactionTicket(
                    ticket_id=line.ticket_id,
                    ticket_name=line.ticket_name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in quote.lines
            ],
            promotion_id=quote.promotion_id,
            promotion_code=quote.promotion_code,
            coupon_id=quote.coupon_id,
            created_at=now,
            updated_at=now,
            paid_at=now if is_free else None,
        )

    @property
    def seat_units(self) -> int:
        return sum(ticket.quantity for ticket in self.tickets)

    def is_overdue(self, *, now: datetime) -> bool:
        """Expiry is derived, never stored"""
        return self.status == TransactionStatus.WAITING_FOR_PAYMENT and self.payment_deadline < now

    def build_attendees(self) -> List[Attendee]:
        """One attendee per seat unit"""
        return [
            Attendee(
                user_id=self.user_id,
                event_id=self.event_id,
                transaction_id=self.id,
                ticket_type=ticket.ticket_name,
            )
            for ticket in self.tickets
            for _ in range(ticket.quantity)
        ]

    @Logger.io
    def submit_payment_proof(self, *, proof: str, now: datetime) -> 'Transaction':
        if not proof or not proof.strip():
            raise InvalidInputError('Payment proof is required')
        if self.status != TransactionStatus.WAITING_FOR_PAYMENT:
            raise InvalidTransitionError(
                f'Cannot submit payment proof for transaction in {self.status} status'
            )
        if now >= self.payment_deadline:
            raise PaymentWindowExpiredError(
                f'Payment window closed at {self.payment_deadline.isoformat()}'
            )

        return attrs.evolve(
            self,
            payment_proof=proof,
            status=TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION,
            updated_at=now,
        )

    @Logger.io
    def confirm(self, *, now: datetime) -> 'Transaction':
        if self.status != TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION:
            raise InvalidTransitionError(f'Cannot confirm transaction in {self.status} status')

        return attrs.evolve(self, status=TransactionStatus.DONE, paid_at=now, updated_at=now)

    @Logger.io
    def reject(self, *, now: datetime) -> 'Transaction':
        if self.status != TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION:
            raise InvalidTransitionError(f'Cannot reject transaction in {self.status} status')

        return attrs.evolve(self, status=TransactionStatus.REJECTED, updated_at=now)

    @Logger.io
    def cancel(self, *, now: datetime) -> 'Transaction':
        if self.status not in CANCELLABLE_STATUSES:
            raise InvalidTransitionError(f'Cannot cancel transaction in {self.status} status')

        return attrs.evolve(
            self, status=TransactionStatus.CANCELED, canceled_at=now, updated_at=now
        )
