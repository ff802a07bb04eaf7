"""
Side effects shared by the settlement transitions

All helpers run inside the caller's unit of work and never commit.
"""

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_notification_sink import (
    INotificationSink,
    NotificationKind,
)
from src.service.checkout.domain.entity.transaction_entity import Transaction


async def fulfill_transaction(
    *, uow: AbstractUnitOfWork, transaction: Transaction, bonus_points: int
) -> None:
    """Issue one attendee per seat unit and credit the buyer's purchase bonus"""
    await uow.attendee_repo.create_many(attendees=transaction.build_attendees())
    await uow.loyalty_ledger.credit_points(
        user_id=transaction.user_id,
        amount=bonus_points,
        reason=f'Points earned from transaction #{transaction.id}',
    )


async def reverse_commit_effects(
    *, uow: AbstractUnitOfWork, transaction: Transaction, reason: str
) -> None:
    """
    Undo everything checkout committed: seats, promotion use, coupon and points.

    Points come back as a new credit; the original debit row stays in the
    history.
    """
    for ticket in transaction.tickets:
        await uow.inventory_ledger.release(ticket_id=ticket.ticket_id, quantity=ticket.quantity)

    if transaction.promotion_id is not None:
        await uow.loyalty_ledger.revert_promotion_use(promotion_id=transaction.promotion_id)

    if transaction.coupon_id is not None:
        await uow.loyalty_ledger.restore_coupon(coupon_id=transaction.coupon_id)

    if transaction.points_used > 0:
        await uow.loyalty_ledger.credit_points(
            user_id=transaction.user_id,
            amount=transaction.points_used,
            reason=f'Points refund for {reason} transaction #{transaction.id}',
        )


async def notify_safely(
    *, sink: INotificationSink, kind: NotificationKind, transaction: Transaction
) -> None:
    # Runs after commit; delivery problems must not surface to the caller
    try:
        await sink.notify(kind=kind, transaction=transaction)
    except Exception as e:
        Logger.base.warning(
            f'📭 [NOTIFY] {kind} for transaction {transaction.id} failed: '
            f'{type(e).__name__}: {e}'
        )
