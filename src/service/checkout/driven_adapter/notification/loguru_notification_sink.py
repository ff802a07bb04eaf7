"""Notification sink that writes messages to the log instead of sending them"""

from typing import Any, Dict

from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.interface.i_clock import IClock
from src.service.checkout.app.interface.i_notification_sink import (
    INotificationSink,
    NotificationKind,
)
from src.service.checkout.domain.entity.transaction_entity import Transaction


_TITLES = {
    NotificationKind.TRANSACTION_CREATED: 'Transaction created',
    NotificationKind.PAYMENT_PROOF_SUBMITTED: 'Payment proof received',
    NotificationKind.TRANSACTION_ACCEPTED: 'Payment confirmed',
    NotificationKind.TRANSACTION_REJECTED: 'Payment rejected',
    NotificationKind.TRANSACTION_CANCELED: 'Transaction canceled',
}


class LoguruNotificationSink(INotificationSink):
    def __init__(self, *, clock: IClock) -> None:
        self.clock = clock

    def compose(self, *, kind: NotificationKind, transaction: Transaction) -> Dict[str, Any]:
        return {
            'kind': kind,
            'title': _TITLES[kind],
            'user_id': transaction.user_id,
            'transaction_id': str(transaction.id),
            'status': transaction.status,
            'final_amount': transaction.final_amount,
            'sent_at': self.clock.now(),
        }

    @Logger.io
    async def notify(self, *, kind: NotificationKind, transaction: Transaction) -> None:
        message = self.compose(kind=kind, transaction=transaction)
        Logger.base.info(
            f'📧 [NOTIFY] {kind} -> user {transaction.user_id}: {message["title"]} '
            f'(transaction {transaction.id}, {transaction.status}, at {message["sent_at"]})'
        )
