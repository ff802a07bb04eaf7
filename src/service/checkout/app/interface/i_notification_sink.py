"""
Notification Sink Interface

Fire-and-forget delivery (email / push) of transaction events. Called only
after a commit; a failing sink must never undo a settled transaction.
"""

from abc import ABC, abstractmethod
from enum import StrEnum

from src.service.checkout.domain.entity.transaction_entity import Transaction


class NotificationKind(StrEnum):
    TRANSACTION_CREATED = 'TRANSACTION_CREATED'
    PAYMENT_PROOF_SUBMITTED = 'PAYMENT_PROOF_SUBMITTED'
    TRANSACTION_ACCEPTED = 'TRANSACTION_ACCEPTED'
    TRANSACTION_REJECTED = 'TRANSACTION_REJECTED'
    TRANSACTION_CANCELED = 'TRANSACTION_CANCELED'


class INotificationSink(ABC):
    @abstractmethod
    async def notify(self, *, kind: NotificationKind, transaction: Transaction) -> None:
        pass
