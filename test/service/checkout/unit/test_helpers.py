"""
Test helpers for unit tests

Provides reusable test doubles for the unit of work and its repositories
"""

from typing import Dict, Optional
from unittest.mock import AsyncMock

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.service.checkout.domain.entity.event_entity import Event, TicketTier
from src.service.checkout.domain.entity.transaction_entity import Transaction
from test.test_constants import EVENT_END, EVENT_START, ORGANIZER_ID


class FakeUnitOfWork(AbstractUnitOfWork):
    """Records commit / rollback instead of talking to a database"""

    def __init__(self, mocks: 'RepositoryMocks') -> None:
        self.catalog_query_repo = mocks.catalog_query_repo
        self.inventory_ledger = mocks.inventory_ledger
        self.loyalty_ledger = mocks.loyalty_ledger
        self.transaction_repo = mocks.transaction_repo
        self.attendee_repo = mocks.attendee_repo
        self.mocks = mocks

    async def _commit(self) -> None:
        if self.mocks.commit_error is not None:
            raise self.mocks.commit_error
        self.mocks.commits += 1

    async def rollback(self) -> None:
        self.mocks.rollbacks += 1


class RepositoryMocks:
    """
    Mock repositories container for testing use cases

    This is NOT a UoW - `uow_factory` hands out FakeUnitOfWork instances that
    share these mocks.

    Example:
        ```python
        mocks = RepositoryMocks(transaction=pending_transaction)
        use_case = CancelTransactionUseCase(
            uow_factory=mocks.uow_factory, clock=clock, notification_sink=sink
        )
        result = await use_case.execute(transaction_id=pending_transaction.id)
        assert mocks.commits == 1
        ```
    """

    def __init__(
        self,
        *,
        event: Optional[Event] = None,
        tiers: Optional[Dict[int, TicketTier]] = None,
        transaction: Optional[Transaction] = None,
        point_balance: int = 0,
    ) -> None:
        self.commits = 0
        self.rollbacks = 0
        self.commit_error: Optional[Exception] = None

        self.catalog_query_repo = AsyncMock()
        self.catalog_query_repo.get_event = AsyncMock(return_value=event)
        self.catalog_query_repo.get_tiers_by_event = AsyncMock(return_value=tiers or {})
        self.catalog_query_repo.find_promotion_by_code = AsyncMock(return_value=None)
        self.catalog_query_repo.get_coupon = AsyncMock(return_value=None)

        self.inventory_ledger = AsyncMock()

        self.loyalty_ledger = AsyncMock()
        self.loyalty_ledger.get_point_balance = AsyncMock(return_value=point_balance)
        self.loyalty_ledger.find_unused_referral = AsyncMock(return_value=None)
        self.loyalty_ledger.mark_referral_used = AsyncMock(return_value=True)

        self.transaction_repo = AsyncMock()
        self.transaction_repo.get_by_id = AsyncMock(return_value=transaction)
        self.transaction_repo.create = AsyncMock(side_effect=self._echo_transaction)
        self.transaction_repo.update_status = AsyncMock(side_effect=self._echo_transaction)

        self.attendee_repo = AsyncMock()

    def uow_factory(self) -> FakeUnitOfWork:
        return FakeUnitOfWork(self)

    async def _echo_transaction(self, *, transaction: Transaction, **_: object) -> Transaction:
        """Mock: return the transaction as-is (simulates successful persistence)"""
        return transaction


def make_event(**overrides) -> Event:
    fields = {
        'id': 1,
        'name': 'Test Concert',
        'organizer_id': ORGANIZER_ID,
        'start_date': EVENT_START,
        'end_date': EVENT_END,
        'total_seats': 10,
        'available_seats': 10,
    }
    fields |= overrides
    return Event(**fields)


def make_tier(**overrides) -> TicketTier:
    fields = {
        'id': 1,
        'event_id': 1,
        'name': 'Regular',
        'price': 100_000,
        'total_seats': 10,
        'available_seats': 10,
    }
    fields |= overrides
    return TicketTier(**fields)
