"""
Unit tests for CreateCheckoutUseCase

Key points:
1. Commit order: reserve seats -> insert transaction -> debit points ->
   consume coupon -> count promotion use -> commit -> notify
2. Zero-cost orders settle inside the same unit (attendees + bonus points)
3. Domain errors propagate unchanged; anything else becomes
   TransactionFailedError with the cause chained
4. Notification failures never fail a committed checkout
"""

from datetime import timedelta
from unittest.mock import AsyncMock, call

import pytest

from src.platform.exception.exceptions import InvalidInputError
from src.service.checkout.app.command.create_checkout_use_case import CreateCheckoutUseCase
from src.service.checkout.app.interface.i_notification_sink import NotificationKind
from src.service.checkout.domain.checkout_error import (
    EventNotFoundError,
    InsufficientSeatsError,
    TransactionFailedError,
)
from src.service.checkout.domain.entity.promotion_entity import Coupon, Promotion
from src.service.checkout.domain.entity.transaction_entity import TransactionStatus
from src.service.checkout.domain.pricing_engine import PricingEngine
from src.service.checkout.domain.value_object.cart_line import CartLine
from test.service.checkout.checkout_test_helpers import FixedClock
from test.service.checkout.unit.test_helpers import RepositoryMocks, make_event, make_tier
from test.test_constants import TEST_NOW


USER_ID = 7


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TEST_NOW)


@pytest.fixture
def sink() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def repo_mocks() -> RepositoryMocks:
    return RepositoryMocks(
        event=make_event(),
        tiers={
            1: make_tier(id=1, name='Regular', price=100_000),
            2: make_tier(id=2, name='VIP', price=250_000, total_seats=2, available_seats=2),
        },
        point_balance=200_000,
    )


def _use_case(repo_mocks: RepositoryMocks, clock: FixedClock, sink: AsyncMock):
    return CreateCheckoutUseCase(
        uow_factory=repo_mocks.uow_factory,
        clock=clock,
        notification_sink=sink,
        pricing_engine=PricingEngine(),
        payment_window_hours=24,
    )


class TestCreateCheckout:
    @pytest.mark.asyncio
    async def test_paid_checkout_commits_every_effect(self, repo_mocks, clock, sink):
        """
        Given: 2 Regular + 1 VIP, 10% promotion, 30,000 points requested
        When: checkout
        Then:
          - both lines reserved, transaction inserted, points debited,
            promotion use counted, one commit
          - WAITING_FOR_PAYMENT with a 24h deadline
          - TRANSACTION_CREATED notified after commit
        """
        # Arrange
        repo_mocks.catalog_query_repo.find_promotion_by_code = AsyncMock(
            return_value=Promotion(
                id=11,
                code='EARLYBIRD',
                discount=10,
                is_percentage=True,
                start_date=TEST_NOW - timedelta(days=1),
                end_date=TEST_NOW + timedelta(days=1),
                max_uses=10,
                event_id=1,
            )
        )
        use_case = _use_case(repo_mocks, clock, sink)

        # Act
        transaction = await use_case.execute(
            user_id=USER_ID,
            event_id=1,
            cart=[CartLine(ticket_id=1, quantity=2), CartLine(ticket_id=2, quantity=1)],
            promotion_code='EARLYBIRD',
            points_to_use=30_000,
        )

        # Assert
        assert transaction.status == TransactionStatus.WAITING_FOR_PAYMENT
        assert transaction.total_amount == 450_000
        assert transaction.promotion_discount == 45_000
        assert transaction.points_used == 30_000
        assert transaction.final_amount == 375_000
        assert transaction.payment_deadline == TEST_NOW + timedelta(hours=24)

        assert repo_mocks.inventory_ledger.reserve.await_args_list == [
            call(ticket_id=1, quantity=2),
            call(ticket_id=2, quantity=1),
        ]
        repo_mocks.transaction_repo.create.assert_awaited_once()
        repo_mocks.loyalty_ledger.debit_points.assert_awaited_once_with(
            user_id=USER_ID,
            amount=30_000,
            reason=f'Points used for transaction #{transaction.id}',
        )
        repo_mocks.loyalty_ledger.apply_promotion_use.assert_awaited_once_with(promotion_id=11)
        repo_mocks.loyalty_ledger.consume_coupon.assert_not_awaited()
        repo_mocks.attendee_repo.create_many.assert_not_awaited()
        assert repo_mocks.commits == 1

        sink.notify.assert_awaited_once_with(
            kind=NotificationKind.TRANSACTION_CREATED, transaction=transaction
        )

    @pytest.mark.asyncio
    async def test_zero_cost_checkout_settles_immediately(self, repo_mocks, clock, sink):
        """
        Given: 1 Regular (100,000), flat 100,000 coupon, 200,000 points requested
        When: checkout
        Then:
          - points capped at 50,000 and final amount 0
          - DONE with paid_at set, one attendee, bonus 10,000 points credited
          - TRANSACTION_ACCEPTED notified
        """
        # Arrange
        repo_mocks.catalog_query_repo.get_coupon = AsyncMock(
            return_value=Coupon(
                id=21,
                user_id=USER_ID,
                code='FREE100K',
                discount=100_000,
                is_percentage=False,
                expiry_date=TEST_NOW + timedelta(days=30),
            )
        )
        use_case = _use_case(repo_mocks, clock, sink)

        # Act
        transaction = await use_case.execute(
            user_id=USER_ID,
            event_id=1,
            cart=[CartLine(ticket_id=1, quantity=1)],
            coupon_id=21,
            points_to_use=200_000,
        )

        # Assert
        assert transaction.status == TransactionStatus.DONE
        assert transaction.final_amount == 0
        assert transaction.points_used == 50_000
        assert transaction.paid_at == TEST_NOW

        repo_mocks.loyalty_ledger.consume_coupon.assert_awaited_once_with(coupon_id=21)
        attendees = repo_mocks.attendee_repo.create_many.await_args.kwargs['attendees']
        assert len(attendees) == 1
        repo_mocks.loyalty_ledger.credit_points.assert_awaited_once_with(
            user_id=USER_ID,
            amount=10_000,
            reason=f'Points earned from transaction #{transaction.id}',
        )
        sink.notify.assert_awaited_once_with(
            kind=NotificationKind.TRANSACTION_ACCEPTED, transaction=transaction
        )

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_checkout(self, repo_mocks, clock, sink):
        # Arrange
        sink.notify = AsyncMock(side_effect=ConnectionError('smtp down'))
        use_case = _use_case(repo_mocks, clock, sink)

        # Act
        transaction = await use_case.execute(
            user_id=USER_ID, event_id=1, cart=[CartLine(ticket_id=1, quantity=1)]
        )

        # Assert
        assert transaction.status == TransactionStatus.WAITING_FOR_PAYMENT
        assert repo_mocks.commits == 1


class TestCreateCheckoutFailures:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'event_overrides',
        [
            None,
            {'is_active': False},
            {'start_date': TEST_NOW - timedelta(minutes=1)},
        ],
        ids=['missing', 'inactive', 'started'],
    )
    async def test_event_not_purchasable(self, repo_mocks, clock, sink, event_overrides):
        """
        Given: the event is missing, inactive or already started
        When: checkout
        Then: EventNotFoundError, nothing reserved or committed
        """
        # Arrange
        repo_mocks.catalog_query_repo.get_event = AsyncMock(
            return_value=make_event(**event_overrides) if event_overrides is not None else None
        )
        use_case = _use_case(repo_mocks, clock, sink)

        # Act & Assert
        with pytest.raises(EventNotFoundError):
            await use_case.execute(
                user_id=USER_ID, event_id=1, cart=[CartLine(ticket_id=1, quantity=1)]
            )

        repo_mocks.inventory_ledger.reserve.assert_not_awaited()
        assert repo_mocks.commits == 0
        sink.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_negative_points_rejected(self, repo_mocks, clock, sink):
        use_case = _use_case(repo_mocks, clock, sink)

        with pytest.raises(InvalidInputError):
            await use_case.execute(
                user_id=USER_ID,
                event_id=1,
                cart=[CartLine(ticket_id=1, quantity=1)],
                points_to_use=-1,
            )

    @pytest.mark.asyncio
    async def test_seat_race_lost_propagates_unchanged(self, repo_mocks, clock, sink):
        """
        Given: the snapshot shows seats but the conditional reserve finds none
        When: checkout
        Then: InsufficientSeatsError as-is, rolled back, not committed
        """
        # Arrange
        repo_mocks.inventory_ledger.reserve = AsyncMock(
            side_effect=InsufficientSeatsError('Not enough seats available for ticket 1')
        )
        use_case = _use_case(repo_mocks, clock, sink)

        # Act & Assert
        with pytest.raises(InsufficientSeatsError):
            await use_case.execute(
                user_id=USER_ID, event_id=1, cart=[CartLine(ticket_id=1, quantity=1)]
            )

        repo_mocks.transaction_repo.create.assert_not_awaited()
        assert repo_mocks.commits == 0
        assert repo_mocks.rollbacks == 1
        sink.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commit_failure_wrapped_as_transaction_failed(self, repo_mocks, clock, sink):
        """
        Given: the store fails at commit
        When: checkout
        Then: TransactionFailedError whose __cause__ is the store error
        """
        # Arrange
        store_error = RuntimeError('disk I/O error')
        repo_mocks.commit_error = store_error
        use_case = _use_case(repo_mocks, clock, sink)

        # Act
        with pytest.raises(TransactionFailedError) as exc_info:
            await use_case.execute(
                user_id=USER_ID, event_id=1, cart=[CartLine(ticket_id=1, quantity=1)]
            )

        # Assert
        assert exc_info.value.__cause__ is store_error
        assert exc_info.value.status_code == 500
        assert repo_mocks.rollbacks == 1
        sink.notify.assert_not_awaited()
