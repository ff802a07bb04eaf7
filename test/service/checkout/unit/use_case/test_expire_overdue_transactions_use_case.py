"""
Unit tests for ExpireOverdueTransactionsUseCase and the ExpirySweeper loop

Key points:
1. Each overdue transaction is cancelled through CancelTransactionUseCase
   with overdue_only=True
2. A failing transaction is recorded and the batch continues
3. A failing tick never stops the sweeper
"""

from unittest.mock import AsyncMock, call

import attrs
import pytest
import uuid_utils

from src.service.checkout.app.command.expire_overdue_transactions_use_case import (
    ExpireOverdueTransactionsUseCase,
    ExpirySweepResult,
)
from src.service.checkout.domain.checkout_error import TransactionFailedError
from src.service.checkout.domain.entity.transaction_entity import TransactionStatus
from src.service.checkout.driving_adapter.expiry_sweeper import ExpirySweeper
from test.service.checkout.checkout_test_helpers import FixedClock
from test.service.checkout.unit.test_helpers import RepositoryMocks
from test.test_constants import TEST_NOW


@attrs.define
class _StubTransaction:
    status: TransactionStatus


class TestExpireOverdueTransactions:
    @pytest.mark.asyncio
    async def test_each_failure_is_isolated(self):
        """
        Given: 3 overdue ids; the 2nd fails, the 3rd was paid meanwhile
        When: the sweep runs
        Then: 1 canceled, 1 skipped, 1 failed, all three attempted
        """
        # Arrange
        ids = [uuid_utils.uuid7() for _ in range(3)]
        repo_mocks = RepositoryMocks()
        repo_mocks.transaction_repo.list_overdue_ids = AsyncMock(return_value=ids)

        cancel_use_case = AsyncMock()
        cancel_use_case.execute = AsyncMock(
            side_effect=[
                _StubTransaction(status=TransactionStatus.CANCELED),
                TransactionFailedError(),
                _StubTransaction(status=TransactionStatus.WAITING_FOR_ADMIN_CONFIRMATION),
            ]
        )
        use_case = ExpireOverdueTransactionsUseCase(
            uow_factory=repo_mocks.uow_factory,
            clock=FixedClock(TEST_NOW),
            cancel_transaction_use_case=cancel_use_case,
            batch_size=50,
        )

        # Act
        result = await use_case.execute()

        # Assert
        assert result.canceled_ids == [ids[0]]
        assert result.failed_ids == [ids[1]]
        assert result.skipped_ids == [ids[2]]
        assert cancel_use_case.execute.await_args_list == [
            call(transaction_id=transaction_id, overdue_only=True) for transaction_id in ids
        ]
        repo_mocks.transaction_repo.list_overdue_ids.assert_awaited_once_with(
            now=TEST_NOW, limit=50
        )

    @pytest.mark.asyncio
    async def test_limit_overrides_batch_size(self):
        repo_mocks = RepositoryMocks()
        repo_mocks.transaction_repo.list_overdue_ids = AsyncMock(return_value=[])
        use_case = ExpireOverdueTransactionsUseCase(
            uow_factory=repo_mocks.uow_factory,
            clock=FixedClock(TEST_NOW),
            cancel_transaction_use_case=AsyncMock(),
            batch_size=50,
        )

        result = await use_case.execute(limit=5)

        assert result == ExpirySweepResult()
        repo_mocks.transaction_repo.list_overdue_ids.assert_awaited_once_with(
            now=TEST_NOW, limit=5
        )


class TestExpirySweeper:
    @pytest.mark.asyncio
    async def test_failed_tick_is_swallowed(self):
        expire_use_case = AsyncMock()
        expire_use_case.execute = AsyncMock(side_effect=RuntimeError('database is locked'))
        sweeper = ExpirySweeper(
            expire_overdue_transactions_use_case=expire_use_case, interval_seconds=0.01
        )

        result = await sweeper.sweep_once()

        assert result is None
        expire_use_case.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_ends_the_loop(self):
        expire_use_case = AsyncMock()
        sweeper = ExpirySweeper(
            expire_overdue_transactions_use_case=expire_use_case, interval_seconds=0
        )

        async def stop_after_first_tick():
            sweeper.stop()
            return ExpirySweepResult()

        expire_use_case.execute = AsyncMock(side_effect=stop_after_first_tick)
        sweeper.running = True

        await sweeper._sweep_loop()

        expire_use_case.execute.assert_awaited_once()
