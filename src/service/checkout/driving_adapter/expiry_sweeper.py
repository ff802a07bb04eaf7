"""
Expiry Sweeper - periodically cancels transactions whose payment window lapsed

Runs inside the service task group; every tick delegates to
ExpireOverdueTransactionsUseCase, which cancels each overdue transaction in its
own unit of work. A failed tick is logged and the loop keeps going.
"""

import anyio
from anyio.abc import TaskGroup

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.checkout.app.command.expire_overdue_transactions_use_case import (
    ExpireOverdueTransactionsUseCase,
    ExpirySweepResult,
)


class ExpirySweeper:
    def __init__(
        self,
        *,
        expire_overdue_transactions_use_case: ExpireOverdueTransactionsUseCase,
        interval_seconds: float = settings.EXPIRY_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self.expire_overdue_transactions_use_case = expire_overdue_transactions_use_case
        self.interval_seconds = interval_seconds
        self.running = False

    async def start(self, *, task_group: TaskGroup) -> None:
        """Start the sweep loop in the given task group"""
        self.running = True
        task_group.start_soon(self._sweep_loop)  # pyrefly: ignore[bad-argument-type]
        Logger.base.info(f'⏰ [Expiry Sweeper] Started, interval={self.interval_seconds}s')

    def stop(self) -> None:
        self.running = False

    async def sweep_once(self) -> ExpirySweepResult | None:
        try:
            return await self.expire_overdue_transactions_use_case.execute()
        except Exception as e:
            Logger.base.error(f'❌ [Expiry Sweeper] Sweep failed: {type(e).__name__}: {e}')
            return None

    async def _sweep_loop(self) -> None:
        while self.running:
            await self.sweep_once()
            await anyio.sleep(self.interval_seconds)
        Logger.base.info('🛑 [Expiry Sweeper] Stopped')
