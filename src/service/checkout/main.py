"""
Checkout Service - Main Entry Point

Owns the process lifecycle: database connection, tracing and the background
expiry sweeper. Checkout and settlement operations are exposed as use cases
through the DI container.

Usage:
    PYTHONPATH=$PWD uv run python -m src.service.checkout.main
"""

import os
import signal

import anyio

from src.platform.config.core_setting import settings
from src.platform.config.di import cleanup, container, setup
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.checkout.driving_adapter.expiry_sweeper import ExpirySweeper


async def run_service() -> None:
    Logger.base.info('🚀 [Checkout Service] Starting up...')
    setup()

    # Setup OpenTelemetry tracing
    tracing = TracingConfig(service_name='checkout-service')
    tracing.setup()
    Logger.base.info('📊 [Checkout Service] OpenTelemetry tracing configured')

    database = container.database()
    await database.connect()
    tracing.instrument_sqlalchemy(engine=database.engine)

    if os.getenv('CREATE_TABLES', 'false').lower() in ('true', '1'):
        # Import registers every table on Base.metadata
        import src.service.checkout.driven_adapter.model  # noqa: F401

        await database.create_all()
        Logger.base.info('🗄️ [Checkout Service] Tables ensured')

    sweeper = ExpirySweeper(
        expire_overdue_transactions_use_case=container.expire_overdue_transactions_use_case(),
        interval_seconds=settings.EXPIRY_SWEEP_INTERVAL_SECONDS,
    )

    try:
        async with anyio.create_task_group() as tg:
            await sweeper.start(task_group=tg)

            async def wait_for_shutdown() -> None:
                with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
                    async for signum in signals:
                        Logger.base.info(f'🛑 [Checkout Service] Received signal {signum}')
                        sweeper.stop()
                        tg.cancel_scope.cancel()
                        return

            tg.start_soon(wait_for_shutdown)
            Logger.base.info('✅ [Checkout Service] Startup complete')
    finally:
        Logger.base.info('🛑 [Checkout Service] Shutting down...')

        await database.disconnect()

        # Shutdown tracing (flush remaining spans)
        tracing.shutdown()
        Logger.base.info('📊 [Checkout Service] Tracing shutdown complete')

        cleanup()
        Logger.base.info('👋 [Checkout Service] Shutdown complete')


def main() -> None:
    anyio.run(run_service)


if __name__ == '__main__':
    main()
