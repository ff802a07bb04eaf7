"""
https://python-dependency-injector.ets-labs.org/index.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.checkout.app.command.cancel_transaction_use_case import (
    CancelTransactionUseCase,
)
from src.service.checkout.app.command.confirm_payment_use_case import ConfirmPaymentUseCase
from src.service.checkout.app.command.create_checkout_use_case import CreateCheckoutUseCase
from src.service.checkout.app.command.expire_overdue_transactions_use_case import (
    ExpireOverdueTransactionsUseCase,
)
from src.service.checkout.app.command.reject_payment_use_case import RejectPaymentUseCase
from src.service.checkout.app.command.submit_payment_proof_use_case import (
    SubmitPaymentProofUseCase,
)
from src.service.checkout.app.query.get_transaction_use_case import GetTransactionUseCase
from src.service.checkout.app.query.list_available_coupons_use_case import (
    ListAvailableCouponsUseCase,
)
from src.service.checkout.app.query.list_user_transactions_use_case import (
    ListUserTransactionsUseCase,
)
from src.service.checkout.app.query.quote_checkout_use_case import QuoteCheckoutUseCase
from src.service.checkout.domain.pricing_engine import PricingEngine
from src.service.checkout.driven_adapter.clock.system_clock import SystemClock
from src.service.checkout.driven_adapter.notification.loguru_notification_sink import (
    LoguruNotificationSink,
)


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (engine is created by Database.connect() in the entry point)
    database = providers.Singleton(Database)

    # Infrastructure services
    clock = providers.Singleton(SystemClock)
    notification_sink = providers.Singleton(LoguruNotificationSink, clock=clock)
    pricing_engine = providers.Singleton(PricingEngine)

    # One UoW per use case call; use cases receive the provider itself as the factory
    unit_of_work = providers.Factory(SqlAlchemyUnitOfWork, database=database)

    # Checkout commands
    create_checkout_use_case = providers.Factory(
        CreateCheckoutUseCase,
        uow_factory=unit_of_work.provider,
        clock=clock,
        notification_sink=notification_sink,
        pricing_engine=pricing_engine,
        payment_window_hours=config_service.provided.PAYMENT_WINDOW_HOURS,
    )
    submit_payment_proof_use_case = providers.Factory(
        SubmitPaymentProofUseCase,
        uow_factory=unit_of_work.provider,
        clock=clock,
        notification_sink=notification_sink,
    )
    confirm_payment_use_case = providers.Factory(
        ConfirmPaymentUseCase,
        uow_factory=unit_of_work.provider,
        clock=clock,
        notification_sink=notification_sink,
    )
    reject_payment_use_case = providers.Factory(
        RejectPaymentUseCase,
        uow_factory=unit_of_work.provider,
        clock=clock,
        notification_sink=notification_sink,
    )
    cancel_transaction_use_case = providers.Factory(
        CancelTransactionUseCase,
        uow_factory=unit_of_work.provider,
        clock=clock,
        notification_sink=notification_sink,
    )
    expire_overdue_transactions_use_case = providers.Factory(
        ExpireOverdueTransactionsUseCase,
        uow_factory=unit_of_work.provider,
        clock=clock,
        cancel_transaction_use_case=cancel_transaction_use_case,
        batch_size=config_service.provided.EXPIRY_SWEEP_BATCH_SIZE,
    )

    # Checkout queries
    quote_checkout_use_case = providers.Factory(
        QuoteCheckoutUseCase,
        uow_factory=unit_of_work.provider,
        clock=clock,
        pricing_engine=pricing_engine,
    )
    get_transaction_use_case = providers.Factory(
        GetTransactionUseCase, uow_factory=unit_of_work.provider
    )
    list_user_transactions_use_case = providers.Factory(
        ListUserTransactionsUseCase, uow_factory=unit_of_work.provider
    )
    list_available_coupons_use_case = providers.Factory(
        ListAvailableCouponsUseCase, uow_factory=unit_of_work.provider, clock=clock
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
