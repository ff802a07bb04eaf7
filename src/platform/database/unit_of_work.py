"""
Unit of Work Pattern

Architecture:
- UoW owns the session lifecycle and the commit/rollback
- Repositories and ledgers share the UoW session
- Use cases coordinate several repositories through one UoW; leaving the
  block without commit() rolls everything back
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import Database


if TYPE_CHECKING:
    from src.service.checkout.app.interface.i_attendee_repo import IAttendeeRepo
    from src.service.checkout.app.interface.i_catalog_query_repo import ICatalogQueryRepo
    from src.service.checkout.app.interface.i_inventory_ledger import IInventoryLedger
    from src.service.checkout.app.interface.i_loyalty_ledger import ILoyaltyLedger
    from src.service.checkout.app.interface.i_transaction_repo import ITransactionRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the Checkout Service

    Usage:
        async with uow:
            await uow.inventory_ledger.reserve(ticket_id=1, quantity=2)
            await uow.transaction_repo.create(transaction=...)
            await uow.commit()
    """

    catalog_query_repo: ICatalogQueryRepo
    inventory_ledger: IInventoryLedger
    loyalty_ledger: ILoyaltyLedger
    transaction_repo: ITransactionRepo
    attendee_repo: IAttendeeRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    async def commit(self):
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


UnitOfWorkFactory = Callable[[], AbstractUnitOfWork]


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    A fresh session is opened on enter and closed on exit, so one instance
    serves exactly one `async with` block.
    """

    def __init__(self, *, database: Database):
        self.database = database
        self.session: AsyncSession | None = None

    async def __aenter__(self):
        from src.service.checkout.driven_adapter.repo.attendee_repo_impl import AttendeeRepoImpl
        from src.service.checkout.driven_adapter.repo.catalog_query_repo_impl import (
            CatalogQueryRepoImpl,
        )
        from src.service.checkout.driven_adapter.repo.inventory_ledger_impl import (
            InventoryLedgerImpl,
        )
        from src.service.checkout.driven_adapter.repo.loyalty_ledger_impl import (
            LoyaltyLedgerImpl,
        )
        from src.service.checkout.driven_adapter.repo.transaction_repo_impl import (
            TransactionRepoImpl,
        )

        session = self.database.session_factory()
        self.session = session

        # Create repositories with shared session
        self.catalog_query_repo = CatalogQueryRepoImpl(session=session)
        self.inventory_ledger = InventoryLedgerImpl(session=session)
        self.loyalty_ledger = LoyaltyLedgerImpl(session=session)
        self.transaction_repo = TransactionRepoImpl(session=session)
        self.attendee_repo = AttendeeRepoImpl(session=session)

        return await super().__aenter__()

    async def __aexit__(self, *args):
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
                self.session = None

    async def _commit(self):
        await self.session.commit()  # type: ignore[union-attr]

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
