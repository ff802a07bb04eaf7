from contextlib import asynccontextmanager
from typing import AsyncIterator

from src.platform.database.unit_of_work import AbstractUnitOfWork, UnitOfWorkFactory
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.service.checkout.domain.checkout_error import TransactionFailedError


@asynccontextmanager
async def atomic_unit(
    uow_factory: UnitOfWorkFactory, *, operation: str
) -> AsyncIterator[AbstractUnitOfWork]:
    """
    Open a unit of work whose failures leave nothing behind.

    Domain errors roll back and propagate unchanged. Anything else (driver
    errors, commit failures) rolls back and is raised as TransactionFailedError
    with the original exception chained as __cause__.
    """
    try:
        async with uow_factory() as uow:
            yield uow
    except CustomBaseError:
        raise
    except Exception as e:
        Logger.base.opt(exception=e).error(
            f'💥 [{operation}] Unit of work rolled back: {type(e).__name__}: {e}'
        )
        raise TransactionFailedError() from e
