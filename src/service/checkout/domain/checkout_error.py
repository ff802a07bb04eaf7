"""
Checkout and settlement errors

Each error maps onto one platform category so callers can branch on the
category (status code) or on the concrete class.
"""

from src.platform.exception.exceptions import (
    ConflictError,
    InsufficientResourceError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnavailableError,
)


# NotFound
class EventNotFoundError(NotFoundError):
    pass


class TicketNotFoundError(NotFoundError):
    pass


class TransactionNotFoundError(NotFoundError):
    pass


# Unavailable
class PaymentWindowExpiredError(UnavailableError):
    pass


class UsageExhaustedError(UnavailableError):
    pass


class CouponAlreadyUsedError(UnavailableError):
    pass


# InsufficientResource
class InsufficientSeatsError(InsufficientResourceError):
    pass


class InsufficientPointsError(InsufficientResourceError):
    pass


# InvalidInput
class EmptyCartError(InvalidInputError):
    def __init__(self, message: str = 'Cart must contain at least one line') -> None:
        super().__init__(message)


class InvalidQuantityError(InvalidInputError):
    pass


# Conflict
class InvalidTransitionError(ConflictError):
    pass


# Internal
class TransactionFailedError(InternalError):
    def __init__(self, message: str = 'Transaction failed; nothing was committed') -> None:
        super().__init__(message)


class InvariantViolationError(InternalError):
    pass
