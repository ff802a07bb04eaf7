class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class InvalidInputError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class InsufficientResourceError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class UnavailableError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 410)


class InternalError(CustomBaseError):
    """Commit failures and broken invariants; the message stays generic, the cause is chained"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)
