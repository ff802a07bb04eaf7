from abc import ABC, abstractmethod


class IInventoryLedger(ABC):
    """
    Seat counters of ticket tiers and their parent events.

    Both operations move the tier counter and the event counter together and
    are single conditional updates, so concurrent callers never act on a
    stale read.
    """

    @abstractmethod
    async def reserve(self, *, ticket_id: int, quantity: int) -> None:
        """
        Take seats from the tier and its event

        Raises:
            TicketNotFoundError: tier does not exist
            InsufficientSeatsError: tier or event has fewer than quantity seats left
        """
        pass

    @abstractmethod
    async def release(self, *, ticket_id: int, quantity: int) -> None:
        """
        Give seats back to the tier and its event

        Raises:
            TicketNotFoundError: tier does not exist
            InvariantViolationError: release would exceed total seats
        """
        pass
