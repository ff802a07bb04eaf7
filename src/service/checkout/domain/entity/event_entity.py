from datetime import datetime
from typing import Optional

import attrs


@attrs.define
class Event:
    id: int
    name: str
    organizer_id: int
    start_date: datetime
    end_date: datetime
    total_seats: int
    available_seats: int
    location: str = ''
    is_active: bool = True
    created_at: Optional[datetime] = None

    def has_started(self, *, now: datetime) -> bool:
        return self.start_date <= now


@attrs.define
class TicketTier:
    """A priced ticket category of one event with its own seat pool"""

    id: int
    event_id: int
    name: str
    price: int
    total_seats: int
    available_seats: int
