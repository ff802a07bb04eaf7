from datetime import datetime
from enum import StrEnum
from typing import Optional

import attrs
from uuid_utils import UUID


class AttendeeStatus(StrEnum):
    ACTIVE = 'ACTIVE'


@attrs.define
class Attendee:
    user_id: int
    event_id: int
    transaction_id: UUID
    ticket_type: str
    status: AttendeeStatus = AttendeeStatus.ACTIVE
    id: Optional[int] = None
    created_at: Optional[datetime] = None
