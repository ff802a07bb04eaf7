from datetime import datetime
from typing import Optional

import attrs


@attrs.define
class PointHistory:
    user_id: int
    points: int  # signed delta
    description: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@attrs.define
class Referral:
    """The referred user's first confirmed payment rewards the referrer once"""

    id: int
    referrer_id: int
    referred_user_id: int
    is_used: bool = False
