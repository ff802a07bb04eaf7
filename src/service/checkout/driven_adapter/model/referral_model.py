from sqlalchemy import Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class ReferralModel(Base):
    __tablename__ = 'referral'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    # A user can be referred only once
    referred_user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
