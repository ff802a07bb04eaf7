from datetime import datetime
from typing import List, Optional

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base, UtcDateTime


class TransactionModel(Base):
    """Checkout order; amount columns are the pricing snapshot taken at checkout"""

    __tablename__ = 'ticket_transaction'

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # UUID7
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    promotion_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    coupon_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    final_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    promotion_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    promotion_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    coupon_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(40), nullable=False)
    payment_deadline: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    payment_proof: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UtcDateTime, server_default=func.now(), nullable=False
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)
    canceled_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime, nullable=True)

    tickets: Mapped[List['TransactionTicketModel']] = relationship(
        'TransactionTicketModel',
        order_by='TransactionTicketModel.id',
        lazy='selectin',
        cascade='all, delete-orphan',
    )

    __table_args__ = (
        Index('ix_ticket_transaction_status_deadline', 'status', 'payment_deadline'),
    )


class TransactionTicketModel(Base):
    __tablename__ = 'transaction_ticket'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(
        String(36), ForeignKey('ticket_transaction.id'), nullable=False, index=True
    )
    ticket_id: Mapped[int] = mapped_column(Integer, nullable=False)
    ticket_name: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
