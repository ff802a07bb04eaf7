"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.checkout.driven_adapter.model.attendee_model import AttendeeModel
from src.service.checkout.driven_adapter.model.coupon_model import CouponModel
from src.service.checkout.driven_adapter.model.event_model import EventModel
from src.service.checkout.driven_adapter.model.point_history_model import PointHistoryModel
from src.service.checkout.driven_adapter.model.promotion_model import PromotionModel
from src.service.checkout.driven_adapter.model.referral_model import ReferralModel
from src.service.checkout.driven_adapter.model.ticket_model import TicketModel
from src.service.checkout.driven_adapter.model.transaction_model import (
    TransactionModel,
    TransactionTicketModel,
)
from src.service.checkout.driven_adapter.model.user_model import UserModel

__all__ = [
    'AttendeeModel',
    'CouponModel',
    'EventModel',
    'PointHistoryModel',
    'PromotionModel',
    'ReferralModel',
    'TicketModel',
    'TransactionModel',
    'TransactionTicketModel',
    'UserModel',
]
