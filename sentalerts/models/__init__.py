"""ORM models package."""
from .base import Base
from .info_request import WAITING_RESPONSE, InfoRequest
from .scheduler_lock import SchedulerLock
from .sent_alert import AlertType, UserInfoRequestSentAlert
from .user import User

__all__ = [
    "AlertType",
    "Base",
    "InfoRequest",
    "SchedulerLock",
    "User",
    "UserInfoRequestSentAlert",
    "WAITING_RESPONSE",
]
