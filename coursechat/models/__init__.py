# CourseChat - SQLAlchemy Models
# All timestamps are naive UTC (see base.utcnow)

from .base import Base, TimestampMixin, utcnow
from .roster import User, Course, AdminConfig, ADMIN_PASSWORD_KEY
from .user_session import UserSession, AdminSession
from .chat_history import ChatHistory, MESSAGE_TYPES

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "User",
    "Course",
    "AdminConfig",
    "ADMIN_PASSWORD_KEY",
    "UserSession",
    "AdminSession",
    "ChatHistory",
    "MESSAGE_TYPES",
]
