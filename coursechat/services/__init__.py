# CourseChat - Services
# Business logic layer

from .auth import (
    AuthService,
    AuthenticationError,
    InvalidCredentialsError,
    UnknownCourseError,
)
from .chat_history import ChatHistoryService
from .roster import RosterService, RosterConflictError, RosterNotFoundError
from .session_store import SessionStore, SessionConflictError, StoreUnavailableError

__all__ = [
    "AuthService",
    "AuthenticationError",
    "InvalidCredentialsError",
    "UnknownCourseError",
    "ChatHistoryService",
    "RosterService",
    "RosterConflictError",
    "RosterNotFoundError",
    "SessionStore",
    "SessionConflictError",
    "StoreUnavailableError",
]
