# CourseChat - Session Models
# Database-backed session storage for student and admin authentication

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class UserSession(Base):
    """
    Database-backed student sessions.

    The session_token is the opaque value carried by the user_session
    cookie. Identity fields are copied in at login so that a session stays
    valid for its full lifetime even if the roster entry or the course is
    later edited or deleted. For the same reason there are no foreign keys
    to users or courses.

    Rows are never updated: a new login always inserts a new row.
    """

    __tablename__ = "user_sessions"

    __table_args__ = (
        Index("ix_user_sessions_expires_at", "expires_at"),
        Index("ix_user_sessions_student_course", "student_id", "course_id"),
    )

    # The session token (stored in cookie)
    session_token: Mapped[str] = mapped_column(
        String(64),
        primary_key=True
    )

    student_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )

    course_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    login_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False
    )

    # When does this session expire?
    expires_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserSession for {self.student_id}/{self.course_id} until {self.expires_at}>"


class AdminSession(Base):
    """
    Database-backed admin sessions.

    Admin is a single role with no finer permissions, so the row carries
    nothing beyond the token and its validity window.
    """

    __tablename__ = "admin_sessions"

    __table_args__ = (
        Index("ix_admin_sessions_expires_at", "expires_at"),
    )

    session_token: Mapped[str] = mapped_column(
        String(64),
        primary_key=True
    )

    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False
    )

    login_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<AdminSession until {self.expires_at}>"
