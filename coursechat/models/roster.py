# CourseChat - Roster Models
# Students, courses, and the admin secret

from datetime import datetime
from typing import Optional

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, utcnow


class User(TimestampMixin, Base):
    """
    A student on the roster.

    Students log in with their student_id and name; both must match a row
    here at login time.
    """

    __tablename__ = "users"

    student_id: Mapped[str] = mapped_column(
        String(50),
        primary_key=True
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<User {self.student_id} ({self.name})>"


class Course(TimestampMixin, Base):
    """A course id students are allowed to log into."""

    __tablename__ = "courses"

    course_id: Mapped[str] = mapped_column(
        String(50),
        primary_key=True
    )

    # Display name, defaults to the course id itself
    course_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<Course {self.course_id}>"


class AdminConfig(Base):
    """
    Key-value configuration editable by the admin.

    Currently holds one key, ADMIN_PASSWORD_KEY, whose value is the bcrypt
    hash of the admin secret.
    """

    __tablename__ = "admin_config"

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True
    )

    value: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<AdminConfig {self.key}>"


ADMIN_PASSWORD_KEY = "admin_password"
