# CourseChat - Chat History Model

import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import CheckConstraint, String, Integer, DateTime, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


# Allowed values for ChatHistory.message_type
MESSAGE_TYPES = ("question", "answer")


class ChatHistory(Base):
    """
    One message of a student's conversation with the AI service.

    student_id and course_id are always taken from the session that wrote
    the message, never from the request body.

    Message Types:
        - 'question': Sent by the student
        - 'answer': Returned by the AI service
    """

    __tablename__ = "chat_history"

    __table_args__ = (
        Index("ix_chat_history_student_course", "student_id", "course_id"),
        Index("ix_chat_history_conversation", "conversation_id"),
        Index("ix_chat_history_created_at", "created_at"),
        CheckConstraint(
            "message_type IN ('question', 'answer')",
            name="ck_chat_history_message_type",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True
    )

    student_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )

    course_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False
    )

    conversation_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    # Message id assigned by the AI service, if any
    message_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True
    )

    message_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False
    )

    # JSON-encoded extra data (token usage, retriever resources, ...)
    metadata_json: Mapped[Optional[str]] = mapped_column(
        "metadata",
        Text,
        nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<ChatHistory {self.id} {self.message_type} in {self.conversation_id}>"

    @property
    def extra(self) -> Optional[dict[str, Any]]:
        """Decoded metadata, or None if none was stored."""
        if not self.metadata_json:
            return None
        return json.loads(self.metadata_json)
