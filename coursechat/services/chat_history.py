# CourseChat - Chat History Service
# Recording student conversations and exporting transcripts

import json
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursechat.models.base import utcnow
from coursechat.models.chat_history import ChatHistory
from coursechat.models.roster import User
from coursechat.schemas import (
    ChatExport,
    ChatMessageOut,
    ExportConversation,
    ExportMessage,
    ExportStudent,
    UserIdentity,
)


def to_message_out(row: ChatHistory) -> ChatMessageOut:
    return ChatMessageOut(
        id=row.id,
        student_id=row.student_id,
        course_id=row.course_id,
        conversation_id=row.conversation_id,
        message_id=row.message_id,
        message_type=row.message_type,
        content=row.content,
        metadata=row.extra,
        created_at=row.created_at,
    )


class ChatHistoryService:
    """
    Service for a student's chat messages.

    Every write and per-student read is keyed by a UserIdentity resolved
    from the session, so a student can only ever see or add to their own
    history for the course they logged into.
    """

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        identity: UserIdentity,
        conversation_id: str,
        message_type: str,
        content: str,
        message_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ChatHistory:
        """Store one message under the session owner's student and course."""
        entry = ChatHistory(
            student_id=identity.student_id,
            course_id=identity.course_id,
            conversation_id=conversation_id,
            message_id=message_id,
            message_type=message_type,
            content=content,
            metadata_json=json.dumps(metadata, ensure_ascii=False) if metadata is not None else None,
            created_at=utcnow(),
        )
        self.db.add(entry)
        self.db.commit()
        return entry

    def list_for_user(
        self,
        student_id: str,
        course_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> list[ChatHistory]:
        """
        Messages for one student.

        Without a conversation filter the newest come first; a single
        conversation is returned in reading order.
        """
        query = select(ChatHistory).where(ChatHistory.student_id == student_id)
        if course_id:
            query = query.where(ChatHistory.course_id == course_id)

        if conversation_id:
            query = query.where(ChatHistory.conversation_id == conversation_id)
            query = query.order_by(ChatHistory.created_at.asc(), ChatHistory.id.asc())
        else:
            query = query.order_by(ChatHistory.created_at.desc(), ChatHistory.id.desc())

        return list(self.db.execute(query).scalars())

    def export(self, course_id: Optional[str] = None) -> ChatExport:
        """
        Build the transcript export, grouped by student then conversation.

        Students missing from the roster are listed under their id.
        """
        query = (
            select(ChatHistory, User.name)
            .outerjoin(User, ChatHistory.student_id == User.student_id)
            .order_by(
                ChatHistory.student_id,
                ChatHistory.course_id,
                ChatHistory.conversation_id,
                ChatHistory.created_at.asc(),
                ChatHistory.id.asc(),
            )
        )
        if course_id:
            query = query.where(ChatHistory.course_id == course_id)

        students: dict[tuple[str, str], dict[str, Any]] = {}
        for row, student_name in self.db.execute(query):
            key = (row.student_id, row.course_id)
            if key not in students:
                students[key] = {
                    "student_name": student_name or row.student_id,
                    "conversations": {},
                }
            conversations = students[key]["conversations"]
            conversations.setdefault(row.conversation_id, []).append(
                ExportMessage(
                    message_id=row.message_id,
                    message_type=row.message_type,
                    content=row.content,
                    metadata=row.extra,
                    timestamp=row.created_at,
                )
            )

        data = []
        for (student_id, student_course), info in students.items():
            data.append(ExportStudent(
                student_name=info["student_name"],
                student_id=student_id,
                course_id=student_course,
                conversations=[
                    ExportConversation(
                        conversation_id=conversation_id,
                        start_time=messages[0].timestamp,
                        end_time=messages[-1].timestamp,
                        message_count=len(messages),
                        messages=messages,
                    )
                    for conversation_id, messages in info["conversations"].items()
                ],
            ))

        return ChatExport(
            export_time=utcnow(),
            course_id=course_id or "all",
            total_students=len(data),
            total_conversations=sum(len(s.conversations) for s in data),
            total_messages=sum(c.message_count for s in data for c in s.conversations),
            data=data,
        )
