# CourseChat - Chat History Routes
# Students saving and reading their own conversation history

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from coursechat.database import get_db
from coursechat.dependencies import get_current_user
from coursechat.schemas import (
    ChatHistoryResponse,
    ChatMessageCreate,
    MessageResponse,
    UserIdentity,
)
from coursechat.services.chat_history import ChatHistoryService, to_message_out


router = APIRouter(prefix="/api/chat-history", tags=["chat"])


@router.post("", response_model=MessageResponse)
def save_message(
    data: ChatMessageCreate,
    user: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Save one chat message.

    The student and course come from the session, never from the body.
    """
    ChatHistoryService(db).record(
        user,
        conversation_id=data.conversation_id,
        message_type=data.message_type,
        content=data.content,
        message_id=data.message_id,
        metadata=data.metadata,
    )
    return MessageResponse(message="Chat message saved")


@router.get("", response_model=ChatHistoryResponse)
def list_messages(
    user: UserIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
    conversation_id: Optional[str] = Query(None, description="Filter by conversation"),
):
    """Chat messages of the logged-in student in their current course."""
    rows = ChatHistoryService(db).list_for_user(
        user.student_id,
        user.course_id,
        conversation_id,
    )
    messages = [to_message_out(row) for row in rows]
    return ChatHistoryResponse(messages=messages, count=len(messages))
