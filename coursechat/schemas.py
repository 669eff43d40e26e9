# CourseChat - Pydantic Schemas
# Identities and request/response bodies (camelCase on the wire)

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SessionRole(str, Enum):
    """The two kinds of session. Determines cookie name, TTL and table."""

    USER = "user"
    ADMIN = "admin"


class CamelModel(BaseModel):
    """Base schema accepting and emitting camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# -- Identities ---------------------------------------------------------------

class UserIdentity(CamelModel):
    """A student bound to one course for the life of a session."""

    student_id: str
    course_id: str
    name: str


class AdminIdentity(CamelModel):
    """The single administrative role."""

    is_admin: Literal[True] = True


# -- Auth ---------------------------------------------------------------------

class LoginRequest(CamelModel):
    """Student login form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    student_id: str = Field(..., min_length=1, max_length=50)
    course_id: str = Field(..., min_length=1, max_length=50)


class AdminLoginRequest(CamelModel):
    password: str = Field(..., min_length=1)


class LoginResponse(CamelModel):
    success: bool = True
    message: str
    user: Optional[UserIdentity] = None


class SessionStatus(CamelModel):
    """Answer of the session-check endpoints used by the UI."""

    authenticated: bool
    user: Optional[UserIdentity] = None
    is_admin: bool = False


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


# -- Roster -------------------------------------------------------------------

class UserCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    student_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)


class UserUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)


class UserOut(CamelModel):
    student_id: str
    name: str
    created_at: datetime
    updated_at: datetime


class CourseCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    course_id: str = Field(..., min_length=1, max_length=50)
    course_name: Optional[str] = Field(None, max_length=200)


class CourseUpdate(CamelModel):
    course_name: str = Field(..., min_length=1, max_length=200)


class CourseOut(CamelModel):
    course_id: str
    course_name: Optional[str]
    created_at: datetime
    updated_at: datetime


class BatchDeleteUsersRequest(CamelModel):
    student_ids: list[str] = Field(..., min_length=1)


class BatchDeleteCoursesRequest(CamelModel):
    course_ids: list[str] = Field(..., min_length=1)


class BatchDeleteResponse(CamelModel):
    success: bool = True
    deleted: int


class ImportResponse(CamelModel):
    success: bool = True
    message: str
    imported: int


# -- Chat history -------------------------------------------------------------

class ChatMessageCreate(CamelModel):
    conversation_id: str = Field(..., min_length=1, max_length=100)
    message_id: Optional[str] = Field(None, max_length=100)
    message_type: Literal["question", "answer"]
    content: str = Field(..., min_length=1)
    metadata: Optional[dict[str, Any]] = None


class ChatMessageOut(CamelModel):
    id: int
    student_id: str
    course_id: str
    conversation_id: str
    message_id: Optional[str]
    message_type: str
    content: str
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime


class ChatHistoryResponse(CamelModel):
    success: bool = True
    messages: list[ChatMessageOut]
    count: int


class ExportMessage(CamelModel):
    message_id: Optional[str]
    message_type: str
    content: str
    metadata: Optional[dict[str, Any]]
    timestamp: datetime


class ExportConversation(CamelModel):
    conversation_id: str
    start_time: datetime
    end_time: datetime
    message_count: int
    messages: list[ExportMessage]


class ExportStudent(CamelModel):
    student_name: str
    student_id: str
    course_id: str
    conversations: list[ExportConversation]


class ChatExport(CamelModel):
    success: bool = True
    export_time: datetime
    course_id: str
    total_students: int
    total_conversations: int
    total_messages: int
    data: list[ExportStudent]
