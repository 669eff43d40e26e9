# CourseChat - Admin Routes
# Roster maintenance, admin secret rotation, and transcript export

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from coursechat.database import get_db
from coursechat.dependencies import get_current_admin
from coursechat.schemas import (
    AdminIdentity,
    BatchDeleteCoursesRequest,
    BatchDeleteResponse,
    BatchDeleteUsersRequest,
    ChangePasswordRequest,
    ChatExport,
    ChatHistoryResponse,
    CourseCreate,
    CourseOut,
    CourseUpdate,
    ImportResponse,
    MessageResponse,
    UserCreate,
    UserOut,
    UserUpdate,
)
from coursechat.services.chat_history import ChatHistoryService, to_message_out
from coursechat.services.roster import (
    RosterConflictError,
    RosterNotFoundError,
    RosterService,
)


logger = logging.getLogger(__name__)

# The gate runs before any handler body touches the database
router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


def _not_found(e: RosterNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _conflict(e: RosterConflictError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


# -- Students -----------------------------------------------------------------

@router.get("/users", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List every student on the roster, newest first."""
    return RosterService(db).list_users()


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    try:
        return RosterService(db).create_user(data.student_id, data.name)
    except RosterConflictError as e:
        raise _conflict(e)


@router.put("/users/{student_id}", response_model=UserOut)
def update_user(student_id: str, data: UserUpdate, db: Session = Depends(get_db)):
    """
    Rename a student.

    Sessions already issued keep the name they were issued with.
    """
    try:
        return RosterService(db).update_user(student_id, data.name)
    except RosterNotFoundError as e:
        raise _not_found(e)


@router.delete("/users/{student_id}", response_model=MessageResponse)
def delete_user(student_id: str, db: Session = Depends(get_db)):
    try:
        RosterService(db).delete_user(student_id)
    except RosterNotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="Student removed")


@router.post("/users/batch-delete", response_model=BatchDeleteResponse)
def batch_delete_users(data: BatchDeleteUsersRequest, db: Session = Depends(get_db)):
    deleted = RosterService(db).delete_users(data.student_ids)
    return BatchDeleteResponse(deleted=deleted)


@router.post("/users/import", response_model=ImportResponse)
def import_users(data: list[UserCreate], db: Session = Depends(get_db)):
    """
    Add many students at once.

    Students whose id is already on the roster are left as they are.
    """
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No students to import",
        )

    imported = RosterService(db).create_users([(u.student_id, u.name) for u in data])
    return ImportResponse(message=f"Imported {imported} students", imported=imported)


@router.get("/users/{student_id}/chat-history", response_model=ChatHistoryResponse)
def user_chat_history(
    student_id: str,
    db: Session = Depends(get_db),
    course_id: Optional[str] = Query(None, description="Filter by course"),
    conversation_id: Optional[str] = Query(None, description="Filter by conversation"),
):
    """Chat messages of one student, for review by the admin."""
    rows = ChatHistoryService(db).list_for_user(student_id, course_id, conversation_id)
    messages = [to_message_out(row) for row in rows]
    return ChatHistoryResponse(messages=messages, count=len(messages))


# -- Courses ------------------------------------------------------------------

@router.get("/courses", response_model=list[CourseOut])
def list_courses(db: Session = Depends(get_db)):
    return RosterService(db).list_courses()


@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(data: CourseCreate, db: Session = Depends(get_db)):
    try:
        return RosterService(db).create_course(data.course_id, data.course_name)
    except RosterConflictError as e:
        raise _conflict(e)


@router.put("/courses/{course_id}", response_model=CourseOut)
def update_course(course_id: str, data: CourseUpdate, db: Session = Depends(get_db)):
    try:
        return RosterService(db).update_course(course_id, data.course_name)
    except RosterNotFoundError as e:
        raise _not_found(e)


@router.delete("/courses/{course_id}", response_model=MessageResponse)
def delete_course(course_id: str, db: Session = Depends(get_db)):
    """
    Remove a course from the whitelist.

    Students already logged into it stay logged in until their session ends.
    """
    try:
        RosterService(db).delete_course(course_id)
    except RosterNotFoundError as e:
        raise _not_found(e)
    return MessageResponse(message="Course removed")


@router.post("/courses/batch-delete", response_model=BatchDeleteResponse)
def batch_delete_courses(data: BatchDeleteCoursesRequest, db: Session = Depends(get_db)):
    deleted = RosterService(db).delete_courses(data.course_ids)
    return BatchDeleteResponse(deleted=deleted)


@router.post("/courses/import", response_model=ImportResponse)
def import_courses(data: list[CourseCreate], db: Session = Depends(get_db)):
    """Add many courses at once. Existing course ids are skipped."""
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No courses to import",
        )

    imported = RosterService(db).create_courses([(c.course_id, c.course_name) for c in data])
    return ImportResponse(message=f"Imported {imported} courses", imported=imported)


# -- Admin secret -------------------------------------------------------------

@router.put("/password", response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    admin: AdminIdentity = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Rotate the admin secret.

    Existing admin sessions are not ended.
    """
    roster = RosterService(db)
    if not roster.verify_admin_password(data.current_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    roster.set_admin_password(data.new_password)
    return MessageResponse(message="Password updated")


# -- Export -------------------------------------------------------------------

@router.get("/export-chats", response_model=ChatExport)
def export_chats(
    db: Session = Depends(get_db),
    course_id: Optional[str] = Query(None, description="Only export this course"),
):
    """Export chat transcripts grouped by student and conversation."""
    export = ChatHistoryService(db).export(course_id)
    logger.info(
        "Exported %d messages for course %s",
        export.total_messages,
        export.course_id,
    )
    return export
