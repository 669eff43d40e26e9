# CourseChat - Authentication Routes
# Student and admin login, logout, and session checks

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from coursechat.dependencies import (
    get_auth_service,
    get_current_admin_optional,
    get_current_user_optional,
)
from coursechat.schemas import (
    AdminIdentity,
    AdminLoginRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SessionRole,
    SessionStatus,
    UserIdentity,
)
from coursechat.services.auth import AuthService, AuthenticationError
from coursechat.services.cookies import (
    clear_session_cookie,
    get_session_token,
    set_session_cookie,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    login_data: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Student login.

    On success: store a new session and set the user_session cookie.
    On failure: 401 with a message saying whether the credentials or the
    course were wrong. No session row is written and no cookie is set.
    """
    try:
        record = auth.login_user(
            login_data.name,
            login_data.student_id,
            login_data.course_id,
        )
    except AuthenticationError as e:
        logger.warning("Student login failed for %s: %s", login_data.student_id, e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )

    # The session is committed by now; a failed insert raised above
    set_session_cookie(
        response,
        SessionRole.USER,
        record.token,
        record.expires_at,
        now=auth.clock(),
    )

    return LoginResponse(message="Login successful", user=record.identity)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Log out the current student.

    Deletes the session if there is one and clears the cookie. Always
    succeeds from the client's point of view.
    """
    auth.logout(get_session_token(request, SessionRole.USER), SessionRole.USER)
    clear_session_cookie(response, SessionRole.USER)

    return MessageResponse(message="Logged out")


@router.get("/session", response_model=SessionStatus)
def session_check(
    user: Optional[UserIdentity] = Depends(get_current_user_optional),
):
    """
    Report whether the browser holds a live student session.

    The UI uses this to decide whether to redirect to the login screen.
    """
    return SessionStatus(authenticated=user is not None, user=user)


@router.post("/admin/login", response_model=MessageResponse)
def admin_login(
    login_data: AdminLoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """Admin login with the single admin secret."""
    try:
        record = auth.login_admin(login_data.password)
    except AuthenticationError as e:
        logger.warning("Admin login failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )

    set_session_cookie(
        response,
        SessionRole.ADMIN,
        record.token,
        record.expires_at,
        now=auth.clock(),
    )

    return MessageResponse(message="Admin login successful")


@router.post("/admin/logout", response_model=MessageResponse)
def admin_logout(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """Log out the admin. Same contract as the student logout."""
    auth.logout(get_session_token(request, SessionRole.ADMIN), SessionRole.ADMIN)
    clear_session_cookie(response, SessionRole.ADMIN)

    return MessageResponse(message="Logged out")


@router.get("/admin/session", response_model=SessionStatus)
def admin_session_check(
    admin: Optional[AdminIdentity] = Depends(get_current_admin_optional),
):
    """Report whether the browser holds a live admin session."""
    return SessionStatus(authenticated=admin is not None, is_admin=admin is not None)
