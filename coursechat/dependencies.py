# CourseChat - Authentication Dependencies
# FastAPI dependencies for protecting routes

from typing import Optional, Union

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from coursechat.database import get_db
from coursechat.models.base import utcnow
from coursechat.schemas import AdminIdentity, SessionRole, UserIdentity
from coursechat.services.auth import AuthService
from coursechat.services.cookies import get_session_token
from coursechat.services.session_store import Clock


def get_clock() -> Clock:
    """
    Source of the current time for session issuance and expiry.

    Tests override this dependency to move time forward.
    """
    return utcnow


def get_auth_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AuthService:
    return AuthService(db, clock)


class RequireRole:
    """
    Gate a route on a live session of one role.

    Only the cookie belonging to that role is read, so a token minted for
    the other role is never even looked up in the right table. Every
    failure (no cookie, unknown token, expired, wrong role) produces the
    same 401 with no detail about the cause.

    Usage:
        @router.get("/api/admin/users")
        def list_users(admin: AdminIdentity = Depends(RequireRole(SessionRole.ADMIN))):
            ...

    With optional=True the dependency returns None instead of raising,
    for endpoints that only report whether someone is logged in.
    """

    def __init__(self, role: SessionRole, optional: bool = False):
        self.role = role
        self.optional = optional

    def __call__(
        self,
        request: Request,
        auth: AuthService = Depends(get_auth_service),
    ) -> Optional[Union[UserIdentity, AdminIdentity]]:
        identity = auth.verify(get_session_token(request, self.role), self.role)

        if identity is None and not self.optional:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
            )
        return identity


get_current_user = RequireRole(SessionRole.USER)
get_current_user_optional = RequireRole(SessionRole.USER, optional=True)
get_current_admin = RequireRole(SessionRole.ADMIN)
get_current_admin_optional = RequireRole(SessionRole.ADMIN, optional=True)
