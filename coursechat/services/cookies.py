# CourseChat - Session Cookies
# Binding session tokens to the browser

from datetime import datetime
from typing import Optional

from fastapi import Request, Response

from coursechat.config import get_settings
from coursechat.models.base import utcnow
from coursechat.schemas import SessionRole


# One cookie per role so the two session kinds can never collide
SESSION_COOKIE_NAMES = {
    SessionRole.USER: "user_session",
    SessionRole.ADMIN: "admin_session",
}

COOKIE_PATH = "/"
COOKIE_SAMESITE = "lax"


def get_session_token(request: Request, role: SessionRole) -> Optional[str]:
    """
    Extract the session token for a role from request cookies.

    Returns None if the cookie is not present.
    """
    return request.cookies.get(SESSION_COOKIE_NAMES[role])


def cookie_max_age(expires_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole seconds until expires_at, never negative."""
    remaining = (expires_at - (now or utcnow())).total_seconds()
    return max(int(remaining), 0)


def set_session_cookie(
    response: Response,
    role: SessionRole,
    token: str,
    expires_at: datetime,
    now: Optional[datetime] = None,
) -> None:
    """
    Attach the session cookie for a role to a response.

    Max-Age is computed from the session's own expiry so the cookie never
    outlives the server-side record.
    """
    response.set_cookie(
        key=SESSION_COOKIE_NAMES[role],
        value=token,
        max_age=cookie_max_age(expires_at, now),
        path=COOKIE_PATH,
        secure=get_settings().cookie_secure,
        httponly=True,  # Not accessible via JavaScript
        samesite=COOKIE_SAMESITE,
    )


def clear_session_cookie(response: Response, role: SessionRole) -> None:
    """Remove the session cookie for a role, with the attributes used to set it."""
    response.delete_cookie(
        key=SESSION_COOKIE_NAMES[role],
        path=COOKIE_PATH,
        secure=get_settings().cookie_secure,
        httponly=True,
        samesite=COOKIE_SAMESITE,
    )
