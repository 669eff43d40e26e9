# CourseChat - Authentication Service
# Token issuance, login, session verification, logout

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from sqlalchemy.orm import Session

from coursechat.models.base import utcnow
from coursechat.schemas import AdminIdentity, SessionRole, UserIdentity
from coursechat.services.roster import RosterService
from coursechat.services.session_store import (
    AdminSessionRecord,
    Clock,
    SessionConflictError,
    SessionStore,
    UserSessionRecord,
)


logger = logging.getLogger(__name__)

# Session lifetimes by role
USER_SESSION_TTL = timedelta(days=30)
ADMIN_SESSION_TTL = timedelta(hours=12)

SESSION_TTLS = {
    SessionRole.USER: USER_SESSION_TTL,
    SessionRole.ADMIN: ADMIN_SESSION_TTL,
}

# 32 random bytes rendered as hex
TOKEN_BYTES = 32
TOKEN_PATTERN = re.compile(r"^[0-9a-f]{64}$")

# Fresh tokens tried before a collision is treated as a fault
MAX_ISSUE_ATTEMPTS = 3


class AuthenticationError(Exception):
    """Raised when login fails. The message is safe to show to the user."""
    pass


class InvalidCredentialsError(AuthenticationError):
    """Student id and name do not match the roster, or wrong admin secret."""
    pass


class UnknownCourseError(AuthenticationError):
    """The course id is not on the whitelist."""
    pass


@dataclass(frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime


def generate_session_token() -> str:
    """
    Generate a cryptographically secure session token.

    Returns a 64-character hex string (256 bits of entropy).
    """
    return secrets.token_hex(TOKEN_BYTES)


def issue_token(role: SessionRole, now: datetime) -> IssuedToken:
    """
    Mint a new token and its expiry for a role.

    Nothing is persisted here; the caller stores the session before
    handing the token to the client.
    """
    return IssuedToken(
        token=generate_session_token(),
        issued_at=now,
        expires_at=now + SESSION_TTLS[role],
    )


def is_well_formed_token(token: Optional[str]) -> bool:
    """Check that a cookie value has the shape of an issued token."""
    return bool(token) and TOKEN_PATTERN.match(token) is not None


class AuthService:
    """
    Authentication service for login, logout, and session verification.

    Usage:
        auth = AuthService(db)

        # Student login
        record = auth.login_user("张三", "2024001", "CS101")

        # Validate session
        identity = auth.verify(record.token, SessionRole.USER)

        # Logout
        auth.logout(record.token, SessionRole.USER)

    Sessions are opaque random tokens looked up in the database on every
    request. There is no signed token and no in-process cache, so a logout
    or expiry is seen by the very next request.
    """

    def __init__(
        self,
        db: Session,
        clock: Clock = utcnow,
        store: Optional[SessionStore] = None,
        roster: Optional[RosterService] = None,
    ):
        self.db = db
        self.clock = clock
        self.store = store or SessionStore(db, clock)
        self.roster = roster or RosterService(db)

    def authenticate_user(self, name: str, student_id: str, course_id: str) -> UserIdentity:
        """
        Check student credentials against the roster.

        Args:
            name: Student's name as on the roster
            student_id: Student id
            course_id: Course the student is logging into

        Returns:
            The identity to bind into the session

        Raises:
            InvalidCredentialsError: If id and name do not match a roster entry
            UnknownCourseError: If the course is not on the whitelist
        """
        if not self.roster.find_user(student_id, name):
            raise InvalidCredentialsError("Student ID or name is incorrect")

        if not self.roster.get_course(course_id):
            raise UnknownCourseError("Course does not exist")

        return UserIdentity(student_id=student_id, course_id=course_id, name=name)

    def _issue(self, role: SessionRole, persist) -> Union[UserSessionRecord, AdminSessionRecord]:
        # A collision is practically impossible at 256 bits, but it must
        # never be papered over by reusing or overwriting a row
        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            issued = issue_token(role, self.clock())
            try:
                return persist(issued)
            except SessionConflictError:
                logger.error("Session token collision (%s, attempt %d)", role.value, attempt)
                if attempt == MAX_ISSUE_ATTEMPTS:
                    raise

    def login_user(self, name: str, student_id: str, course_id: str) -> UserSessionRecord:
        """
        Authenticate a student and create a new session.

        Returns:
            The stored session record (token and expiry included)

        Raises:
            AuthenticationError: If credentials or course are invalid
            SessionConflictError: If every issued token collided
            StoreUnavailableError: If the session could not be stored
        """
        identity = self.authenticate_user(name, student_id, course_id)

        record = self._issue(
            SessionRole.USER,
            lambda issued: self.store.create_user_session(
                issued.token,
                identity.student_id,
                identity.course_id,
                identity.name,
                issued.issued_at,
                issued.expires_at,
            ),
        )
        logger.info("Student %s logged into course %s", student_id, course_id)
        return record

    def login_admin(self, password: str) -> AdminSessionRecord:
        """
        Check the admin secret and create a new admin session.

        Raises:
            InvalidCredentialsError: If the password is wrong or none is set
        """
        if not self.roster.verify_admin_password(password):
            raise InvalidCredentialsError("Incorrect password")

        record = self._issue(
            SessionRole.ADMIN,
            lambda issued: self.store.create_admin_session(
                issued.token,
                issued.issued_at,
                issued.expires_at,
            ),
        )
        logger.info("Admin logged in")
        return record

    def verify(
        self,
        token: Optional[str],
        role: SessionRole,
    ) -> Optional[Union[UserIdentity, AdminIdentity]]:
        """
        Resolve a cookie value to the identity of a live session.

        Args:
            token: Raw cookie value, possibly missing or garbage
            role: The role the caller requires

        Returns:
            The identity stored with the session, or None. Missing,
            malformed, unknown, expired and wrong-role tokens all give None.
        """
        if not is_well_formed_token(token):
            return None

        record = self.store.get_session(token, role)
        if record is None:
            # Lazy cleanup, a no-op unless the row exists and has expired
            if self.store.purge_if_expired(token, role):
                logger.info("Purged expired %s session", role.value)
            return None

        return record.identity

    def logout(self, token: Optional[str], role: SessionRole) -> bool:
        """
        Invalidate a session.

        Safe to call repeatedly or with a missing token.

        Returns:
            True if a session was found and removed, False otherwise
        """
        if not is_well_formed_token(token):
            return False

        removed = self.store.delete_session(token, role)
        if removed:
            logger.info("%s session logged out", role.value.capitalize())
        return removed
