# CourseChat - Session Store
# Persistence of user and admin sessions

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from coursechat.models.base import utcnow
from coursechat.models.user_session import AdminSession, UserSession
from coursechat.schemas import AdminIdentity, SessionRole, UserIdentity


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class SessionConflictError(Exception):
    """Raised when a session token already exists in the store."""
    pass


class StoreUnavailableError(Exception):
    """Raised when the session database cannot be reached."""
    pass


@dataclass(frozen=True)
class UserSessionRecord:
    token: str
    identity: UserIdentity
    issued_at: datetime
    expires_at: datetime

    role = SessionRole.USER


@dataclass(frozen=True)
class AdminSessionRecord:
    token: str
    identity: AdminIdentity
    issued_at: datetime
    expires_at: datetime

    role = SessionRole.ADMIN


SessionRecord = Union[UserSessionRecord, AdminSessionRecord]

_MODELS = {
    SessionRole.USER: UserSession,
    SessionRole.ADMIN: AdminSession,
}


class SessionStore:
    """
    Store for active sessions, one table per role.

    Usage:
        store = SessionStore(db)

        store.create_user_session(token, "2024001", "CS101", "张三", issued_at, expires_at)
        record = store.get_user_session(token)   # UserSessionRecord or None
        store.delete_user_session(token)

    Reads never return a row whose expires_at has passed. Every mutating
    call commits its own single statement, or rolls back and raises.
    Rows are mapped to frozen records here and ORM objects never leave
    this class.
    """

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def _commit(self) -> None:
        try:
            self.db.commit()
        except OperationalError as e:
            self.db.rollback()
            logger.error("Session store commit failed: %s", e)
            raise StoreUnavailableError("Session store is unavailable") from e

    def _insert(self, role: SessionRole, **values) -> None:
        try:
            self.db.execute(insert(_MODELS[role]).values(**values))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise SessionConflictError("Session token already exists") from e
        except OperationalError as e:
            self.db.rollback()
            logger.error("Session store insert failed: %s", e)
            raise StoreUnavailableError("Session store is unavailable") from e

    def _fetch_live(self, role: SessionRole, token: str):
        model = _MODELS[role]
        try:
            return self.db.execute(
                select(model)
                .where(model.session_token == token)
                .where(model.expires_at > self.clock())
            ).scalar_one_or_none()
        except OperationalError as e:
            self.db.rollback()
            logger.error("Session store lookup failed: %s", e)
            raise StoreUnavailableError("Session store is unavailable") from e

    def _delete(self, statement) -> int:
        try:
            result = self.db.execute(statement)
        except OperationalError as e:
            self.db.rollback()
            logger.error("Session store delete failed: %s", e)
            raise StoreUnavailableError("Session store is unavailable") from e
        self._commit()
        return result.rowcount

    # -- Create -------------------------------------------------------------

    def create_user_session(
        self,
        token: str,
        student_id: str,
        course_id: str,
        name: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> UserSessionRecord:
        """
        Insert a student session.

        Raises:
            SessionConflictError: If the token is already in use
            StoreUnavailableError: If the database cannot be written
        """
        self._insert(
            SessionRole.USER,
            session_token=token,
            student_id=student_id,
            course_id=course_id,
            name=name,
            login_at=issued_at,
            expires_at=expires_at,
        )
        return UserSessionRecord(
            token=token,
            identity=UserIdentity(student_id=student_id, course_id=course_id, name=name),
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def create_admin_session(
        self,
        token: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> AdminSessionRecord:
        """Insert an admin session. Raises as create_user_session."""
        self._insert(
            SessionRole.ADMIN,
            session_token=token,
            is_admin=True,
            login_at=issued_at,
            expires_at=expires_at,
        )
        return AdminSessionRecord(
            token=token,
            identity=AdminIdentity(),
            issued_at=issued_at,
            expires_at=expires_at,
        )

    # -- Read ---------------------------------------------------------------

    def get_user_session(self, token: str) -> Optional[UserSessionRecord]:
        row = self._fetch_live(SessionRole.USER, token)
        if row is None:
            return None
        return UserSessionRecord(
            token=row.session_token,
            identity=UserIdentity(
                student_id=row.student_id,
                course_id=row.course_id,
                name=row.name,
            ),
            issued_at=row.login_at,
            expires_at=row.expires_at,
        )

    def get_admin_session(self, token: str) -> Optional[AdminSessionRecord]:
        row = self._fetch_live(SessionRole.ADMIN, token)
        if row is None:
            return None
        return AdminSessionRecord(
            token=row.session_token,
            identity=AdminIdentity(),
            issued_at=row.login_at,
            expires_at=row.expires_at,
        )

    def get_session(self, token: str, role: SessionRole) -> Optional[SessionRecord]:
        """Role-dispatching lookup used by the verifier."""
        if role is SessionRole.USER:
            return self.get_user_session(token)
        return self.get_admin_session(token)

    # -- Delete -------------------------------------------------------------

    def delete_user_session(self, token: str) -> bool:
        """Delete a student session. Returns False if there was none."""
        return self._delete(
            delete(UserSession).where(UserSession.session_token == token)
        ) > 0

    def delete_admin_session(self, token: str) -> bool:
        """Delete an admin session. Returns False if there was none."""
        return self._delete(
            delete(AdminSession).where(AdminSession.session_token == token)
        ) > 0

    def delete_session(self, token: str, role: SessionRole) -> bool:
        if role is SessionRole.USER:
            return self.delete_user_session(token)
        return self.delete_admin_session(token)

    def purge_if_expired(self, token: str, role: SessionRole) -> bool:
        """
        Delete the session for token only if it has expired.

        Used for lazy cleanup after a lookup came back empty. Returns True
        if an expired row was removed.

        Unknown tokens only cost a read; a write transaction is opened only
        when there is an expired row to remove.
        """
        model = _MODELS[role]
        now = self.clock()
        try:
            expired = self.db.execute(
                select(model.session_token)
                .where(model.session_token == token)
                .where(model.expires_at <= now)
            ).scalar_one_or_none()
        except OperationalError as e:
            self.db.rollback()
            logger.error("Session store lookup failed: %s", e)
            raise StoreUnavailableError("Session store is unavailable") from e

        if expired is None:
            return False

        return self._delete(
            delete(model)
            .where(model.session_token == token)
            .where(model.expires_at <= now)
        ) > 0

    def sweep_expired(self) -> tuple[int, int]:
        """
        Remove every expired session of both roles.

        Both deletes run in one transaction.

        Returns:
            Tuple of (user sessions removed, admin sessions removed)
        """
        now = self.clock()
        try:
            users = self.db.execute(
                delete(UserSession).where(UserSession.expires_at <= now)
            ).rowcount
            admins = self.db.execute(
                delete(AdminSession).where(AdminSession.expires_at <= now)
            ).rowcount
        except OperationalError as e:
            self.db.rollback()
            logger.error("Session sweep failed: %s", e)
            raise StoreUnavailableError("Session store is unavailable") from e
        self._commit()
        return users, admins

    def count_sessions(self, role: SessionRole) -> int:
        """Number of stored rows for a role, expired or not."""
        model = _MODELS[role]
        return self.db.execute(
            select(func.count()).select_from(model)
        ).scalar_one()
