# CourseChat - Roster Service
# Student roster, course whitelist, and the admin secret

import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from coursechat.models.roster import ADMIN_PASSWORD_KEY, AdminConfig, Course, User


logger = logging.getLogger(__name__)

# Admin secret hashing configuration
# Using bcrypt with automatic salt generation
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=12,  # Balance security vs. speed
)


class RosterConflictError(Exception):
    """Raised when creating a student or course that already exists."""
    pass


class RosterNotFoundError(Exception):
    """Raised when updating or deleting a student or course that does not exist."""
    pass


class RosterService:
    """
    Read and maintain the roster the login flow checks against.

    Usage:
        roster = RosterService(db)

        # Login checks
        user = roster.find_user("2024001", "张三")
        course = roster.get_course("CS101")
        ok = roster.verify_admin_password("secret")

        # Admin maintenance
        roster.create_user("2024002", "李四")
        roster.delete_course("CS101")

    Editing or deleting roster entries never touches sessions: a session
    carries its own copy of the identity it was issued for.
    """

    def __init__(self, db: Session):
        self.db = db

    # -- Students -----------------------------------------------------------

    def find_user(self, student_id: str, name: str) -> Optional[User]:
        """Return the student whose id AND name both match, or None."""
        return self.db.execute(
            select(User)
            .where(User.student_id == student_id)
            .where(User.name == name)
        ).scalar_one_or_none()

    def get_user(self, student_id: str) -> Optional[User]:
        return self.db.get(User, student_id)

    def list_users(self) -> list[User]:
        return list(self.db.execute(
            select(User).order_by(User.created_at.desc(), User.student_id)
        ).scalars())

    def create_user(self, student_id: str, name: str) -> User:
        """
        Add a student to the roster.

        Raises:
            RosterConflictError: If the student id is already taken
        """
        if self.get_user(student_id):
            raise RosterConflictError(f"Student ID {student_id} already exists")

        user = User(student_id=student_id, name=name)
        self.db.add(user)
        self.db.commit()
        logger.info("Added student %s", student_id)
        return user

    def update_user(self, student_id: str, name: str) -> User:
        user = self.get_user(student_id)
        if not user:
            raise RosterNotFoundError(f"Student ID {student_id} not found")

        user.name = name
        self.db.commit()
        return user

    def delete_user(self, student_id: str) -> None:
        user = self.get_user(student_id)
        if not user:
            raise RosterNotFoundError(f"Student ID {student_id} not found")

        self.db.delete(user)
        self.db.commit()
        logger.info("Removed student %s", student_id)

    def create_users(self, users: list[tuple[str, str]]) -> int:
        """
        Add many (student_id, name) pairs in one transaction.

        Ids already on the roster, or repeated in the batch, are skipped.

        Returns:
            Number of students actually added
        """
        added = 0
        for student_id, name in users:
            added += self.db.execute(
                sqlite_insert(User)
                .values(student_id=student_id, name=name)
                .on_conflict_do_nothing(index_elements=[User.student_id])
            ).rowcount
        self.db.commit()
        logger.info("Imported %d of %d students", added, len(users))
        return added

    def delete_users(self, student_ids: list[str]) -> int:
        """Delete many students at once. Unknown ids are skipped."""
        result = self.db.execute(
            delete(User).where(User.student_id.in_(student_ids))
        )
        self.db.commit()
        return result.rowcount

    # -- Courses ------------------------------------------------------------

    def get_course(self, course_id: str) -> Optional[Course]:
        return self.db.get(Course, course_id)

    def list_courses(self) -> list[Course]:
        return list(self.db.execute(
            select(Course).order_by(Course.created_at.desc(), Course.course_id)
        ).scalars())

    def create_course(self, course_id: str, course_name: Optional[str] = None) -> Course:
        """
        Add a course to the whitelist.

        The display name defaults to the course id.

        Raises:
            RosterConflictError: If the course id is already taken
        """
        if self.get_course(course_id):
            raise RosterConflictError(f"Course {course_id} already exists")

        course = Course(course_id=course_id, course_name=course_name or course_id)
        self.db.add(course)
        self.db.commit()
        logger.info("Added course %s", course_id)
        return course

    def update_course(self, course_id: str, course_name: str) -> Course:
        course = self.get_course(course_id)
        if not course:
            raise RosterNotFoundError(f"Course {course_id} not found")

        course.course_name = course_name
        self.db.commit()
        return course

    def delete_course(self, course_id: str) -> None:
        course = self.get_course(course_id)
        if not course:
            raise RosterNotFoundError(f"Course {course_id} not found")

        self.db.delete(course)
        self.db.commit()
        logger.info("Removed course %s", course_id)

    def create_courses(self, courses: list[tuple[str, Optional[str]]]) -> int:
        """Add many (course_id, course_name) pairs; same rules as create_users."""
        added = 0
        for course_id, course_name in courses:
            added += self.db.execute(
                sqlite_insert(Course)
                .values(course_id=course_id, course_name=course_name or course_id)
                .on_conflict_do_nothing(index_elements=[Course.course_id])
            ).rowcount
        self.db.commit()
        logger.info("Imported %d of %d courses", added, len(courses))
        return added

    def delete_courses(self, course_ids: list[str]) -> int:
        result = self.db.execute(
            delete(Course).where(Course.course_id.in_(course_ids))
        )
        self.db.commit()
        return result.rowcount

    # -- Admin secret -------------------------------------------------------

    def has_admin_password(self) -> bool:
        return self.db.get(AdminConfig, ADMIN_PASSWORD_KEY) is not None

    def verify_admin_password(self, password: str) -> bool:
        """
        Compare a submitted password against the stored admin secret.

        Returns False if no secret has been configured.
        """
        config = self.db.get(AdminConfig, ADMIN_PASSWORD_KEY)
        if not config:
            return False
        try:
            return pwd_context.verify(password, config.value)
        except ValueError:
            # Stored value is not a recognizable hash
            logger.error("Stored admin secret is not a valid hash")
            return False

    def set_admin_password(self, password: str) -> None:
        """Set or replace the admin secret."""
        hashed = pwd_context.hash(password)
        config = self.db.get(AdminConfig, ADMIN_PASSWORD_KEY)
        if config:
            config.value = hashed
        else:
            self.db.add(AdminConfig(key=ADMIN_PASSWORD_KEY, value=hashed))
        self.db.commit()
        logger.info("Admin secret updated")

    def ensure_admin_password(self, password: Optional[str]) -> bool:
        """
        Seed the admin secret if none is stored yet.

        Returns True if a secret was written.
        """
        if not password or self.has_admin_password():
            return False
        self.set_admin_password(password)
        return True
