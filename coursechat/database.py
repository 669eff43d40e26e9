# CourseChat - Database Setup
# SQLAlchemy engine, session factory, and FastAPI dependencies

from typing import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from coursechat.config import get_settings
from coursechat.models.base import Base


# Get settings
settings = get_settings()

# SQLite connections are handed between the threadpool workers FastAPI
# runs sync handlers on, so the same-thread check must be off
engine = create_engine(
    settings.database_url,
    connect_args={
        "check_same_thread": False,
        "timeout": settings.db_busy_timeout_seconds,
    },
    pool_pre_ping=True,  # Verify connections before using
    echo=settings.debug,  # Log SQL in debug mode
)


# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,  # Prevent lazy-load issues after commit
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a database session.

    Usage in route handlers:

        @router.get("/api/admin/users")
        def list_users(db: Session = Depends(get_db)):
            return db.query(User).all()

    The session is automatically closed after the request completes,
    even if an exception occurs.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI requests.

    Usage in scripts, CLI commands, or background tasks:

        with get_db_context() as db:
            SessionStore(db).sweep_expired()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = engine) -> None:
    """
    Initialize the database schema.

    Creates all tables defined in the models.

    WARNING: This is for development/testing only.
    In production, use Alembic migrations.
    """
    # Importing the package registers every model on Base.metadata
    import coursechat.models  # noqa: F401

    Base.metadata.create_all(bind=bind)


def drop_db(bind: Engine = engine) -> None:
    """
    Drop all tables.

    WARNING: Destroys all data. Only for development/testing.
    """
    Base.metadata.drop_all(bind=bind)


def check_connection() -> bool:
    """
    Test the database connection.

    Returns True if connection succeeds, raises exception otherwise.
    Useful for health checks and startup verification.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_connection, connection_record):
    """
    Set connection-level options for SQLite.

    This runs once when a new connection is created, for every engine
    (including the in-memory engines the test suite builds).
    """
    cursor = dbapi_connection.cursor()

    # WAL lets readers proceed while a login or logout is writing
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")

    cursor.close()
