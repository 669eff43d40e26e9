# CourseChat - Configuration
# Application settings loaded from environment variables

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Create a .env file in the project root for local development:

        # .env
        COURSECHAT_DB_PATH=data/coursechat.db
        COURSECHAT_ADMIN_PASSWORD=change-me-before-class
        COURSECHAT_COOKIE_SECURE=false

    For production, set these as actual environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="COURSECHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "CourseChat"
    debug: bool = False
    log_level: str = "INFO"

    # Database - SQLite file
    db_path: str = "data/coursechat.db"

    # Seconds a connection waits on a locked database before failing
    db_busy_timeout_seconds: int = 5

    # Cookie settings
    # Leave on unless serving plain HTTP during local development
    cookie_secure: bool = True

    # Bootstrap admin secret, stored (hashed) only when none is configured yet
    admin_password: Optional[str] = None

    # Expired session sweep, 0 disables the background task
    session_sweep_interval_seconds: int = 3600

    # Browser origins allowed to call the API with credentials
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def database_url(self) -> str:
        """
        Build the SQLite connection URL for SQLAlchemy.

        The parent directory of the database file is created if missing.
        """
        db_file = Path(self.db_path)
        db_file.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_file}"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once.
    """
    return Settings()
