# CourseChat - Main Application
# FastAPI application factory and startup

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coursechat.config import get_settings
from coursechat.database import check_connection, get_db_context
from coursechat.services.roster import RosterService
from coursechat.services.session_store import SessionConflictError, StoreUnavailableError
from coursechat.services.sweeper import run_sweeper


settings = get_settings()

logger = logging.getLogger("coursechat")


def configure_logging() -> None:
    """Route application logs to stderr at the configured level."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events.

    Runs on startup and shutdown.
    """
    # Startup
    logger.info("Starting %s...", settings.app_name)

    # Verify database connection
    try:
        check_connection()
        logger.info("Database connection: OK")
    except Exception as e:
        logger.error("Database connection: FAILED - %s", e)
        if not settings.debug:
            raise

    # Seed the admin secret on first run
    with get_db_context() as db:
        if RosterService(db).ensure_admin_password(settings.admin_password):
            logger.info("Admin secret seeded from configuration")

    sweeper = None
    if settings.session_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(run_sweeper(settings.session_sweep_interval_seconds))

    yield

    # Shutdown
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    logger.info("Shutting down %s...", settings.app_name)


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Turn session store faults into a generic 500.

    Nothing about the store or the token is revealed to the client.
    """
    logger.error("Store failure on %s %s: %r", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Classroom front end for an AI chat service",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # The browser UI is served from another origin and sends cookies
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StoreUnavailableError, store_error_handler)
    app.add_exception_handler(SessionConflictError, store_error_handler)

    # Include routers
    from coursechat.routes import admin, auth, chat
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(chat.router)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint for monitoring."""
        try:
            check_connection()
            db_status = "healthy"
        except Exception as e:
            db_status = f"unhealthy: {e}"

        return {
            "status": "ok",
            "app": settings.app_name,
            "database": db_status,
        }

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coursechat.main:app",
        host="0.0.0.0",
        port=8001,
        reload=settings.debug,
    )
