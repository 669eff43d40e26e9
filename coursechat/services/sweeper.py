# CourseChat - Session Sweeper
# Periodic background removal of expired sessions

import asyncio
import logging

from coursechat.database import get_db_context
from coursechat.services.session_store import SessionStore, StoreUnavailableError


logger = logging.getLogger(__name__)


def sweep_once() -> tuple[int, int]:
    """
    Delete expired sessions of both roles.

    Returns:
        Tuple of (user sessions removed, admin sessions removed)
    """
    with get_db_context() as db:
        users, admins = SessionStore(db).sweep_expired()

    if users or admins:
        logger.info("Swept %d expired user and %d expired admin sessions", users, admins)
    return users, admins


async def run_sweeper(interval_seconds: int) -> None:
    """
    Sweep expired sessions every interval_seconds until cancelled.

    Verification already ignores and deletes expired rows on access, so a
    failed sweep only delays reclaiming storage and the loop keeps going.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(sweep_once)
        except StoreUnavailableError:
            logger.warning("Session sweep skipped, store unavailable")
        except Exception:
            logger.exception("Session sweep failed")
