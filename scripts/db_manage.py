#!/usr/bin/env python
"""
CourseChat - Database Management CLI

Usage:
    python -m scripts.db_manage check            # Connect and report session counts
    python -m scripts.db_manage migrate [REV]    # Upgrade to REV (default: head)
    python -m scripts.db_manage current          # Show the applied revision
    python -m scripts.db_manage history          # List known revisions
    python -m scripts.db_manage reset            # Rebuild the schema (debug only)
    python -m scripts.db_manage sweep            # Delete expired sessions now
    python -m scripts.db_manage setpassword      # Set the admin password
"""

import sys
from getpass import getpass

from alembic import command
from alembic.config import Config

from coursechat.config import get_settings
from coursechat.database import check_connection, get_db_context


settings = get_settings()

ALEMBIC_INI = "alembic.ini"

# bcrypt ignores everything past 72 bytes
MAX_PASSWORD_BYTES = 72
MIN_PASSWORD_LENGTH = 8


def _alembic() -> Config:
    return Config(ALEMBIC_INI)


def cmd_check(args):
    """Connect to the database and report how many sessions it holds."""
    from coursechat.schemas import SessionRole
    from coursechat.services.session_store import SessionStore

    print(f"Database: {settings.db_path}")
    check_connection()

    with get_db_context() as db:
        store = SessionStore(db)
        for role in SessionRole:
            print(f"  {role.value} sessions: {store.count_sessions(role)}")
    return True


def cmd_migrate(args):
    """Upgrade the schema to a revision, head by default."""
    revision = args[0] if args else "head"
    command.upgrade(_alembic(), revision)
    print(f"Schema at {revision}")
    return True


def cmd_current(args):
    command.current(_alembic(), verbose=True)
    return True


def cmd_history(args):
    command.history(_alembic())
    return True


def cmd_reset(args):
    """Downgrade to base and upgrade again. Every session and roster row is lost."""
    if not settings.debug:
        print("reset needs COURSECHAT_DEBUG=true")
        return False

    if input(f"Wipe {settings.db_path}? Type the file name to confirm: ") != settings.db_path:
        print("Aborted")
        return False

    config = _alembic()
    command.downgrade(config, "base")
    command.upgrade(config, "head")
    print("Schema rebuilt")
    return True


def cmd_sweep(args):
    """Delete expired user and admin sessions."""
    from coursechat.services.sweeper import sweep_once

    users, admins = sweep_once()
    print(f"Removed {users} user sessions and {admins} admin sessions")
    return True


def cmd_setpassword(args):
    """Set the admin password. Existing admin sessions stay valid."""
    from coursechat.services.roster import RosterService

    password = getpass("New admin password: ")
    if password != getpass("Confirm password: "):
        print("Passwords do not match")
        return False

    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return False

    size = len(password.encode("utf-8"))
    if size > MAX_PASSWORD_BYTES:
        print(f"Password is {size} bytes; bcrypt only uses the first {MAX_PASSWORD_BYTES}")
        return False

    with get_db_context() as db:
        RosterService(db).set_admin_password(password)

    print("Admin password updated")
    return True


def cmd_help(args):
    print(__doc__)
    return True


COMMANDS = {
    "check": cmd_check,
    "migrate": cmd_migrate,
    "current": cmd_current,
    "history": cmd_history,
    "reset": cmd_reset,
    "sweep": cmd_sweep,
    "setpassword": cmd_setpassword,
    "help": cmd_help,
}


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    handler = COMMANDS.get(argv[0].lower()) if argv else None

    if handler is None:
        if argv:
            print(f"Unknown command: {argv[0]}")
        cmd_help([])
        return 1

    return 0 if handler(argv[1:]) else 1


if __name__ == "__main__":
    sys.exit(main())
