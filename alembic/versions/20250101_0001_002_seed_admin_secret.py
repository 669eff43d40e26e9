"""Seed admin secret

Revision ID: 002
Revises: 001
Create Date: 2025-01-01 00:01:00.000000

This migration seeds:
- The admin secret (bcrypt hash), if COURSECHAT_ADMIN_PASSWORD is set

Without it the admin login stays closed until
`python -m scripts.db_manage setpassword` is run.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import table, column
from datetime import datetime, timezone

from coursechat.config import get_settings
from coursechat.models.roster import ADMIN_PASSWORD_KEY
from coursechat.services.roster import pwd_context

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

settings = get_settings()


admin_config = table(
    'admin_config',
    column('key', sa.String),
    column('value', sa.String),
    column('updated_at', sa.DateTime),
)


def upgrade() -> None:
    if not settings.admin_password:
        return

    op.bulk_insert(
        admin_config,
        [
            {
                'key': ADMIN_PASSWORD_KEY,
                'value': pwd_context.hash(settings.admin_password),
                'updated_at': datetime.now(timezone.utc).replace(tzinfo=None),
            },
        ],
    )


def downgrade() -> None:
    op.execute(
        admin_config.delete().where(admin_config.c.key == ADMIN_PASSWORD_KEY)
    )
