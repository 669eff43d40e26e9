"""Initial schema - all tables

Revision ID: 001
Revises:
Create Date: 2025-01-01 00:00:00.000000

This migration creates all initial tables for CourseChat:
- users: Student roster
- courses: Course whitelist
- admin_config: Key-value store holding the admin secret hash
- user_sessions: Student authentication sessions
- admin_sessions: Admin authentication sessions
- chat_history: Stored chat messages
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Student roster
    op.create_table(
        'users',
        sa.Column('student_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint('student_id'),
    )

    # Course whitelist
    op.create_table(
        'courses',
        sa.Column('course_id', sa.String(length=50), nullable=False),
        sa.Column('course_name', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint('course_id'),
    )

    # Admin configuration
    op.create_table(
        'admin_config',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint('key'),
    )

    # Student sessions - no foreign keys, sessions outlive roster edits
    op.create_table(
        'user_sessions',
        sa.Column('session_token', sa.String(length=64), nullable=False),
        sa.Column('student_id', sa.String(length=50), nullable=False),
        sa.Column('course_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('login_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('session_token'),
    )
    op.create_index('ix_user_sessions_expires_at', 'user_sessions', ['expires_at'])
    op.create_index('ix_user_sessions_student_course', 'user_sessions', ['student_id', 'course_id'])

    # Admin sessions
    op.create_table(
        'admin_sessions',
        sa.Column('session_token', sa.String(length=64), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('login_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('session_token'),
    )
    op.create_index('ix_admin_sessions_expires_at', 'admin_sessions', ['expires_at'])

    # Chat history
    op.create_table(
        'chat_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('student_id', sa.String(length=50), nullable=False),
        sa.Column('course_id', sa.String(length=50), nullable=False),
        sa.Column('conversation_id', sa.String(length=100), nullable=False),
        sa.Column('message_id', sa.String(length=100), nullable=True),
        sa.Column('message_type', sa.String(length=20), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.CheckConstraint("message_type IN ('question', 'answer')", name='ck_chat_history_message_type'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_history_student_course', 'chat_history', ['student_id', 'course_id'])
    op.create_index('ix_chat_history_conversation', 'chat_history', ['conversation_id'])
    op.create_index('ix_chat_history_created_at', 'chat_history', ['created_at'])


def downgrade() -> None:
    op.drop_table('chat_history')
    op.drop_table('admin_sessions')
    op.drop_table('user_sessions')
    op.drop_table('admin_config')
    op.drop_table('courses')
    op.drop_table('users')
