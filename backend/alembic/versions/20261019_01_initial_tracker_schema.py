"""initial tracker schema: users, job applications, activity log

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


_NOT_STARTED = sa.text("'Not Started'")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("theme", sa.String(length=20), server_default="dark", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)

    op.create_table(
        "job_applications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("company", sa.String(length=255), nullable=False),
        sa.Column("position", sa.String(length=255), server_default="", nullable=False),
        sa.Column("recruiter_name", sa.String(length=255), server_default="", nullable=False),
        sa.Column("hiring_manager", sa.String(length=255), server_default="", nullable=False),
        sa.Column("recruiter_screen", sa.String(length=32), server_default=_NOT_STARTED, nullable=False),
        sa.Column("technical_screen", sa.String(length=32), server_default=_NOT_STARTED, nullable=False),
        sa.Column("onsite_round1", sa.String(length=32), server_default=_NOT_STARTED, nullable=False),
        sa.Column("onsite_round2", sa.String(length=32), server_default=_NOT_STARTED, nullable=False),
        sa.Column("onsite_round3", sa.String(length=32), server_default=_NOT_STARTED, nullable=False),
        sa.Column("onsite_round4", sa.String(length=32), server_default=_NOT_STARTED, nullable=False),
        sa.Column("decision", sa.String(length=32), server_default="Pending", nullable=False),
        sa.Column("notes", sa.Text(), server_default="", nullable=False),
        sa.Column("hiring_manager_notes", sa.Text(), server_default="", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_job_applications_id"), "job_applications", ["id"], unique=False)
    op.create_index(op.f("ix_job_applications_user_id"), "job_applications", ["user_id"], unique=False)
    op.create_index(op.f("ix_job_applications_company"), "job_applications", ["company"], unique=False)
    op.create_index(op.f("ix_job_applications_decision"), "job_applications", ["decision"], unique=False)

    op.create_table(
        "log_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("company_snapshot", sa.String(length=255), nullable=True),
        sa.Column("job_title_snapshot", sa.String(length=255), nullable=True),
        sa.Column("hiring_manager_snapshot", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["job_applications.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_log_entries_id"), "log_entries", ["id"], unique=False)
    op.create_index(op.f("ix_log_entries_job_id"), "log_entries", ["job_id"], unique=False)
    op.create_index(op.f("ix_log_entries_user_id"), "log_entries", ["user_id"], unique=False)
    op.create_index(op.f("ix_log_entries_action"), "log_entries", ["action"], unique=False)
    op.create_index(op.f("ix_log_entries_created_at"), "log_entries", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_log_entries_created_at"), table_name="log_entries")
    op.drop_index(op.f("ix_log_entries_action"), table_name="log_entries")
    op.drop_index(op.f("ix_log_entries_user_id"), table_name="log_entries")
    op.drop_index(op.f("ix_log_entries_job_id"), table_name="log_entries")
    op.drop_index(op.f("ix_log_entries_id"), table_name="log_entries")
    op.drop_table("log_entries")

    op.drop_index(op.f("ix_job_applications_decision"), table_name="job_applications")
    op.drop_index(op.f("ix_job_applications_company"), table_name="job_applications")
    op.drop_index(op.f("ix_job_applications_user_id"), table_name="job_applications")
    op.drop_index(op.f("ix_job_applications_id"), table_name="job_applications")
    op.drop_table("job_applications")

    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_table("users")
