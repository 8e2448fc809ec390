"""Initial Smart Todo schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202501150900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    op.create_table(
        "todos",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("repeat_type", sa.String(length=10), nullable=False, server_default=sa.text("'none'")),
        sa.Column("repeat_interval", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("repeat_days_of_week", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("repeat_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("parent_todo_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_todo_id"], ["todos.id"], ondelete="SET NULL"),
        sa.CheckConstraint("priority IN ('high', 'medium', 'low')", name="ck_todos_priority"),
        sa.CheckConstraint(
            "repeat_type IN ('none', 'hourly', 'daily', 'weekly', 'monthly')",
            name="ck_todos_repeat_type",
        ),
        sa.CheckConstraint("repeat_interval >= 1", name="ck_todos_repeat_interval"),
    )
    op.create_index("ix_todos_user_id", "todos", ["user_id"], unique=False)
    op.create_index("ix_todos_user_priority", "todos", ["user_id", "priority"], unique=False)
    op.create_index("ix_todos_parent_todo_id", "todos", ["parent_todo_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_todos_parent_todo_id", table_name="todos")
    op.drop_index("ix_todos_user_priority", table_name="todos")
    op.drop_index("ix_todos_user_id", table_name="todos")
    op.drop_table("todos")
    op.drop_table("users")
