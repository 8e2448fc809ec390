"""Add manual ordering column to todos."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202502031030"
down_revision = "202501150900"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("todos", sa.Column("position", sa.Integer(), nullable=True))
    # Seed positions so existing rows keep their creation order inside each tier.
    op.execute(
        """
        UPDATE todos AS t
        SET position = ranked.rn
        FROM (
            SELECT id, ROW_NUMBER() OVER (
                PARTITION BY user_id, priority ORDER BY created_date
            ) AS rn
            FROM todos
        ) AS ranked
        WHERE t.id = ranked.id
        """
    )
    op.create_index("ix_todos_user_priority_position", "todos", ["user_id", "priority", "position"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_todos_user_priority_position", table_name="todos")
    op.drop_column("todos", "position")
