"""create scores table

Revision ID: a7c3e9d1f2b4
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a7c3e9d1f2b4"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if "scores" not in inspector.get_table_names():
        op.create_table(
            "scores",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("difficulty", sa.String(16), nullable=False),
            sa.Column("time_seconds", sa.Integer(), nullable=False),
            sa.Column("player_name", sa.String(64), nullable=False),
            sa.Column("level_id", sa.String(32), nullable=True),
            sa.Column("level_seed", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True, server_default=sa.func.now()),
        )

    inspector = sa.inspect(bind)
    indexes = {index["name"] for index in inspector.get_indexes("scores")}
    if "ix_scores_difficulty_time" not in indexes:
        op.create_index("ix_scores_difficulty_time", "scores", ["difficulty", "time_seconds"])


def downgrade() -> None:
    op.drop_index("ix_scores_difficulty_time", table_name="scores")
    op.drop_table("scores")
