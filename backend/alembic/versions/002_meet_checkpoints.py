"""Add meet checkpoints

Revision ID: 002_meet_checkpoints
Revises: 001_initial
Create Date: 2026-02-14 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "002_meet_checkpoints"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "meetcheckpoint",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("meet_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("team_signature", sa.String(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["meet_id"], ["meet.id"]),
    )
    op.create_index("ix_meetcheckpoint_meet_id", "meetcheckpoint", ["meet_id"])


def downgrade() -> None:
    op.drop_index("ix_meetcheckpoint_meet_id", table_name="meetcheckpoint")
    op.drop_table("meetcheckpoint")
