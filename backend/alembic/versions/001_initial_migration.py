"""Initial migration: teams, wrestlers, meets, attendance, bouts, activity log

Revision ID: 001_initial
Revises:
Create Date: 2026-01-05 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Teams and their hosting preferences
    op.create_table(
        "team",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("symbol", sa.String(length=8), nullable=True),
        sa.Column("home_team_prefer_same_mat", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "teammatrule",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("mat_index", sa.Integer(), nullable=False),
        sa.Column("min_experience", sa.Integer(), nullable=False),
        sa.Column("max_experience", sa.Integer(), nullable=False),
        sa.Column("min_age", sa.Float(), nullable=False),
        sa.Column("max_age", sa.Float(), nullable=False),
        sa.Column("color", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
        sa.UniqueConstraint("team_id", "mat_index", name="uq_team_mat_rule"),
    )
    op.create_index("ix_teammatrule_team_id", "teammatrule", ["team_id"])

    op.create_table(
        "wrestler",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("first", sa.String(), nullable=False),
        sa.Column("last", sa.String(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column("birthdate", sa.Date(), nullable=False),
        sa.Column("experience_years", sa.Integer(), nullable=False),
        sa.Column("skill", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
    )
    op.create_index("ix_wrestler_team_id", "wrestler", ["team_id"])

    # Meets with pairing settings and the single-editor lock
    op.create_table(
        "meet",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("meet_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="DRAFT"),
        sa.Column("home_team_id", sa.Integer(), nullable=True),
        sa.Column("num_mats", sa.Integer(), nullable=False),
        sa.Column("rest_gap", sa.Integer(), nullable=False),
        sa.Column("matches_per_wrestler", sa.Integer(), nullable=False),
        sa.Column("max_matches_per_wrestler", sa.Integer(), nullable=False),
        sa.Column("allow_same_team_matches", sa.Boolean(), nullable=False),
        sa.Column("first_year_only_with_first_year", sa.Boolean(), nullable=False),
        sa.Column("enforce_age_gap_check", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("enforce_weight_check", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("max_age_gap_days", sa.Integer(), nullable=False),
        sa.Column("max_weight_diff_pct", sa.Float(), nullable=False),
        sa.Column("locked_by", sa.String(), nullable=True),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.Column("lock_expires_at", sa.DateTime(), nullable=True),
        sa.Column("board_seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["home_team_id"], ["team.id"]),
    )

    op.create_table(
        "meetteam",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("meet_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["meet_id"], ["meet.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["team.id"]),
        sa.UniqueConstraint("meet_id", "team_id", name="uq_meet_team"),
    )
    op.create_index("ix_meetteam_meet_id", "meetteam", ["meet_id"])

    op.create_table(
        "meetwrestlerstatus",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("meet_id", sa.Integer(), nullable=False),
        sa.Column("wrestler_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="COMING"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["meet_id"], ["meet.id"]),
        sa.ForeignKeyConstraint(["wrestler_id"], ["wrestler.id"]),
        sa.UniqueConstraint("meet_id", "wrestler_id", name="uq_meet_wrestler_status"),
    )
    op.create_index("ix_meetwrestlerstatus_meet_id", "meetwrestlerstatus", ["meet_id"])

    # Bouts and their mat placement
    op.create_table(
        "bout",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("meet_id", sa.Integer(), nullable=False),
        sa.Column("red_id", sa.Integer(), nullable=False),
        sa.Column("green_id", sa.Integer(), nullable=False),
        sa.Column("pairing_score", sa.Float(), nullable=False),
        sa.Column("mat", sa.Integer(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=True),
        sa.Column("original_mat", sa.Integer(), nullable=True),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("source", sa.String(), nullable=False, server_default="auto"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["meet_id"], ["meet.id"]),
        sa.ForeignKeyConstraint(["red_id"], ["wrestler.id"]),
        sa.ForeignKeyConstraint(["green_id"], ["wrestler.id"]),
    )
    op.create_index("ix_bout_meet_id", "bout", ["meet_id"])

    op.create_table(
        "excludedpair",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("meet_id", sa.Integer(), nullable=False),
        sa.Column("a_id", sa.Integer(), nullable=False),
        sa.Column("b_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["meet_id"], ["meet.id"]),
        sa.ForeignKeyConstraint(["a_id"], ["wrestler.id"]),
        sa.ForeignKeyConstraint(["b_id"], ["wrestler.id"]),
        sa.UniqueConstraint("meet_id", "a_id", "b_id", name="uq_excluded_pair"),
        sa.CheckConstraint("a_id < b_id", name="ck_excluded_pair_order"),
    )
    op.create_index("ix_excludedpair_meet_id", "excludedpair", ["meet_id"])

    op.create_table(
        "meetchange",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("meet_id", sa.Integer(), nullable=False),
        sa.Column("actor", sa.String(), nullable=True),
        sa.Column("message", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["meet_id"], ["meet.id"]),
    )
    op.create_index("ix_meetchange_meet_id", "meetchange", ["meet_id"])


def downgrade() -> None:
    op.drop_index("ix_meetchange_meet_id", table_name="meetchange")
    op.drop_table("meetchange")
    op.drop_index("ix_excludedpair_meet_id", table_name="excludedpair")
    op.drop_table("excludedpair")
    op.drop_index("ix_bout_meet_id", table_name="bout")
    op.drop_table("bout")
    op.drop_index("ix_meetwrestlerstatus_meet_id", table_name="meetwrestlerstatus")
    op.drop_table("meetwrestlerstatus")
    op.drop_index("ix_meetteam_meet_id", table_name="meetteam")
    op.drop_table("meetteam")
    op.drop_table("meet")
    op.drop_index("ix_wrestler_team_id", table_name="wrestler")
    op.drop_table("wrestler")
    op.drop_index("ix_teammatrule_team_id", table_name="teammatrule")
    op.drop_table("teammatrule")
    op.drop_table("team")
