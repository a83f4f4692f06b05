from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

from meetpair.config import (
    DEFAULT_MAT_COUNT,
    DEFAULT_MAX_AGE_GAP_DAYS,
    DEFAULT_MAX_WEIGHT_DIFF_PCT,
    DEFAULT_REST_GAP,
)

MEET_STATUS_DRAFT = "DRAFT"
MEET_STATUS_PUBLISHED = "PUBLISHED"
MEET_STATUSES = (MEET_STATUS_DRAFT, MEET_STATUS_PUBLISHED)


class Meet(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    meet_date: date
    status: str = Field(default=MEET_STATUS_DRAFT)  # "DRAFT" | "PUBLISHED"
    home_team_id: Optional[int] = Field(default=None, foreign_key="team.id")

    # Mat settings
    num_mats: int = Field(default=DEFAULT_MAT_COUNT)
    rest_gap: int = Field(default=DEFAULT_REST_GAP)

    # Pairing settings
    matches_per_wrestler: int = Field(default=2)
    max_matches_per_wrestler: int = Field(default=5)
    allow_same_team_matches: bool = Field(default=False)
    first_year_only_with_first_year: bool = Field(default=True)
    enforce_age_gap_check: bool = Field(default=True)
    enforce_weight_check: bool = Field(default=True)
    max_age_gap_days: int = Field(default=DEFAULT_MAX_AGE_GAP_DAYS)
    max_weight_diff_pct: float = Field(default=DEFAULT_MAX_WEIGHT_DIFF_PCT)

    # Single-editor lock
    locked_by: Optional[str] = Field(default=None)
    locked_at: Optional[datetime] = Field(default=None)
    lock_expires_at: Optional[datetime] = Field(default=None)

    # Highest autosave sequence number applied to the mat board
    board_seq: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class MeetTeam(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("meet_id", "team_id", name="uq_meet_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    meet_id: int = Field(foreign_key="meet.id", index=True)
    team_id: int = Field(foreign_key="team.id")
