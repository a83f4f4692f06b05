from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from meetpair.models.wrestler import Wrestler


class Team(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    symbol: Optional[str] = Field(default=None, max_length=8)
    # Home team only: keep each home wrestler on the mat of their first bout
    home_team_prefer_same_mat: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    wrestlers: List["Wrestler"] = Relationship(back_populates="team")


class TeamMatRule(SQLModel, table=True):
    """Which wrestlers a team wants on a given mat when it hosts a meet."""

    __table_args__ = (SAUniqueConstraint("team_id", "mat_index", name="uq_team_mat_rule"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    mat_index: int  # 1-based
    min_experience: int = Field(default=0)
    max_experience: int = Field(default=10)
    min_age: float = Field(default=0)
    max_age: float = Field(default=100)
    color: Optional[str] = Field(default=None)
