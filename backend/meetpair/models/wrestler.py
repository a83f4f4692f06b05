from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from meetpair.models.team import Team


class Wrestler(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    first: str
    last: str
    weight: float
    birthdate: date
    experience_years: int = Field(default=0, ge=0)
    skill: int = Field(default=0, ge=0, le=5)
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    team: "Team" = Relationship(back_populates="wrestlers")
