from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel

STATUS_COMING = "COMING"
STATUS_NOT_COMING = "NOT_COMING"
STATUS_LATE = "LATE"
STATUS_EARLY = "EARLY"
STATUS_ABSENT = "ABSENT"

ATTENDANCE_STATUSES = (STATUS_COMING, STATUS_NOT_COMING, STATUS_LATE, STATUS_EARLY, STATUS_ABSENT)

# Wrestlers with these statuses are hidden from pairing and the mat board.
INACTIVE_STATUSES = frozenset({STATUS_NOT_COMING, STATUS_ABSENT})


class MeetWrestlerStatus(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("meet_id", "wrestler_id", name="uq_meet_wrestler_status"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    meet_id: int = Field(foreign_key="meet.id", index=True)
    wrestler_id: int = Field(foreign_key="wrestler.id")
    status: str = Field(default=STATUS_COMING)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
