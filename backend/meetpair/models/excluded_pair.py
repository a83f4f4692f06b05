from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, SQLModel


class ExcludedPair(SQLModel, table=True):
    """A pairing a coach rejected for one meet; a_id < b_id."""

    __table_args__ = (
        SAUniqueConstraint("meet_id", "a_id", "b_id", name="uq_excluded_pair"),
        CheckConstraint("a_id < b_id", name="ck_excluded_pair_order"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    meet_id: int = Field(foreign_key="meet.id", index=True)
    a_id: int = Field(foreign_key="wrestler.id")
    b_id: int = Field(foreign_key="wrestler.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
