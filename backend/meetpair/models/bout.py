from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class Bout(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    meet_id: int = Field(foreign_key="meet.id", index=True)
    red_id: int = Field(foreign_key="wrestler.id")
    green_id: int = Field(foreign_key="wrestler.id")
    pairing_score: float = Field(default=0.0)

    # Mat placement (None until mats are assigned)
    mat: Optional[int] = Field(default=None)
    order: Optional[int] = Field(default=None)  # 1-based within the mat
    original_mat: Optional[int] = Field(default=None)  # set while moved away from its first mat
    locked: bool = Field(default=False)  # pinned: automatic reorder leaves it in place

    notes: Optional[str] = Field(default=None)
    source: str = Field(default="auto")  # "auto" | "manual"
    created_at: datetime = Field(default_factory=datetime.utcnow)
