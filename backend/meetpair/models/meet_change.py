from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class MeetChange(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    meet_id: int = Field(foreign_key="meet.id", index=True)
    actor: Optional[str] = None
    message: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
