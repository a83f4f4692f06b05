from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class MeetCheckpoint(SQLModel, table=True):
    """Named snapshot of a meet's bouts and attendance that can be restored later."""

    id: Optional[int] = Field(default=None, primary_key=True)
    meet_id: int = Field(foreign_key="meet.id", index=True)
    name: str
    team_signature: str  # sorted team ids joined with "|"
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
