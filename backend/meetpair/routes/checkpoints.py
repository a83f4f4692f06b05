"""
API Routes for meet checkpoints: save, list, download, delete and restore
"""

import json
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from meetpair.database import get_session
from meetpair.models.meet_checkpoint import MeetCheckpoint
from meetpair.utils.checkpoints import (
    CheckpointError,
    CheckpointMismatchError,
    apply_checkpoint,
    checkpoint_filename,
    create_checkpoint,
)
from meetpair.utils.meet_guards import get_editor_id, get_meet_or_404, require_editable_meet

router = APIRouter()


class CheckpointCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class CheckpointSummary(BaseModel):
    id: int
    name: str
    created_by: Optional[str] = None
    created_at: datetime
    bouts: int


class ApplyCheckpointResponse(BaseModel):
    applied: bool
    bouts: int
    attendance: int


def _summary(checkpoint: MeetCheckpoint) -> CheckpointSummary:
    return CheckpointSummary(
        id=checkpoint.id,
        name=checkpoint.name,
        created_by=checkpoint.created_by,
        created_at=checkpoint.created_at,
        bouts=len((checkpoint.payload or {}).get("bouts", [])),
    )


def _get_checkpoint_or_404(session: Session, meet_id: int, checkpoint_id: int) -> MeetCheckpoint:
    checkpoint = session.get(MeetCheckpoint, checkpoint_id)
    if not checkpoint or checkpoint.meet_id != meet_id:
        raise HTTPException(status_code=404, detail="Checkpoint not found")
    return checkpoint


@router.get("/meets/{meet_id}/checkpoints", response_model=List[CheckpointSummary])
def list_checkpoints(meet_id: int, session: Session = Depends(get_session)):
    """Checkpoints of a meet, newest first"""
    get_meet_or_404(session, meet_id)
    rows = session.exec(
        select(MeetCheckpoint)
        .where(MeetCheckpoint.meet_id == meet_id)
        .order_by(MeetCheckpoint.created_at.desc(), MeetCheckpoint.id.desc())
    ).all()
    return [_summary(row) for row in rows]


@router.post("/meets/{meet_id}/checkpoints", response_model=CheckpointSummary, status_code=201)
def save_checkpoint(
    meet_id: int,
    data: CheckpointCreate,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Snapshot every bout and attendance status of the meet"""
    meet = get_meet_or_404(session, meet_id)
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Checkpoint name required.")
    return _summary(create_checkpoint(session, meet, name, editor_id))


@router.get("/meets/{meet_id}/checkpoints/{checkpoint_id}")
def get_checkpoint(meet_id: int, checkpoint_id: int, download: bool = False, session: Session = Depends(get_session)):
    """Stored checkpoint payload; download=true serves it as a JSON file"""
    checkpoint = _get_checkpoint_or_404(session, meet_id, checkpoint_id)
    payload = checkpoint.payload or {}
    if not download:
        return payload
    return Response(
        content=json.dumps(payload, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{checkpoint_filename(payload, checkpoint.name)}"'},
    )


@router.delete("/meets/{meet_id}/checkpoints/{checkpoint_id}", status_code=204)
def delete_checkpoint(meet_id: int, checkpoint_id: int, session: Session = Depends(get_session)):
    checkpoint = _get_checkpoint_or_404(session, meet_id, checkpoint_id)
    session.delete(checkpoint)
    session.commit()
    return None


@router.post("/meets/{meet_id}/checkpoints/{checkpoint_id}/apply", response_model=ApplyCheckpointResponse)
def restore_checkpoint(
    meet_id: int,
    checkpoint_id: int,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Replace the meet's bouts and attendance with the checkpoint's"""
    meet = require_editable_meet(session, meet_id, editor_id)
    checkpoint = _get_checkpoint_or_404(session, meet_id, checkpoint_id)
    try:
        result = apply_checkpoint(session, meet, checkpoint, editor_id)
    except CheckpointMismatchError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except CheckpointError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ApplyCheckpointResponse(applied=True, bouts=result.bouts, attendance=result.attendance)
