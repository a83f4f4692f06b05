"""
API Routes for the single-editor meet lock
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from meetpair.database import get_session
from meetpair.utils.meet_guards import get_editor_id, get_meet_or_404, lock_error_response
from meetpair.utils.meet_lock import MeetLockError, acquire_lock, clear_expired_lock, release_lock

router = APIRouter()


class LockResponse(BaseModel):
    locked: bool
    locked_by: Optional[str] = None
    lock_expires_at: Optional[datetime] = None


def _require_editor(editor_id: Optional[str]) -> str:
    if not editor_id:
        raise HTTPException(status_code=401, detail="X-Editor-Id header required")
    return editor_id


@router.get("/meets/{meet_id}/lock", response_model=LockResponse)
def get_meet_lock(meet_id: int, session: Session = Depends(get_session)):
    meet = get_meet_or_404(session, meet_id)
    clear_expired_lock(session, meet)
    return LockResponse(locked=meet.locked_by is not None, locked_by=meet.locked_by, lock_expires_at=meet.lock_expires_at)


@router.post("/meets/{meet_id}/lock", response_model=LockResponse)
def acquire_meet_lock(
    meet_id: int,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Acquire or refresh the edit lock"""
    editor = _require_editor(editor_id)
    meet = get_meet_or_404(session, meet_id)
    try:
        meet = acquire_lock(session, meet, editor)
    except MeetLockError as err:
        raise lock_error_response(err)
    return LockResponse(locked=True, locked_by=meet.locked_by, lock_expires_at=meet.lock_expires_at)


@router.delete("/meets/{meet_id}/lock", response_model=LockResponse)
def release_meet_lock(
    meet_id: int,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    editor = _require_editor(editor_id)
    meet = get_meet_or_404(session, meet_id)
    try:
        release_lock(session, meet, editor)
    except MeetLockError as err:
        raise lock_error_response(err)
    return LockResponse(locked=False)
