"""
Meet Safety Guards

Reusable guards for mutation endpoints:
- Meet must exist
- Only DRAFT meets may change
- The caller must hold the meet lock
"""

from typing import Optional

from fastapi import Header, HTTPException
from sqlmodel import Session

from meetpair.models.meet import MEET_STATUS_DRAFT, Meet
from meetpair.utils.meet_lock import MeetLockError, check_lock


def get_editor_id(x_editor_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Editor identity supplied by the surrounding application."""
    return x_editor_id.strip() if x_editor_id and x_editor_id.strip() else None


def get_meet_or_404(session: Session, meet_id: int) -> Meet:
    meet = session.get(Meet, meet_id)
    if not meet:
        raise HTTPException(status_code=404, detail="Meet not found")
    return meet


def lock_error_response(err: MeetLockError) -> HTTPException:
    return HTTPException(
        status_code=409,
        detail={
            "error": err.code,
            "locked_by": err.locked_by,
            "lock_expires_at": err.lock_expires_at.isoformat() if err.lock_expires_at else None,
        },
    )


def require_draft_meet(session: Session, meet_id: int) -> Meet:
    """
    Require that a meet is a draft, otherwise raise 400.

    Raises:
        HTTPException 404: Meet not found
        HTTPException 400: Meet is not draft
    """
    meet = get_meet_or_404(session, meet_id)
    if meet.status != MEET_STATUS_DRAFT:
        raise HTTPException(
            status_code=400,
            detail=f"MEET_NOT_DRAFT: Cannot modify meet with status '{meet.status}'. Only draft meets can be modified.",
        )
    return meet


def require_editable_meet(session: Session, meet_id: int, editor_id: Optional[str]) -> Meet:
    """
    Gate for every bout / mat mutation: draft meet and caller holds the lock.

    Raises:
        HTTPException 404: Meet not found
        HTTPException 400: Meet is not draft
        HTTPException 409: Lock missing or held by someone else
    """
    meet = require_draft_meet(session, meet_id)
    try:
        check_lock(session, meet, editor_id)
    except MeetLockError as err:
        raise lock_error_response(err)
    return meet
