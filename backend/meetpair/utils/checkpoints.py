"""
Meet checkpoints: named snapshots of every bout and attendance status.

Applying a checkpoint replaces the meet's bouts and statuses in one
transaction. Wrestlers who have since left the roster (inactive, or no
longer on a meet team) are dropped from the restored data, and bouts on
mats above the current mat count are moved onto the last mat.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Literal, Optional, Set, Tuple

from pydantic import BaseModel, ValidationError, field_validator
from sqlmodel import Session, select

from meetpair.models.bout import Bout
from meetpair.models.meet import Meet
from meetpair.models.meet_checkpoint import MeetCheckpoint
from meetpair.models.meet_wrestler_status import ATTENDANCE_STATUSES, STATUS_COMING, MeetWrestlerStatus
from meetpair.services.eligibility import normalize_pair
from meetpair.utils.bout_store import (
    delete_all_bouts,
    fit_bouts_to_mats,
    load_bouts,
    load_meet_wrestlers,
    load_statuses,
    meet_team_ids,
    record_change,
)

logger = logging.getLogger(__name__)

CHECKPOINT_VERSION = 1


class CheckpointError(Exception):
    """Checkpoint cannot be applied (bad payload)"""
    pass


class CheckpointMismatchError(CheckpointError):
    """Checkpoint belongs to another meet or another set of teams"""
    pass


# ============================================================================
# Payload
# ============================================================================


class CheckpointAttendance(BaseModel):
    wrestler_id: int
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in ATTENDANCE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(ATTENDANCE_STATUSES)}")
        return v


class CheckpointBout(BaseModel):
    red_id: int
    green_id: int
    pairing_score: float
    mat: Optional[int] = None
    order: Optional[int] = None
    original_mat: Optional[int] = None
    locked: bool = False
    source: str = "auto"
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class CheckpointPayload(BaseModel):
    version: Literal[1]
    name: str
    created_at: datetime
    meet_id: int
    meet_name: str
    meet_date: date
    team_ids: List[int]
    attendance: List[CheckpointAttendance]
    bouts: List[CheckpointBout]


@dataclass
class ApplyResult:
    bouts: int
    attendance: int


def team_signature(team_ids: Iterable[int]) -> str:
    return "|".join(str(t) for t in sorted(team_ids))


def checkpoint_filename(payload: dict, name: str) -> str:
    """Download file name: <meet>_<checkpoint>_<date>.json"""

    def safe(value: str, fallback: str) -> str:
        return re.sub(r"[^a-zA-Z0-9_-]+", "_", value)[:64] or fallback

    meet_name = payload.get("meet_name") if isinstance(payload.get("meet_name"), str) else "meet"
    meet_date = payload.get("meet_date") if isinstance(payload.get("meet_date"), str) else "checkpoint"
    return f"{safe(meet_name, 'meet')}_{safe(name, 'checkpoint')}_{meet_date[:10]}.json"


def build_checkpoint_payload(session: Session, meet: Meet, name: str) -> CheckpointPayload:
    statuses = load_statuses(session, meet.id)
    wrestlers = sorted(load_meet_wrestlers(session, meet.id), key=lambda w: (w.team_id, w.last, w.first, w.id))
    return CheckpointPayload(
        version=CHECKPOINT_VERSION,
        name=name,
        created_at=datetime.utcnow(),
        meet_id=meet.id,
        meet_name=meet.name,
        meet_date=meet.meet_date,
        team_ids=meet_team_ids(session, meet.id),
        attendance=[CheckpointAttendance(wrestler_id=w.id, status=statuses.get(w.id, STATUS_COMING)) for w in wrestlers],
        bouts=[
            CheckpointBout(
                red_id=b.red_id,
                green_id=b.green_id,
                pairing_score=b.pairing_score,
                mat=b.mat,
                order=b.order,
                original_mat=b.original_mat,
                locked=b.locked,
                source=b.source,
                notes=b.notes,
                created_at=b.created_at,
            )
            for b in load_bouts(session, meet.id)
        ],
    )


def create_checkpoint(session: Session, meet: Meet, name: str, actor: Optional[str]) -> MeetCheckpoint:
    payload = build_checkpoint_payload(session, meet, name)
    checkpoint = MeetCheckpoint(
        meet_id=meet.id,
        name=name,
        team_signature=team_signature(payload.team_ids),
        payload=payload.model_dump(mode="json"),
        created_by=actor,
    )
    session.add(checkpoint)
    record_change(session, meet.id, actor, f"Saved checkpoint: {name}.")
    session.commit()
    session.refresh(checkpoint)
    logger.info("Meet %s: saved checkpoint %s with %d bouts", meet.id, checkpoint.id, len(payload.bouts))
    return checkpoint


# ============================================================================
# Apply
# ============================================================================


def _restorable(payload: CheckpointPayload, roster_ids: Set[int]) -> Tuple[List[CheckpointAttendance], List[CheckpointBout]]:
    attendance = [a for a in payload.attendance if a.wrestler_id in roster_ids]
    bouts: List[CheckpointBout] = []
    seen: Set[Tuple[int, int]] = set()
    for bout in payload.bouts:
        if bout.red_id == bout.green_id or bout.red_id not in roster_ids or bout.green_id not in roster_ids:
            continue
        key = normalize_pair(bout.red_id, bout.green_id)
        if key in seen:
            continue
        seen.add(key)
        bouts.append(bout)
    return attendance, bouts


def apply_checkpoint(session: Session, meet: Meet, checkpoint: MeetCheckpoint, actor: Optional[str]) -> ApplyResult:
    """
    Replace every bout and attendance status of *meet* with the checkpoint's.

    Raises:
        CheckpointError: the stored payload does not parse.
        CheckpointMismatchError: the checkpoint is for another meet or the
            meet's teams changed since it was saved.
        Nothing is written in either case.
    """
    try:
        payload = CheckpointPayload.model_validate(checkpoint.payload)
    except ValidationError:
        raise CheckpointError("Checkpoint data is invalid.")
    if payload.meet_id != meet.id:
        raise CheckpointMismatchError("Checkpoint does not match this meet.")
    signature = team_signature(meet_team_ids(session, meet.id))
    if signature != checkpoint.team_signature or signature != team_signature(payload.team_ids):
        raise CheckpointMismatchError("Checkpoint teams do not match this meet.")

    roster_ids = {w.id for w in load_meet_wrestlers(session, meet.id)}
    attendance, bouts = _restorable(payload, roster_ids)

    try:
        for row in session.exec(select(MeetWrestlerStatus).where(MeetWrestlerStatus.meet_id == meet.id)).all():
            session.delete(row)
        # flushes the status deletes too, before the replacement rows go in
        delete_all_bouts(session, meet.id)

        for entry in attendance:
            if entry.status != STATUS_COMING:
                session.add(MeetWrestlerStatus(meet_id=meet.id, wrestler_id=entry.wrestler_id, status=entry.status))
        for b in bouts:
            session.add(
                Bout(
                    meet_id=meet.id,
                    red_id=b.red_id,
                    green_id=b.green_id,
                    pairing_score=b.pairing_score,
                    mat=b.mat,
                    order=b.order,
                    original_mat=b.original_mat,
                    locked=b.locked,
                    source=b.source,
                    notes=b.notes,
                    created_at=b.created_at or datetime.utcnow(),
                )
            )
        session.flush()
        record_change(session, meet.id, actor, f"Applied checkpoint: {checkpoint.name}.")
        fit_bouts_to_mats(session, meet)
    except Exception:
        session.rollback()
        raise

    logger.info("Meet %s: applied checkpoint %s (%d bouts, %d statuses)", meet.id, checkpoint.id, len(bouts), len(attendance))
    return ApplyResult(bouts=len(bouts), attendance=len(attendance))
