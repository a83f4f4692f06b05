"""
API Routes for meets: settings, publishing, attendance and activity log
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlmodel import Session, select

from meetpair.config import (
    DEFAULT_MAT_COUNT,
    DEFAULT_MAX_AGE_GAP_DAYS,
    DEFAULT_MAX_WEIGHT_DIFF_PCT,
    DEFAULT_REST_GAP,
    MAX_MATCHES_PER_WRESTLER,
    MAX_MATS,
)
from meetpair.database import get_session
from meetpair.models.meet import MEET_STATUS_PUBLISHED, Meet, MeetTeam
from meetpair.models.meet_change import MeetChange
from meetpair.models.meet_wrestler_status import ATTENDANCE_STATUSES, INACTIVE_STATUSES, MeetWrestlerStatus
from meetpair.models.team import Team
from meetpair.services.candidates import bout_counts
from meetpair.utils.bout_store import (
    fit_bouts_to_mats,
    load_bouts,
    load_meet_wrestlers,
    load_statuses,
    meet_team_ids,
    record_change,
)
from meetpair.utils.meet_guards import get_editor_id, get_meet_or_404, require_editable_meet

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class MeetSettings(BaseModel):
    num_mats: int = Field(default=DEFAULT_MAT_COUNT, ge=1, le=MAX_MATS)
    rest_gap: int = Field(default=DEFAULT_REST_GAP, ge=0)
    matches_per_wrestler: int = Field(default=2, ge=1)
    max_matches_per_wrestler: int = Field(default=MAX_MATCHES_PER_WRESTLER, ge=1, le=MAX_MATCHES_PER_WRESTLER)
    allow_same_team_matches: bool = False
    first_year_only_with_first_year: bool = True
    enforce_age_gap_check: bool = True
    enforce_weight_check: bool = True
    max_age_gap_days: int = Field(default=DEFAULT_MAX_AGE_GAP_DAYS, ge=0)
    max_weight_diff_pct: float = Field(default=DEFAULT_MAX_WEIGHT_DIFF_PCT, ge=0)

    @model_validator(mode="after")
    def validate_match_counts(self):
        if self.max_matches_per_wrestler < self.matches_per_wrestler:
            raise ValueError("max_matches_per_wrestler must be at least matches_per_wrestler")
        return self


class MeetCreate(MeetSettings):
    name: str = Field(min_length=1)
    meet_date: date
    team_ids: List[int] = Field(min_length=1)
    home_team_id: Optional[int] = None

    @model_validator(mode="after")
    def validate_home_team(self):
        if self.home_team_id is not None and self.home_team_id not in self.team_ids:
            raise ValueError("home_team_id must be one of team_ids")
        return self


class MeetSettingsUpdate(BaseModel):
    num_mats: Optional[int] = Field(default=None, ge=1, le=MAX_MATS)
    rest_gap: Optional[int] = Field(default=None, ge=0)
    matches_per_wrestler: Optional[int] = Field(default=None, ge=1)
    max_matches_per_wrestler: Optional[int] = Field(default=None, ge=1, le=MAX_MATCHES_PER_WRESTLER)
    allow_same_team_matches: Optional[bool] = None
    first_year_only_with_first_year: Optional[bool] = None
    enforce_age_gap_check: Optional[bool] = None
    enforce_weight_check: Optional[bool] = None
    max_age_gap_days: Optional[int] = Field(default=None, ge=0)
    max_weight_diff_pct: Optional[float] = Field(default=None, ge=0)


class MeetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    meet_date: date
    status: str
    home_team_id: Optional[int] = None
    team_ids: List[int] = []
    num_mats: int
    rest_gap: int
    matches_per_wrestler: int
    max_matches_per_wrestler: int
    allow_same_team_matches: bool
    first_year_only_with_first_year: bool
    enforce_age_gap_check: bool
    enforce_weight_check: bool
    max_age_gap_days: int
    max_weight_diff_pct: float
    locked_by: Optional[str] = None
    lock_expires_at: Optional[datetime] = None


class AttendanceUpdate(BaseModel):
    status: str

    @model_validator(mode="after")
    def validate_status(self):
        if self.status not in ATTENDANCE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(ATTENDANCE_STATUSES)}")
        return self


class MeetWrestlerResponse(BaseModel):
    id: int
    team_id: int
    first: str
    last: str
    weight: float
    birthdate: date
    experience_years: int
    skill: int
    status: str
    bouts: int


class MeetChangeResponse(BaseModel):
    id: int
    actor: Optional[str] = None
    message: str
    created_at: str


def _meet_response(session: Session, meet: Meet) -> MeetResponse:
    response = MeetResponse.model_validate(meet)
    response.team_ids = meet_team_ids(session, meet.id)
    return response


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/meets", response_model=MeetResponse, status_code=201)
def create_meet(data: MeetCreate, session: Session = Depends(get_session)):
    """Create a draft meet for the given teams"""
    team_ids = list(dict.fromkeys(data.team_ids))
    for team_id in team_ids:
        if not session.get(Team, team_id):
            raise HTTPException(status_code=404, detail=f"Team {team_id} not found")

    meet = Meet(**data.model_dump(exclude={"team_ids"}))
    session.add(meet)
    session.flush()
    for team_id in team_ids:
        session.add(MeetTeam(meet_id=meet.id, team_id=team_id))
    session.commit()
    session.refresh(meet)
    return _meet_response(session, meet)


@router.get("/meets/{meet_id}", response_model=MeetResponse)
def get_meet(meet_id: int, session: Session = Depends(get_session)):
    return _meet_response(session, get_meet_or_404(session, meet_id))


@router.patch("/meets/{meet_id}/settings", response_model=MeetResponse)
def update_meet_settings(
    meet_id: int,
    data: MeetSettingsUpdate,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Update pairing and mat settings of a draft meet"""
    meet = require_editable_meet(session, meet_id, editor_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)

    target = updates.get("matches_per_wrestler", meet.matches_per_wrestler)
    cap = updates.get("max_matches_per_wrestler", meet.max_matches_per_wrestler)
    if cap < target:
        raise HTTPException(status_code=400, detail="max_matches_per_wrestler must be at least matches_per_wrestler")
    if "max_matches_per_wrestler" in updates:
        counts = bout_counts(load_bouts(session, meet_id))
        over = sorted(wid for wid, n in counts.items() if n > cap)
        if over:
            raise HTTPException(
                status_code=400,
                detail=f"wrestler {over[0]} already has {counts[over[0]]} bouts, more than max_matches_per_wrestler {cap}",
            )

    shrinks_mats = updates.get("num_mats", meet.num_mats) < meet.num_mats
    for key, value in updates.items():
        setattr(meet, key, value)
    meet.updated_at = datetime.utcnow()
    session.add(meet)
    if updates:
        record_change(session, meet.id, editor_id, f"Updated settings: {', '.join(sorted(updates))}.")
    if shrinks_mats:
        fit_bouts_to_mats(session, meet)
    else:
        session.commit()
    session.refresh(meet)
    return _meet_response(session, meet)


@router.post("/meets/{meet_id}/publish", response_model=MeetResponse)
def publish_meet(
    meet_id: int,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Publish a meet; its bouts and mats are read-only afterwards"""
    meet = require_editable_meet(session, meet_id, editor_id)
    meet.status = MEET_STATUS_PUBLISHED
    meet.updated_at = datetime.utcnow()
    session.add(meet)
    record_change(session, meet.id, editor_id, "Published meet.")
    session.commit()
    session.refresh(meet)
    return _meet_response(session, meet)


@router.get("/meets/{meet_id}/wrestlers", response_model=List[MeetWrestlerResponse])
def get_meet_wrestlers(meet_id: int, include_absent: bool = False, session: Session = Depends(get_session)):
    """Roster of the meet with attendance status and current bout counts"""
    get_meet_or_404(session, meet_id)
    statuses = load_statuses(session, meet_id)
    counts = bout_counts(load_bouts(session, meet_id))

    rows = []
    for w in load_meet_wrestlers(session, meet_id):
        status = statuses.get(w.id, "COMING")
        if status in INACTIVE_STATUSES and not include_absent:
            continue
        rows.append(
            MeetWrestlerResponse(
                id=w.id,
                team_id=w.team_id,
                first=w.first,
                last=w.last,
                weight=w.weight,
                birthdate=w.birthdate,
                experience_years=w.experience_years,
                skill=w.skill,
                status=status,
                bouts=counts.get(w.id, 0),
            )
        )
    return rows


@router.put("/meets/{meet_id}/wrestlers/{wrestler_id}/status", response_model=MeetWrestlerResponse)
def set_wrestler_status(
    meet_id: int,
    wrestler_id: int,
    data: AttendanceUpdate,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Set attendance. NOT_COMING / ABSENT hides the wrestler's bouts without deleting them."""
    meet = require_editable_meet(session, meet_id, editor_id)
    wrestler = next((w for w in load_meet_wrestlers(session, meet_id) if w.id == wrestler_id), None)
    if wrestler is None:
        raise HTTPException(status_code=404, detail=f"Wrestler {wrestler_id} is not on a team in this meet")

    row = session.exec(
        select(MeetWrestlerStatus).where(
            MeetWrestlerStatus.meet_id == meet_id,
            MeetWrestlerStatus.wrestler_id == wrestler_id,
        )
    ).first()
    if row is None:
        row = MeetWrestlerStatus(meet_id=meet_id, wrestler_id=wrestler_id)
    row.status = data.status
    row.updated_at = datetime.utcnow()
    session.add(row)
    record_change(session, meet.id, editor_id, f"Set {wrestler.first} {wrestler.last} to {data.status}.")
    session.commit()

    counts = bout_counts(load_bouts(session, meet_id))
    return MeetWrestlerResponse(
        id=wrestler.id,
        team_id=wrestler.team_id,
        first=wrestler.first,
        last=wrestler.last,
        weight=wrestler.weight,
        birthdate=wrestler.birthdate,
        experience_years=wrestler.experience_years,
        skill=wrestler.skill,
        status=data.status,
        bouts=counts.get(wrestler.id, 0),
    )


@router.get("/meets/{meet_id}/changes", response_model=List[MeetChangeResponse])
def get_meet_changes(meet_id: int, session: Session = Depends(get_session)):
    get_meet_or_404(session, meet_id)
    changes = session.exec(
        select(MeetChange).where(MeetChange.meet_id == meet_id).order_by(MeetChange.id)
    ).all()
    return [
        MeetChangeResponse(id=c.id, actor=c.actor, message=c.message, created_at=c.created_at.isoformat())
        for c in changes
    ]
