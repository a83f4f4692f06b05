"""
API Routes for pairing: candidates, bulk generation, manual bouts, exclusions
"""

import logging
import random
from dataclasses import replace
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlmodel import Session, select

from meetpair.config import CANDIDATE_LIMIT_DEFAULT, CANDIDATE_LIMIT_MAX, MAX_MATCHES_PER_WRESTLER
from meetpair.database import get_session
from meetpair.models.bout import Bout
from meetpair.models.excluded_pair import ExcludedPair
from meetpair.models.meet_wrestler_status import INACTIVE_STATUSES
from meetpair.services.candidates import bout_counts, find_candidates
from meetpair.services.conflict_optimizer import reorder_board
from meetpair.services.eligibility import ineligibility_reason, normalize_pair
from meetpair.services.mat_assignment import append_to_mats, assign_mats
from meetpair.services.pairing_generator import NewBout, generate_pairings
from meetpair.services.pairing_score import score_pair
from meetpair.utils.bout_store import (
    BoutStoreValidationError,
    create_bouts,
    delete_all_bouts,
    delete_bout,
    hidden_wrestler_ids,
    load_board,
    load_bouts,
    load_excluded,
    load_mat_rules,
    load_roster,
    load_statuses,
    record_change,
    rules_for_meet,
    save_board,
    split_visible,
    to_bout_ref,
)
from meetpair.utils.meet_guards import get_editor_id, get_meet_or_404, require_editable_meet

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class CandidateResponse(BaseModel):
    wrestler_id: int
    team_id: int
    weight: float
    score: float
    weight_diff: float
    weight_pct: float
    age_gap_days: int
    experience_gap: int
    skill_gap: int
    bouts: int


class CandidateListResponse(BaseModel):
    wrestler_id: int
    candidates: List[CandidateResponse]


class GenerateRequest(BaseModel):
    clear_existing: bool = False
    reorder: bool = True
    seed: Optional[int] = None
    # one-off overrides of the meet's stored settings
    matches_per_wrestler: Optional[int] = Field(default=None, ge=1)
    max_matches_per_wrestler: Optional[int] = Field(default=None, ge=1, le=MAX_MATCHES_PER_WRESTLER)
    allow_same_team_matches: Optional[bool] = None
    first_year_only_with_first_year: Optional[bool] = None
    enforce_age_gap_check: Optional[bool] = None
    enforce_weight_check: Optional[bool] = None
    max_age_gap_days: Optional[int] = Field(default=None, ge=0)
    max_weight_diff_pct: Optional[float] = Field(default=None, ge=0)


class UnderTargetEntry(BaseModel):
    wrestler_id: int
    bouts: int


class GenerateResponse(BaseModel):
    created: int
    deleted: int
    total_wrestlers: int
    target_matches: int
    max_matches: int
    under_target_count: int
    under_target: List[UnderTargetEntry]


class AddBoutRequest(BaseModel):
    red_id: int
    green_id: int
    force: bool = False

    @model_validator(mode="after")
    def validate_distinct(self):
        if self.red_id == self.green_id:
            raise ValueError("red_id and green_id must be different wrestlers")
        return self


class BoutResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    meet_id: int
    red_id: int
    green_id: int
    pairing_score: float
    mat: Optional[int] = None
    order: Optional[int] = None
    original_mat: Optional[int] = None
    locked: bool
    notes: Optional[str] = None
    source: str


class BoutListResponse(BaseModel):
    bouts: List[BoutResponse]
    hidden_bout_ids: List[int]


class ExcludedPairRequest(BaseModel):
    a_id: int
    b_id: int

    @model_validator(mode="after")
    def validate_distinct(self):
        if self.a_id == self.b_id:
            raise ValueError("a_id and b_id must be different wrestlers")
        return self


class ExcludedPairResponse(BaseModel):
    a_id: int
    b_id: int


# ============================================================================
# Candidates
# ============================================================================


@router.get("/meets/{meet_id}/candidates", response_model=CandidateListResponse)
def get_candidates(
    meet_id: int,
    wrestler_id: int,
    limit: int = Query(default=CANDIDATE_LIMIT_DEFAULT, ge=1, le=CANDIDATE_LIMIT_MAX),
    session: Session = Depends(get_session),
):
    """Ranked legal opponents for one wrestler; empty when there is nothing to suggest"""
    meet = get_meet_or_404(session, meet_id)
    ranked = find_candidates(
        wrestler_id,
        load_roster(session, meet_id),
        load_bouts(session, meet_id),
        rules_for_meet(meet),
        limit=limit,
        excluded=load_excluded(session, meet_id),
    )
    return CandidateListResponse(
        wrestler_id=wrestler_id,
        candidates=[
            CandidateResponse(
                wrestler_id=c.opponent.id,
                team_id=c.opponent.team_id,
                weight=c.opponent.weight,
                score=c.score,
                weight_diff=c.details.weight_diff,
                weight_pct=c.details.weight_pct,
                age_gap_days=c.details.age_gap_days,
                experience_gap=c.details.experience_gap,
                skill_gap=c.details.skill_gap,
                bouts=c.opponent_bouts,
            )
            for c in ranked
        ],
    )


# ============================================================================
# Bulk generation
# ============================================================================


@router.post("/meets/{meet_id}/pairings/generate", response_model=GenerateResponse)
def generate_meet_pairings(
    meet_id: int,
    data: Optional[GenerateRequest] = None,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """
    Generate bouts for every attending wrestler, then place them on mats.

    With clear_existing every bout of the meet is deleted first and all mats
    are laid out from scratch; otherwise new bouts are appended after the
    current mat orders.
    """
    data = data or GenerateRequest()
    meet = require_editable_meet(session, meet_id, editor_id)

    overrides = data.model_dump(exclude={"clear_existing", "reorder", "seed"}, exclude_none=True)
    if overrides.get("max_matches_per_wrestler", 0) > meet.max_matches_per_wrestler:
        raise HTTPException(
            status_code=400,
            detail=f"max_matches_per_wrestler cannot exceed the meet's cap of {meet.max_matches_per_wrestler}",
        )
    rules = replace(rules_for_meet(meet), **overrides)
    if rules.max_matches_per_wrestler < rules.matches_per_wrestler:
        raise HTTPException(status_code=400, detail="max_matches_per_wrestler must be at least matches_per_wrestler")

    roster = load_roster(session, meet_id)
    existing = load_bouts(session, meet_id)
    result = generate_pairings(
        roster, existing, rules, excluded=load_excluded(session, meet_id), clear_existing=data.clear_existing
    )

    deleted = 0
    try:
        if data.clear_existing:
            deleted = delete_all_bouts(session, meet_id)
        created = create_bouts(session, meet, result.bouts, source="auto")
    except BoutStoreValidationError as e:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    wrestlers = {w.id: w for w in roster}
    mat_rules, prefer_same_mat = load_mat_rules(session, meet)
    if data.clear_existing:
        visible, _ = split_visible(load_bouts(session, meet_id), hidden_wrestler_ids(session, meet_id))
        board = assign_mats(
            [to_bout_ref(b) for b in visible], wrestlers, meet.num_mats, meet.meet_date,
            mat_rules, meet.home_team_id, prefer_same_mat,
        )
    else:
        board = load_board(session, meet)
        append_to_mats(
            board, [to_bout_ref(b) for b in created], wrestlers, meet.meet_date,
            mat_rules, meet.home_team_id, prefer_same_mat,
        )

    if data.reorder:
        reorder_board(board, meet.rest_gap, load_statuses(session, meet_id), random.Random(data.seed))

    record_change(
        session, meet.id, editor_id,
        f"Generated {result.created} bouts" + (f" (cleared {deleted})." if data.clear_existing else "."),
    )
    save_board(session, meet, board, reset_original_mat=data.clear_existing)

    return GenerateResponse(
        created=result.created,
        deleted=deleted,
        total_wrestlers=result.total_wrestlers,
        target_matches=result.target_matches,
        max_matches=result.max_matches,
        under_target_count=result.under_target_count,
        under_target=[UnderTargetEntry(wrestler_id=wid, bouts=n) for wid, n in sorted(result.under_target.items())],
    )


# ============================================================================
# Manual bouts
# ============================================================================


@router.post("/meets/{meet_id}/pairings/add", response_model=BoutResponse, status_code=201)
def add_bout(
    meet_id: int,
    data: AddBoutRequest,
    response: Response,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """
    Add one bout chosen by the editor.

    The pair must not already wrestle (the existing bout is returned) and
    neither wrestler may be at the maximum number of bouts. Eligibility rules
    and excluded pairs are enforced unless force is set.
    """
    meet = require_editable_meet(session, meet_id, editor_id)
    roster = {w.id: w for w in load_roster(session, meet_id)}
    red = roster.get(data.red_id)
    green = roster.get(data.green_id)
    if red is None or green is None:
        missing = data.red_id if red is None else data.green_id
        raise HTTPException(status_code=404, detail=f"Wrestler {missing} is not on a team in this meet")
    for w in (red, green):
        if w.status in INACTIVE_STATUSES:
            raise HTTPException(status_code=400, detail=f"Cannot create a bout for not-attending wrestler {w.id}")

    bouts = load_bouts(session, meet_id)
    key = normalize_pair(red.id, green.id)
    for bout in bouts:
        if normalize_pair(bout.red_id, bout.green_id) == key:
            response.status_code = 200
            return bout

    rules = rules_for_meet(meet)
    counts = bout_counts(bouts)
    for w in (red, green):
        if counts.get(w.id, 0) >= rules.effective_max_matches:
            raise HTTPException(status_code=400, detail=f"wrestler {w.id} already has maximum number of bouts")

    if not data.force:
        if key in load_excluded(session, meet_id):
            raise HTTPException(status_code=400, detail="These wrestlers are excluded from being paired")
        reason = ineligibility_reason(red, green, rules)
        if reason:
            raise HTTPException(status_code=400, detail=reason)

    details = score_pair(red, green)
    try:
        created = create_bouts(
            session, meet,
            [NewBout(red_id=red.id, green_id=green.id, pairing_score=details.score, notes=details.notes)],
            source="manual",
        )
    except BoutStoreValidationError as e:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    bout = created[0]
    board = load_board(session, meet)
    mat_rules, prefer_same_mat = load_mat_rules(session, meet)
    append_to_mats(
        board, [to_bout_ref(bout)], roster, meet.meet_date, mat_rules, meet.home_team_id, prefer_same_mat
    )
    record_change(session, meet.id, editor_id, f"Added bout {red.id} vs {green.id}.")
    save_board(session, meet, board)
    session.refresh(bout)
    logger.info("Meet %s: manual bout %s (%s vs %s, force=%s)", meet_id, bout.id, red.id, green.id, data.force)
    return bout


@router.get("/meets/{meet_id}/bouts", response_model=BoutListResponse)
def get_bouts(meet_id: int, session: Session = Depends(get_session)):
    """All bouts of a meet in mat order; hidden_bout_ids lists bouts of not-attending wrestlers"""
    get_meet_or_404(session, meet_id)
    bouts = sorted(
        load_bouts(session, meet_id),
        key=lambda b: (b.mat is None, b.mat or 0, b.order is None, b.order or 0, b.id),
    )
    _, hidden = split_visible(bouts, hidden_wrestler_ids(session, meet_id))
    return BoutListResponse(bouts=bouts, hidden_bout_ids=sorted(b.id for b in hidden))


@router.delete("/meets/{meet_id}/bouts/{bout_id}", status_code=204)
def remove_bout(
    meet_id: int,
    bout_id: int,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    meet = require_editable_meet(session, meet_id, editor_id)
    bout = session.get(Bout, bout_id)
    if not bout or bout.meet_id != meet_id:
        raise HTTPException(status_code=404, detail="Bout not found")
    record_change(session, meet.id, editor_id, f"Removed bout {bout.red_id} vs {bout.green_id}.")
    delete_bout(session, meet, bout)
    return None


# ============================================================================
# Excluded pairs
# ============================================================================


@router.get("/meets/{meet_id}/excluded-pairs", response_model=List[ExcludedPairResponse])
def get_excluded_pairs(meet_id: int, session: Session = Depends(get_session)):
    get_meet_or_404(session, meet_id)
    return [ExcludedPairResponse(a_id=a, b_id=b) for a, b in sorted(load_excluded(session, meet_id))]


@router.post("/meets/{meet_id}/excluded-pairs", response_model=ExcludedPairResponse, status_code=201)
def add_excluded_pair(
    meet_id: int,
    data: ExcludedPairRequest,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Never pair these two wrestlers automatically; existing bouts are left alone"""
    meet = require_editable_meet(session, meet_id, editor_id)
    a_id, b_id = normalize_pair(data.a_id, data.b_id)
    existing = session.exec(
        select(ExcludedPair).where(
            ExcludedPair.meet_id == meet_id,
            ExcludedPair.a_id == a_id,
            ExcludedPair.b_id == b_id,
        )
    ).first()
    if existing is None:
        session.add(ExcludedPair(meet_id=meet_id, a_id=a_id, b_id=b_id))
        record_change(session, meet.id, editor_id, f"Excluded pairing {a_id} vs {b_id}.")
        session.commit()
    return ExcludedPairResponse(a_id=a_id, b_id=b_id)
