"""
API Routes for the mat board: view, assignment, drag moves, reorder and save
"""

import logging
import random
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from meetpair.config import MAX_MATS
from meetpair.database import get_session
from meetpair.models.bout import Bout
from meetpair.services.conflict_optimizer import conflict_summary, reorder_board
from meetpair.services.mat_assignment import assign_mats
from meetpair.services.mat_board import MatBoard, MatBoardError
from meetpair.utils.bout_store import (
    BoutStoreValidationError,
    hidden_wrestler_ids,
    load_board,
    load_bouts,
    load_mat_rules,
    load_roster,
    load_statuses,
    record_change,
    save_board,
    save_mat_orders,
    split_visible,
    to_bout_ref,
)
from meetpair.utils.meet_guards import get_editor_id, get_meet_or_404, require_editable_meet

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class BoardBout(BaseModel):
    id: int
    red_id: int
    green_id: int
    pairing_score: float
    mat: int
    order: int
    original_mat: Optional[int] = None
    locked: bool
    red_conflict: Optional[int] = None
    green_conflict: Optional[int] = None


class MatColumn(BaseModel):
    mat: int
    bouts: List[BoardBout]


class MatBoardResponse(BaseModel):
    meet_id: int
    num_mats: int
    rest_gap: int
    board_seq: int
    mats: List[MatColumn]
    conflict_summary: List[int]


class AssignMatsRequest(BaseModel):
    num_mats: Optional[int] = Field(default=None, ge=1, le=MAX_MATS)
    reorder: bool = True
    seed: Optional[int] = None


class MoveBoutRequest(BaseModel):
    mat: int = Field(ge=1)
    index: int = Field(ge=0)


class ReorderRequest(BaseModel):
    mat: Optional[int] = Field(default=None, ge=1)
    seed: Optional[int] = None


class ReorderMatResult(BaseModel):
    mat: int
    before: List[int]
    after: List[int]
    swaps: int


class ReorderResponse(BaseModel):
    results: List[ReorderMatResult]
    board: MatBoardResponse


class SaveOrderRequest(BaseModel):
    mats: Dict[str, List[int]]
    seq: Optional[int] = Field(default=None, ge=0)
    locked_bout_ids: Optional[List[int]] = None


class SaveOrderResponse(BaseModel):
    applied: bool
    updated: int
    mats_changed: List[int]
    board_seq: int


# ============================================================================
# Helpers
# ============================================================================


def _board_response(meet, board: MatBoard, statuses: Dict[int, str]) -> MatBoardResponse:
    gap = meet.rest_gap
    columns = []
    for mat in range(1, board.num_mats + 1):
        columns.append(
            MatColumn(
                mat=mat,
                bouts=[
                    BoardBout(
                        id=b.id,
                        red_id=b.red_id,
                        green_id=b.green_id,
                        pairing_score=b.pairing_score,
                        mat=b.mat,
                        order=b.order,
                        original_mat=b.original_mat,
                        locked=b.locked,
                        red_conflict=board.conflict_severity(b.id, b.red_id, gap),
                        green_conflict=board.conflict_severity(b.id, b.green_id, gap),
                    )
                    for b in board.mat_list(mat)
                ],
            )
        )
    return MatBoardResponse(
        meet_id=meet.id,
        num_mats=board.num_mats,
        rest_gap=gap,
        board_seq=meet.board_seq,
        mats=columns,
        conflict_summary=conflict_summary(board.lists(), gap, statuses),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/meets/{meet_id}/mats", response_model=MatBoardResponse)
def get_mat_board(meet_id: int, session: Session = Depends(get_session)):
    """Visible bouts per mat with conflict markers and the conflict histogram"""
    meet = get_meet_or_404(session, meet_id)
    return _board_response(meet, load_board(session, meet), load_statuses(session, meet_id))


@router.post("/meets/{meet_id}/mats/assign", response_model=MatBoardResponse)
def assign_meet_mats(
    meet_id: int,
    data: Optional[AssignMatsRequest] = None,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Lay out every visible bout on the mats from scratch"""
    data = data or AssignMatsRequest()
    meet = require_editable_meet(session, meet_id, editor_id)
    if data.num_mats is not None and data.num_mats != meet.num_mats:
        meet.num_mats = data.num_mats
        session.add(meet)

    visible, _ = split_visible(load_bouts(session, meet_id), hidden_wrestler_ids(session, meet_id))
    wrestlers = {w.id: w for w in load_roster(session, meet_id)}
    mat_rules, prefer_same_mat = load_mat_rules(session, meet)
    board = assign_mats(
        [to_bout_ref(b) for b in visible], wrestlers, meet.num_mats, meet.meet_date,
        mat_rules, meet.home_team_id, prefer_same_mat,
    )
    statuses = load_statuses(session, meet_id)
    if data.reorder:
        reorder_board(board, meet.rest_gap, statuses, random.Random(data.seed))

    record_change(session, meet.id, editor_id, f"Assigned bouts across {meet.num_mats} mats.")
    save_board(session, meet, board, reset_original_mat=True)
    session.refresh(meet)
    return _board_response(meet, load_board(session, meet), statuses)


@router.post("/meets/{meet_id}/bouts/{bout_id}/move", response_model=MatBoardResponse)
def move_bout(
    meet_id: int,
    bout_id: int,
    data: MoveBoutRequest,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Move one bout to a position (0-based, clamped) on a mat"""
    meet = require_editable_meet(session, meet_id, editor_id)
    bout = session.get(Bout, bout_id)
    if not bout or bout.meet_id != meet_id:
        raise HTTPException(status_code=404, detail="Bout not found")

    board = load_board(session, meet)
    try:
        source_mat, _ = board.locate(bout_id)
        board.move(bout_id, data.mat, data.index)
    except MatBoardError as e:
        raise HTTPException(status_code=400, detail=str(e))

    record_change(
        session, meet.id, editor_id,
        f"Moved bout {bout.red_id} vs {bout.green_id} from mat {source_mat} to mat {data.mat}.",
    )
    save_board(session, meet, board)
    session.refresh(meet)
    return _board_response(meet, load_board(session, meet), load_statuses(session, meet_id))


@router.post("/meets/{meet_id}/mats/reorder", response_model=ReorderResponse)
def reorder_mats(
    meet_id: int,
    data: Optional[ReorderRequest] = None,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """Reorder one mat (or all of them) to spread each wrestler's bouts apart"""
    data = data or ReorderRequest()
    meet = require_editable_meet(session, meet_id, editor_id)
    if data.mat is not None and data.mat > meet.num_mats:
        raise HTTPException(status_code=400, detail=f"mat {data.mat} is outside 1..{meet.num_mats}")

    board = load_board(session, meet)
    statuses = load_statuses(session, meet_id)
    results = reorder_board(
        board, meet.rest_gap, statuses, random.Random(data.seed),
        mats=[data.mat] if data.mat is not None else None,
    )

    which = f"mat {data.mat}" if data.mat is not None else "all mats"
    record_change(session, meet.id, editor_id, f"Reordered {which}.")
    save_board(session, meet, board)
    session.refresh(meet)
    return ReorderResponse(
        results=[ReorderMatResult(mat=r.mat, before=r.before, after=r.after, swaps=r.swaps) for r in results],
        board=_board_response(meet, load_board(session, meet), statuses),
    )


@router.post("/meets/{meet_id}/bouts/reorder", response_model=SaveOrderResponse)
def save_bout_order(
    meet_id: int,
    data: SaveOrderRequest,
    session: Session = Depends(get_session),
    editor_id: Optional[str] = Depends(get_editor_id),
):
    """
    Save the full mat ordering, e.g. {"mats": {"1": [4, 2], "2": [7]}, "seq": 12}.

    All-or-nothing: an unknown bout id, a bad mat or a duplicate id rejects
    the whole save. A seq not greater than the last saved one is ignored.
    """
    meet = require_editable_meet(session, meet_id, editor_id)
    if data.seq is not None and data.seq <= meet.board_seq:
        return SaveOrderResponse(applied=False, updated=0, mats_changed=[], board_seq=meet.board_seq)

    if data.locked_bout_ids is not None:
        bouts = {b.id: b for b in load_bouts(session, meet_id)}
        unknown = [i for i in data.locked_bout_ids if i not in bouts]
        if unknown:
            raise HTTPException(status_code=400, detail=f"Invalid bout id for meet: {unknown[0]}")
        locked = set(data.locked_bout_ids)
        for bout in bouts.values():
            if bout.locked != (bout.id in locked):
                bout.locked = bout.id in locked
                session.add(bout)

    try:
        result = save_mat_orders(session, meet, data.mats, seq=data.seq)
    except BoutStoreValidationError as e:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    if result.updated:
        record_change(session, meet.id, editor_id, f"Saved mat order ({result.updated} bouts moved).")
        session.commit()
    session.refresh(meet)
    return SaveOrderResponse(
        applied=result.applied,
        updated=result.updated,
        mats_changed=result.mats_changed,
        board_seq=meet.board_seq,
    )
