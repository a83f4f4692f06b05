"""
Bout Store: reads meet data into engine dataclasses and writes results back.

Mat orders are always saved as a full replacement ({"1": [ids], ...}) inside
one transaction, and every mat is renumbered 1..k on the way out. Bouts of
wrestlers who are NOT_COMING / ABSENT stay in the table but are left off the
mat board; on save they are kept after the visible bouts of their mat.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from sqlmodel import Session, select

from meetpair.models.bout import Bout
from meetpair.models.excluded_pair import ExcludedPair
from meetpair.models.meet import Meet, MeetTeam
from meetpair.models.meet_change import MeetChange
from meetpair.models.meet_wrestler_status import INACTIVE_STATUSES, STATUS_COMING, MeetWrestlerStatus
from meetpair.models.team import Team, TeamMatRule
from meetpair.models.wrestler import Wrestler
from meetpair.services.eligibility import PairingRules, WrestlerProfile, normalize_pair
from meetpair.services.mat_assignment import MatRule
from meetpair.services.mat_board import BoutRef, MatBoard
from meetpair.services.pairing_generator import NewBout

logger = logging.getLogger(__name__)


class BoutStoreError(Exception):
    """Base exception for bout store errors"""
    pass


class BoutStoreValidationError(BoutStoreError):
    """Requested write would break a bout or mat invariant"""
    pass


@dataclass
class SaveResult:
    applied: bool
    updated: int = 0
    mats_changed: List[int] = field(default_factory=list)


# ============================================================================
# Reads
# ============================================================================


def rules_for_meet(meet: Meet) -> PairingRules:
    return PairingRules(
        max_age_gap_days=meet.max_age_gap_days,
        max_weight_diff_pct=meet.max_weight_diff_pct,
        first_year_only_with_first_year=meet.first_year_only_with_first_year,
        allow_same_team_matches=meet.allow_same_team_matches,
        enforce_age_gap_check=meet.enforce_age_gap_check,
        enforce_weight_check=meet.enforce_weight_check,
        matches_per_wrestler=meet.matches_per_wrestler,
        max_matches_per_wrestler=meet.max_matches_per_wrestler,
    )


def meet_team_ids(session: Session, meet_id: int) -> List[int]:
    rows = session.exec(select(MeetTeam).where(MeetTeam.meet_id == meet_id).order_by(MeetTeam.id)).all()
    return [row.team_id for row in rows]


def load_statuses(session: Session, meet_id: int) -> Dict[int, str]:
    rows = session.exec(select(MeetWrestlerStatus).where(MeetWrestlerStatus.meet_id == meet_id)).all()
    return {row.wrestler_id: (row.status or STATUS_COMING) for row in rows}


def to_profile(wrestler: Wrestler, status: Optional[str] = None) -> WrestlerProfile:
    return WrestlerProfile(
        id=wrestler.id,
        team_id=wrestler.team_id,
        weight=wrestler.weight,
        birthdate=wrestler.birthdate,
        experience_years=wrestler.experience_years,
        skill=wrestler.skill,
        status=status or STATUS_COMING,
    )


def load_meet_wrestlers(session: Session, meet_id: int) -> List[Wrestler]:
    """Active wrestlers on the teams attending the meet."""
    team_ids = meet_team_ids(session, meet_id)
    if not team_ids:
        return []
    return list(
        session.exec(
            select(Wrestler)
            .where(Wrestler.team_id.in_(team_ids), Wrestler.active == True)  # noqa: E712
            .order_by(Wrestler.weight, Wrestler.id)
        ).all()
    )


def load_roster(session: Session, meet_id: int) -> List[WrestlerProfile]:
    """Profiles for every active wrestler of the meet, with attendance status."""
    statuses = load_statuses(session, meet_id)
    return [to_profile(w, statuses.get(w.id)) for w in load_meet_wrestlers(session, meet_id)]


def load_bouts(session: Session, meet_id: int) -> List[Bout]:
    return list(session.exec(select(Bout).where(Bout.meet_id == meet_id).order_by(Bout.id)).all())


def load_excluded(session: Session, meet_id: int) -> Set[Tuple[int, int]]:
    rows = session.exec(select(ExcludedPair).where(ExcludedPair.meet_id == meet_id)).all()
    return {(row.a_id, row.b_id) for row in rows}


def load_mat_rules(session: Session, meet: Meet) -> Tuple[List[MatRule], bool]:
    """Home team's mat rules (in mat order) and its same-mat preference."""
    if meet.home_team_id is None:
        return [], False
    rows = session.exec(
        select(TeamMatRule).where(TeamMatRule.team_id == meet.home_team_id).order_by(TeamMatRule.mat_index)
    ).all()
    rules = [
        MatRule(
            min_experience=row.min_experience,
            max_experience=row.max_experience,
            min_age=row.min_age,
            max_age=row.max_age,
            color=row.color,
        )
        for row in rows
    ]
    team = session.get(Team, meet.home_team_id)
    return rules, bool(team and team.home_team_prefer_same_mat)


def to_bout_ref(bout: Bout) -> BoutRef:
    return BoutRef(
        id=bout.id,
        red_id=bout.red_id,
        green_id=bout.green_id,
        pairing_score=bout.pairing_score,
        mat=bout.mat,
        order=bout.order,
        original_mat=bout.original_mat,
        locked=bout.locked,
    )


def hidden_wrestler_ids(session: Session, meet_id: int) -> Set[int]:
    """Wrestlers whose bouts are kept but not shown or scheduled around."""
    hidden = {wid for wid, status in load_statuses(session, meet_id).items() if status in INACTIVE_STATUSES}
    team_ids = meet_team_ids(session, meet_id)
    if team_ids:
        inactive = session.exec(
            select(Wrestler.id).where(Wrestler.team_id.in_(team_ids), Wrestler.active == False)  # noqa: E712
        ).all()
        hidden.update(inactive)
    return hidden


def split_visible(bouts: Iterable[Bout], hidden: Set[int]) -> Tuple[List[Bout], List[Bout]]:
    visible: List[Bout] = []
    invisible: List[Bout] = []
    for bout in bouts:
        if bout.red_id in hidden or bout.green_id in hidden:
            invisible.append(bout)
        else:
            visible.append(bout)
    return visible, invisible


def load_board(session: Session, meet: Meet) -> MatBoard:
    """Mat board of the visible bouts of a meet."""
    visible, _ = split_visible(load_bouts(session, meet.id), hidden_wrestler_ids(session, meet.id))
    return MatBoard.from_bouts([to_bout_ref(b) for b in visible], meet.num_mats)


# ============================================================================
# Writes
# ============================================================================


def record_change(session: Session, meet_id: int, actor: Optional[str], message: str) -> MeetChange:
    """Queue an activity log entry; committed with the caller's transaction."""
    change = MeetChange(meet_id=meet_id, actor=actor, message=message)
    session.add(change)
    return change


def _parse_mats(meet: Meet, mats: Mapping[str, List[int]]) -> Dict[int, List[int]]:
    parsed: Dict[int, List[int]] = {}
    seen: Set[int] = set()
    for key, ids in mats.items():
        try:
            mat = int(key)
        except (TypeError, ValueError):
            raise BoutStoreValidationError(f"mat key '{key}' is not a mat number")
        if not 1 <= mat <= meet.num_mats:
            raise BoutStoreValidationError(f"mat {mat} is outside 1..{meet.num_mats}")
        for bout_id in ids:
            if bout_id in seen:
                raise BoutStoreValidationError(f"bout {bout_id} appears more than once")
            seen.add(bout_id)
        parsed[mat] = list(ids)
    return parsed


def save_mat_orders(
    session: Session,
    meet: Meet,
    mats: Mapping[str, List[int]],
    seq: Optional[int] = None,
    reset_original_mat: bool = False,
) -> SaveResult:
    """
    Replace the ordering of every listed mat, atomically.

    Listed bouts take orders 1..k on their mat; bouts currently on a listed mat
    but not named anywhere (hidden bouts, typically) follow them in their old
    order. Every mat is renumbered so orders stay contiguous.

    A *seq* not greater than the last applied one is an outdated autosave and
    is ignored.

    Raises:
        BoutStoreValidationError: unknown bout id, bad mat, duplicate id.
            Nothing is written in that case.
    """
    if seq is not None and seq <= meet.board_seq:
        logger.info("Meet %s: ignoring superseded board save seq=%s (current %s)", meet.id, seq, meet.board_seq)
        return SaveResult(applied=False)

    parsed = _parse_mats(meet, mats)
    bouts = {b.id: b for b in load_bouts(session, meet.id)}
    for ids in parsed.values():
        for bout_id in ids:
            if bout_id not in bouts:
                raise BoutStoreValidationError(f"Invalid bout id for meet: {bout_id}")

    listed = {bout_id for ids in parsed.values() for bout_id in ids}
    final: Dict[int, List[Bout]] = {mat: [bouts[i] for i in parsed.get(mat, [])] for mat in range(1, meet.num_mats + 1)}
    leftovers = sorted(
        (b for b in bouts.values() if b.id not in listed and b.mat is not None),
        key=lambda b: (b.mat, b.order is None, b.order or 0, b.id),
    )
    for bout in leftovers:
        final[min(max(1, bout.mat), meet.num_mats)].append(bout)

    result = SaveResult(applied=True)
    changed: Set[int] = set()
    try:
        for mat, mat_bouts in final.items():
            for position, bout in enumerate(mat_bouts, start=1):
                if bout.mat == mat and bout.order == position and not reset_original_mat:
                    continue
                if reset_original_mat:
                    bout.original_mat = None
                elif bout.mat is not None and bout.mat != mat:
                    if bout.original_mat is None:
                        if bout.mat <= meet.num_mats:
                            bout.original_mat = bout.mat
                    elif bout.original_mat == mat:
                        bout.original_mat = None
                    changed.add(bout.mat)
                bout.mat = mat
                bout.order = position
                session.add(bout)
                result.updated += 1
                changed.add(mat)
        if seq is not None:
            meet.board_seq = seq
            session.add(meet)
        session.commit()
    except Exception:
        session.rollback()
        raise

    result.mats_changed = sorted(changed)
    logger.info("Meet %s: saved mat orders (%d bouts updated, mats %s)", meet.id, result.updated, result.mats_changed)
    return result


def save_board(session: Session, meet: Meet, board: MatBoard, reset_original_mat: bool = False) -> SaveResult:
    return save_mat_orders(session, meet, board.orders(), reset_original_mat=reset_original_mat)


def fit_bouts_to_mats(session: Session, meet: Meet) -> SaveResult:
    """
    Bring stored bouts back inside 1..num_mats after the mat count shrinks.

    Bouts on removed mats follow the last mat's own bouts, and original_mat
    markers pointing at removed mats are dropped. Commits the caller's
    pending changes with it.
    """
    for bout in load_bouts(session, meet.id):
        if bout.original_mat is not None and bout.original_mat > meet.num_mats:
            bout.original_mat = None
            session.add(bout)
    return save_board(session, meet, load_board(session, meet))


def create_bouts(session: Session, meet: Meet, new_bouts: Iterable[NewBout], source: str = "auto") -> List[Bout]:
    """Insert bouts without committing; rejects duplicates and self pairs."""
    existing = {normalize_pair(b.red_id, b.green_id) for b in load_bouts(session, meet.id)}
    created: List[Bout] = []
    for new in new_bouts:
        if new.red_id == new.green_id:
            raise BoutStoreValidationError(f"wrestler {new.red_id} cannot wrestle themselves")
        key = normalize_pair(new.red_id, new.green_id)
        if key in existing:
            raise BoutStoreValidationError(f"wrestlers {key[0]} and {key[1]} are already paired")
        existing.add(key)
        bout = Bout(
            meet_id=meet.id,
            red_id=new.red_id,
            green_id=new.green_id,
            pairing_score=new.pairing_score,
            notes=new.notes or None,
            source=source,
        )
        session.add(bout)
        created.append(bout)
    session.flush()
    return created


def delete_all_bouts(session: Session, meet_id: int) -> int:
    bouts = load_bouts(session, meet_id)
    for bout in bouts:
        session.delete(bout)
    session.flush()
    return len(bouts)


def delete_bout(session: Session, meet: Meet, bout: Bout) -> None:
    """Delete one bout and close the gap it leaves on its mat."""
    mat = bout.mat
    try:
        session.delete(bout)
        session.flush()
        if mat is not None:
            remaining = session.exec(
                select(Bout).where(Bout.meet_id == meet.id, Bout.mat == mat).order_by(Bout.order, Bout.id)
            ).all()
            for position, other in enumerate(remaining, start=1):
                if other.order != position:
                    other.order = position
                    session.add(other)
        session.commit()
    except Exception:
        session.rollback()
        raise
