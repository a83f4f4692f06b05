"""
Candidate Generator: Ranked legal opponents for one wrestler.

Used for interactive pairing (one bout at a time) and by the bulk
Pairing Generator.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from meetpair.config import CANDIDATE_LIMIT_DEFAULT
from meetpair.models.meet_wrestler_status import INACTIVE_STATUSES
from meetpair.services.eligibility import PairingRules, WrestlerProfile, is_eligible, normalize_pair
from meetpair.services.pairing_score import ScoreDetails, score_pair


class PairedBout(Protocol):
    red_id: int
    green_id: int


@dataclass(frozen=True)
class Candidate:
    opponent: WrestlerProfile
    score: float
    details: ScoreDetails
    opponent_bouts: int


def bout_counts(bouts: Iterable[PairedBout]) -> Counter:
    counts: Counter = Counter()
    for bout in bouts:
        counts[bout.red_id] += 1
        counts[bout.green_id] += 1
    return counts


def paired_keys(bouts: Iterable[PairedBout]) -> Set[Tuple[int, int]]:
    return {normalize_pair(b.red_id, b.green_id) for b in bouts}


def attending(pool: Iterable[WrestlerProfile]) -> List[WrestlerProfile]:
    return [w for w in pool if w.status not in INACTIVE_STATUSES]


def rank_candidates(
    target: WrestlerProfile,
    pool: Iterable[WrestlerProfile],
    counts: Dict[int, int],
    paired: Set[Tuple[int, int]],
    rules: PairingRules,
    excluded: Optional[Set[Tuple[int, int]]] = None,
    opponent_filter: Optional[Callable[[WrestlerProfile], bool]] = None,
) -> List[Candidate]:
    """Score every legal opponent of *target*; best (lowest score) first.

    *counts* and *paired* describe the current bout set; the Pairing
    Generator passes its working copies so no bout list is rebuilt per step.
    """
    max_matches = rules.effective_max_matches
    excluded = excluded or set()

    rows: List[Candidate] = []
    for opp in pool:
        if opp.id == target.id:
            continue
        if opp.status in INACTIVE_STATUSES:
            continue
        opp_count = counts.get(opp.id, 0)
        if opp_count >= max_matches:
            continue
        key = normalize_pair(target.id, opp.id)
        if key in paired or key in excluded:
            continue
        if not is_eligible(target, opp, rules):
            continue
        if opponent_filter is not None and not opponent_filter(opp):
            continue
        details = score_pair(target, opp)
        rows.append(Candidate(opponent=opp, score=details.score, details=details, opponent_bouts=opp_count))

    rows.sort(key=lambda c: (c.score, c.opponent_bouts, c.opponent.weight, c.opponent.id))
    return rows


def find_candidates(
    target_id: int,
    pool: Iterable[WrestlerProfile],
    bouts: Iterable[PairedBout],
    rules: PairingRules,
    limit: int = CANDIDATE_LIMIT_DEFAULT,
    excluded: Optional[Set[Tuple[int, int]]] = None,
) -> List[Candidate]:
    """Return up to *limit* opponents for *target_id*, best match first.

    An empty list means "nothing to suggest": the target is not attending,
    is not on the roster, already has the maximum number of bouts, or has
    no legal opponent left.
    """
    active = attending(pool)
    target = next((w for w in active if w.id == target_id), None)
    if target is None:
        return []

    bouts = list(bouts)
    counts = bout_counts(bouts)
    if counts.get(target.id, 0) >= rules.effective_max_matches:
        return []

    ranked = rank_candidates(target, active, counts, paired_keys(bouts), rules, excluded)
    return ranked[: max(0, limit)]
