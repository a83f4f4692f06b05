"""
Pairing Generator: Builds a full slate of bouts for a meet in one pass.

Greedy, not optimal:
1. Pool = attending wrestlers (NOT_COMING / ABSENT left out), lightest first.
2. Existing bouts count toward match totals unless clear_existing is set.
3. Repeatedly take the wrestler furthest below the target and pair them with
   their best legal opponent that is also below target; when nobody below
   target fits, any opponent below the hard cap is accepted.
4. Wrestlers with no legal opponent left are skipped for the rest of the run.
5. New bouts whose two wrestlers both ended above target are dropped again.

Running out of opponents is not an error: under_target reports who is short.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from meetpair.services.candidates import (
    PairedBout,
    attending,
    bout_counts,
    paired_keys,
    rank_candidates,
)
from meetpair.services.eligibility import PairingRules, WrestlerProfile, normalize_pair

logger = logging.getLogger(__name__)


@dataclass
class NewBout:
    red_id: int
    green_id: int
    pairing_score: float
    notes: str = ""


@dataclass
class GenerationResult:
    bouts: List[NewBout]
    total_wrestlers: int
    target_matches: int
    max_matches: int
    # wrestler id -> bout count, for attending wrestlers left below target
    under_target: Dict[int, int] = field(default_factory=dict)

    @property
    def created(self) -> int:
        return len(self.bouts)

    @property
    def under_target_count(self) -> int:
        return len(self.under_target)


def generate_pairings(
    pool: Iterable[WrestlerProfile],
    existing_bouts: Iterable[PairedBout],
    rules: PairingRules,
    excluded: Optional[Set[Tuple[int, int]]] = None,
    clear_existing: bool = False,
) -> GenerationResult:
    active = sorted(attending(pool), key=lambda w: (w.weight, w.id))
    kept = [] if clear_existing else list(existing_bouts)

    counts: Dict[int, int] = dict(bout_counts(kept))
    paired = paired_keys(kept)
    target = rules.effective_target_matches
    max_matches = rules.effective_max_matches

    def count(wid: int) -> int:
        return counts.get(wid, 0)

    new_bouts: List[NewBout] = []
    exhausted: Set[int] = set()

    while True:
        needy = [w for w in active if w.id not in exhausted and count(w.id) < target]
        if not needy:
            break
        needy.sort(key=lambda w: (count(w.id) - target, w.weight, w.id))
        wrestler = needy[0]

        ranked = rank_candidates(
            wrestler, active, counts, paired, rules, excluded,
            opponent_filter=lambda o: count(o.id) < target,
        )
        if not ranked:
            ranked = rank_candidates(wrestler, active, counts, paired, rules, excluded)
        if not ranked:
            exhausted.add(wrestler.id)
            continue

        pick = ranked[0]
        counts[wrestler.id] = count(wrestler.id) + 1
        counts[pick.opponent.id] = count(pick.opponent.id) + 1
        paired.add(normalize_pair(wrestler.id, pick.opponent.id))
        new_bouts.append(
            NewBout(
                red_id=wrestler.id,
                green_id=pick.opponent.id,
                pairing_score=pick.score,
                notes=pick.details.notes,
            )
        )

    removed = _drop_surplus_bouts(new_bouts, counts, target)

    under_target = {w.id: count(w.id) for w in active if count(w.id) < target}
    logger.info(
        "Generated %d bouts for %d wrestlers (target=%d, max=%d, trimmed=%d, under target=%d)",
        len(new_bouts), len(active), target, max_matches, removed, len(under_target),
    )
    return GenerationResult(
        bouts=new_bouts,
        total_wrestlers=len(active),
        target_matches=target,
        max_matches=max_matches,
        under_target=under_target,
    )


def _drop_surplus_bouts(new_bouts: List[NewBout], counts: Dict[int, int], target: int) -> int:
    """Remove new bouts whose two wrestlers are both above target."""
    removed = 0
    changed = True
    while changed:
        changed = False
        for i in range(len(new_bouts) - 1, -1, -1):
            bout = new_bouts[i]
            if counts.get(bout.red_id, 0) > target and counts.get(bout.green_id, 0) > target:
                del new_bouts[i]
                counts[bout.red_id] -= 1
                counts[bout.green_id] -= 1
                removed += 1
                changed = True
    return removed
