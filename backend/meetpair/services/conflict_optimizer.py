"""
Conflict Optimizer: Reorders bouts within a mat so wrestlers get rest.

A conflict is the same wrestler appearing at positions d <= rest_gap apart.
Positions are compared directly across mats (order 3 on mat 1 is "near"
order 3 on mat 2); mats are treated as running in lockstep, which is an
approximation of a real meet.

The conflict histogram counts[d] holds the number of such appearance pairs at
distance d. Histograms compare lexicographically from d=0 upward, so removing
one back-to-back conflict beats removing any number of distant ones.

EARLY / LATE wrestlers count three times in the histogram and their bouts
belong in the first / last third of the mat (mixed bouts in the middle).

reorder_mat() is a bounded random local search: it only ever keeps a swap
that strictly improves the histogram (or keeps it equal while reducing the
EARLY/LATE band violation), so the histogram never gets worse.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Set, Tuple

from meetpair.config import REORDER_PASSES, REORDER_SWAP_ATTEMPTS
from meetpair.models.meet_wrestler_status import STATUS_EARLY, STATUS_LATE
from meetpair.services.mat_board import BoutRef, MatBoard

logger = logging.getLogger(__name__)

TIMING_STATUSES = frozenset({STATUS_EARLY, STATUS_LATE})
TIMING_STATUS_WEIGHT = 3


@dataclass
class ReorderResult:
    mat: int
    before: List[int]
    after: List[int]
    swaps: int
    passes: int


# ============================================================================
# Conflict histogram
# ============================================================================


def conflict_summary(
    mat_lists: List[List[BoutRef]],
    gap: int,
    statuses: Optional[Mapping[int, str]] = None,
) -> List[int]:
    """Histogram of same-wrestler appearance pairs by distance 0..gap."""
    if gap < 0:
        return []
    counts = [0] * (gap + 1)
    statuses = statuses or {}

    positions: Dict[int, List[int]] = {}
    for bouts in mat_lists:
        for idx, bout in enumerate(bouts):
            for wrestler_id in bout.wrestler_ids:
                positions.setdefault(wrestler_id, []).append(idx + 1)

    for wrestler_id, orders in positions.items():
        weight = TIMING_STATUS_WEIGHT if statuses.get(wrestler_id) in TIMING_STATUSES else 1
        orders.sort()
        for i in range(len(orders)):
            for j in range(i + 1, len(orders)):
                diff = orders[j] - orders[i]
                if diff > gap:
                    break
                counts[diff] += weight
    return counts


def compare_summary(a: List[int], b: List[int]) -> int:
    """Negative when *a* is better (fewer short-distance conflicts) than *b*."""
    for x, y in zip(a, b):
        if x != y:
            return x - y
    return len(a) - len(b)


# ============================================================================
# EARLY / LATE order bands
# ============================================================================


def order_bands(bouts: List[BoutRef], statuses: Mapping[int, str]) -> Dict[int, Tuple[int, int]]:
    """Allowed (min_order, max_order) per bout id for EARLY/LATE wrestlers."""
    size = max(1, len(bouts))
    early_max = max(1, math.ceil(size / 3))
    late_min = max(1, (2 * size) // 3 + 1)
    middle = (early_max + 1, late_min - 1)
    fallback = ((size + 1) // 2, math.ceil((size + 1) / 2))

    bands: Dict[int, Tuple[int, int]] = {}
    for bout in bouts:
        bout_statuses = {statuses.get(w) for w in bout.wrestler_ids}
        has_early = STATUS_EARLY in bout_statuses
        has_late = STATUS_LATE in bout_statuses
        if not has_early and not has_late:
            continue
        if has_early and has_late:
            low, high = middle if middle[0] <= middle[1] else fallback
        else:
            low, high = 1, size
            if has_early:
                high = early_max
            if has_late:
                low = late_min
        if low > high:
            low, high = fallback
        bands[bout.id] = (low, high)
    return bands


def band_violation(order: int, band: Optional[Tuple[int, int]]) -> int:
    if band is None:
        return 0
    low, high = band
    if order < low:
        return low - order
    if order > high:
        return order - high
    return 0


def total_band_violation(bouts: List[BoutRef], bands: Mapping[int, Tuple[int, int]]) -> int:
    return sum(band_violation(idx + 1, bands.get(b.id)) for idx, b in enumerate(bouts))


# ============================================================================
# Local conflict checks
# ============================================================================


def other_mat_orders(mat_lists: List[List[BoutRef]], mat_index: int) -> Dict[int, Set[int]]:
    """wrestler id -> 1-based orders used on every mat except *mat_index*."""
    orders: Dict[int, Set[int]] = {}
    for idx, bouts in enumerate(mat_lists):
        if idx == mat_index:
            continue
        for pos, bout in enumerate(bouts):
            for wrestler_id in bout.wrestler_ids:
                orders.setdefault(wrestler_id, set()).add(pos + 1)
    return orders


def has_cross_mat_conflict(bout: BoutRef, order: int, other_orders: Mapping[int, Set[int]], gap: int) -> bool:
    for wrestler_id in bout.wrestler_ids:
        used = other_orders.get(wrestler_id)
        if not used:
            continue
        for delta in range(gap + 1):
            if (order - delta) in used or (order + delta) in used:
                return True
    return False


def has_same_mat_conflict(bouts: List[BoutRef], idx: int, gap: int) -> bool:
    bout = bouts[idx]
    for other_idx in range(max(0, idx - gap), min(len(bouts), idx + gap + 1)):
        if other_idx == idx:
            continue
        other = bouts[other_idx]
        if other.involves(bout.red_id) or other.involves(bout.green_id):
            return True
    return False


# ============================================================================
# Automatic reorder
# ============================================================================


def reorder_mat(
    board: MatBoard,
    mat: int,
    gap: int,
    statuses: Optional[Mapping[int, str]] = None,
    rng: Optional[random.Random] = None,
    passes: int = REORDER_PASSES,
    attempts: int = REORDER_SWAP_ATTEMPTS,
) -> ReorderResult:
    """Reorder one mat in place on *board*; other mats are read-only inputs."""
    statuses = statuses or {}
    rng = rng or random.Random()
    current = board.mat_list(mat)
    mat_index = mat - 1

    def score(candidate: List[BoutRef]) -> List[int]:
        lists = board.lists()
        lists[mat_index] = candidate
        return conflict_summary(lists, gap, statuses)

    best_summary = score(current)
    result = ReorderResult(mat=mat, before=list(best_summary), after=list(best_summary), swaps=0, passes=0)

    movable_count = sum(1 for b in current if not b.locked)
    if gap <= 0 or movable_count < 2:
        return result

    bands = order_bands(current, statuses)
    best_violation = total_band_violation(current, bands)
    others = other_mat_orders(board.lists(), mat_index)

    for _ in range(max(0, passes)):
        result.passes += 1
        found_problem = False
        for idx in range(len(current)):
            bout = current[idx]
            if bout.locked:
                continue
            order = idx + 1
            if not (
                has_cross_mat_conflict(bout, order, others, gap)
                or has_same_mat_conflict(current, idx, gap)
                or band_violation(order, bands.get(bout.id)) > 0
            ):
                continue
            found_problem = True

            targets = [j for j in range(len(current)) if j != idx and not current[j].locked]
            for _attempt in range(min(attempts, len(current) - 1)):
                j = rng.choice(targets)
                candidate = list(current)
                candidate[idx], candidate[j] = candidate[j], candidate[idx]
                summary = score(candidate)
                violation = total_band_violation(candidate, bands)
                cmp = compare_summary(summary, best_summary)
                if cmp < 0 or (cmp == 0 and violation < best_violation):
                    current = candidate
                    best_summary = summary
                    best_violation = violation
                    result.swaps += 1
                    break
        if not found_problem:
            break

    board.replace_mat(mat, current)
    result.after = list(best_summary)
    logger.debug("Reordered mat %d: %s -> %s (%d swaps)", mat, result.before, result.after, result.swaps)
    return result


def reorder_board(
    board: MatBoard,
    gap: int,
    statuses: Optional[Mapping[int, str]] = None,
    rng: Optional[random.Random] = None,
    passes: int = REORDER_PASSES,
    mats: Optional[List[int]] = None,
) -> List[ReorderResult]:
    rng = rng or random.Random()
    targets = mats or list(range(1, board.num_mats + 1))
    results = [reorder_mat(board, mat, gap, statuses, rng, passes) for mat in targets]
    logger.info(
        "Reordered %d mat(s), %d swaps, conflict summary now %s",
        len(results),
        sum(r.swaps for r in results),
        conflict_summary(board.lists(), gap, statuses),
    )
    return results
