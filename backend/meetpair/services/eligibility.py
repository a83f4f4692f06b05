"""
Eligibility Filter: Decides whether two wrestlers may legally wrestle.

Rules (each toggleable through PairingRules):
- never the same wrestler
- same-team bouts only when allowed
- birthdate gap within max_age_gap_days
- weight gap (percent of the lighter wrestler) within max_weight_diff_pct
- first-year wrestlers only against first-year wrestlers

"Already paired" is not checked here; callers track it with normalize_pair().
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Hashable, Optional, Tuple

from meetpair.config import (
    DEFAULT_MAX_AGE_GAP_DAYS,
    DEFAULT_MAX_WEIGHT_DIFF_PCT,
    MAX_MATCHES_PER_WRESTLER,
)

# Weight percentage used when the lighter weight is not positive.
UNBOUNDED_WEIGHT_PCT = 999.0


@dataclass(frozen=True)
class WrestlerProfile:
    """The attributes pairing logic needs for one wrestler."""
    id: int
    team_id: int
    weight: float
    birthdate: date
    experience_years: int = 0
    skill: int = 0
    status: str = "COMING"

    @property
    def first_year(self) -> bool:
        return self.experience_years <= 0


@dataclass(frozen=True)
class PairingRules:
    max_age_gap_days: int = DEFAULT_MAX_AGE_GAP_DAYS
    max_weight_diff_pct: float = DEFAULT_MAX_WEIGHT_DIFF_PCT
    first_year_only_with_first_year: bool = True
    allow_same_team_matches: bool = False
    enforce_age_gap_check: bool = True
    enforce_weight_check: bool = True
    matches_per_wrestler: int = 2
    max_matches_per_wrestler: int = MAX_MATCHES_PER_WRESTLER

    @property
    def effective_max_matches(self) -> int:
        return min(MAX_MATCHES_PER_WRESTLER, max(1, int(self.max_matches_per_wrestler)))

    @property
    def effective_target_matches(self) -> int:
        return min(self.effective_max_matches, max(1, int(self.matches_per_wrestler)))


def normalize_pair(a: Hashable, b: Hashable) -> Tuple:
    """Order-independent key for a pairing."""
    return (a, b) if a < b else (b, a)


def age_gap_days(a: WrestlerProfile, b: WrestlerProfile) -> int:
    return abs((a.birthdate - b.birthdate).days)


def weight_pct_diff(weight_a: float, weight_b: float) -> float:
    """Symmetric weight difference as a percentage of the lighter wrestler."""
    base = min(weight_a, weight_b)
    if base <= 0:
        return UNBOUNDED_WEIGHT_PCT
    return 100.0 * abs(weight_a - weight_b) / base


def ineligibility_reason(a: WrestlerProfile, b: WrestlerProfile, rules: PairingRules) -> Optional[str]:
    """Return the first rule the pair breaks, or None when the pair is legal."""
    if a.id == b.id:
        return "a wrestler cannot wrestle themselves"

    if not rules.allow_same_team_matches and a.team_id == b.team_id:
        return "same-team matches are not allowed"

    if rules.enforce_age_gap_check:
        gap = age_gap_days(a, b)
        if gap > rules.max_age_gap_days:
            return f"age gap of {gap} days exceeds {rules.max_age_gap_days}"

    if rules.enforce_weight_check:
        pct = weight_pct_diff(a.weight, b.weight)
        if pct > rules.max_weight_diff_pct:
            return f"weight difference of {pct:.1f}% exceeds {rules.max_weight_diff_pct:g}%"

    if rules.first_year_only_with_first_year and a.first_year != b.first_year:
        return "first-year wrestlers may only wrestle other first-year wrestlers"

    return None


def is_eligible(a: WrestlerProfile, b: WrestlerProfile, rules: PairingRules) -> bool:
    return ineligibility_reason(a, b, rules) is None
