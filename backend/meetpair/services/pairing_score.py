"""
Pairing score: how close two wrestlers are. Lower is a better match.

score = 4 * (|weight gap| / 10)
      + 2 * (birthdate gap in years)
      + 2 * (|experience gap| / 3)
      + 2 * (|skill gap| / 3)

Every term is non-negative and grows with its gap, so widening any single gap
never improves the score.
"""

from __future__ import annotations

from dataclasses import dataclass

from meetpair.config import DAYS_PER_YEAR
from meetpair.services.eligibility import WrestlerProfile, age_gap_days, weight_pct_diff

WEIGHT_FACTOR = 4.0
WEIGHT_UNIT_LBS = 10.0
AGE_FACTOR = 2.0
EXPERIENCE_FACTOR = 2.0
EXPERIENCE_UNIT_YEARS = 3.0
SKILL_FACTOR = 2.0
SKILL_UNIT_POINTS = 3.0


@dataclass(frozen=True)
class ScoreDetails:
    score: float
    weight_diff: float
    weight_pct: float
    age_gap_days: int
    experience_gap: int
    skill_gap: int

    @property
    def notes(self) -> str:
        return (
            f"wDiff={self.weight_diff:.1f} ageGapDays={self.age_gap_days} "
            f"expGap={self.experience_gap} skillGap={self.skill_gap} wPct={self.weight_pct:.1f}%"
        )


def score_pair(a: WrestlerProfile, b: WrestlerProfile) -> ScoreDetails:
    weight_diff = abs(a.weight - b.weight)
    gap_days = age_gap_days(a, b)
    experience_gap = abs(a.experience_years - b.experience_years)
    skill_gap = abs(a.skill - b.skill)

    score = (
        WEIGHT_FACTOR * (weight_diff / WEIGHT_UNIT_LBS)
        + AGE_FACTOR * (gap_days / DAYS_PER_YEAR)
        + EXPERIENCE_FACTOR * (experience_gap / EXPERIENCE_UNIT_YEARS)
        + SKILL_FACTOR * (skill_gap / SKILL_UNIT_POINTS)
    )
    return ScoreDetails(
        score=score,
        weight_diff=weight_diff,
        weight_pct=weight_pct_diff(a.weight, b.weight),
        age_gap_days=gap_days,
        experience_gap=experience_gap,
        skill_gap=skill_gap,
    )


def pairing_score(a: WrestlerProfile, b: WrestlerProfile) -> float:
    return score_pair(a, b).score
