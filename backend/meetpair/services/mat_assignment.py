"""
Initial mat distribution.

Bouts are handed out best pairing score first. Each bout goes to the least
loaded mat whose rule (experience and age ranges of the home team's mat
rules) fits both wrestlers; when no mat fits, the least loaded mat overall.
If the home team prefers it, a home wrestler's later bouts follow them to the
mat of their first bout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from meetpair.config import DAYS_PER_YEAR
from meetpair.services.eligibility import WrestlerProfile
from meetpair.services.mat_board import BoutRef, MatBoard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatRule:
    min_experience: int = 0
    max_experience: int = 10
    min_age: float = 0.0
    max_age: float = 100.0
    color: Optional[str] = None


DEFAULT_MAT_RULE = MatRule()


def age_in_years(birthdate: date, on_date: date) -> float:
    return (on_date - birthdate).days / DAYS_PER_YEAR


def rules_for_mats(rules: Optional[List[MatRule]], num_mats: int) -> List[MatRule]:
    """Trim or pad *rules* to exactly num_mats entries."""
    padded = list(rules or [])[:num_mats]
    while len(padded) < num_mats:
        padded.append(DEFAULT_MAT_RULE)
    return padded


def fits_rule(
    bout: BoutRef,
    rule: MatRule,
    wrestlers: Mapping[int, WrestlerProfile],
    meet_date: date,
) -> bool:
    red = wrestlers.get(bout.red_id)
    green = wrestlers.get(bout.green_id)
    if red is None or green is None:
        return True
    for w in (red, green):
        if not rule.min_experience <= w.experience_years <= rule.max_experience:
            return False
        if not rule.min_age <= age_in_years(w.birthdate, meet_date) <= rule.max_age:
            return False
    return True


class MatAssigner:
    """Places bouts on a MatBoard one at a time."""

    def __init__(
        self,
        board: MatBoard,
        wrestlers: Mapping[int, WrestlerProfile],
        meet_date: date,
        mat_rules: Optional[List[MatRule]] = None,
        home_team_id: Optional[int] = None,
        prefer_same_mat: bool = False,
    ):
        self.board = board
        self.wrestlers = wrestlers
        self.meet_date = meet_date
        self.rules = rules_for_mats(mat_rules, board.num_mats)
        self.home_team_id = home_team_id
        self.prefer_same_mat = prefer_same_mat
        # home wrestler id -> mat of their first bout
        self.home_mat: Dict[int, int] = {}
        for bout in board.all_bouts():
            self._remember_home_mat(bout)

    def _is_home(self, wrestler_id: int) -> bool:
        w = self.wrestlers.get(wrestler_id)
        return self.home_team_id is not None and w is not None and w.team_id == self.home_team_id

    def _remember_home_mat(self, bout: BoutRef) -> None:
        for wrestler_id in bout.wrestler_ids:
            if self._is_home(wrestler_id) and bout.mat is not None:
                self.home_mat.setdefault(wrestler_id, bout.mat)

    def eligible_mats(self, bout: BoutRef) -> List[int]:
        if self.prefer_same_mat:
            for wrestler_id in bout.wrestler_ids:
                if wrestler_id in self.home_mat:
                    return [self.home_mat[wrestler_id]]
        return [
            mat
            for mat, rule in enumerate(self.rules, start=1)
            if fits_rule(bout, rule, self.wrestlers, self.meet_date)
        ]

    def choose_mat(self, bout: BoutRef) -> int:
        candidates = self.eligible_mats(bout) or list(range(1, self.board.num_mats + 1))
        return min(candidates, key=lambda mat: (len(self.board.mats[mat]), mat))

    def place(self, bout: BoutRef) -> int:
        mat = self.choose_mat(bout)
        self.board.append(mat, bout)
        self._remember_home_mat(bout)
        return mat


def assign_mats(
    bouts: Iterable[BoutRef],
    wrestlers: Mapping[int, WrestlerProfile],
    num_mats: int,
    meet_date: date,
    mat_rules: Optional[List[MatRule]] = None,
    home_team_id: Optional[int] = None,
    prefer_same_mat: bool = False,
) -> MatBoard:
    """Distribute every bout from scratch; previous mat/order values are discarded."""
    board = MatBoard(num_mats=num_mats)
    assigner = MatAssigner(board, wrestlers, meet_date, mat_rules, home_team_id, prefer_same_mat)
    ordered = sorted(bouts, key=lambda b: (b.pairing_score, b.id))
    for bout in ordered:
        bout.original_mat = None
        assigner.place(bout)
    logger.info("Assigned %d bouts across %d mats", len(ordered), num_mats)
    return board


def append_to_mats(
    board: MatBoard,
    bouts: Iterable[BoutRef],
    wrestlers: Mapping[int, WrestlerProfile],
    meet_date: date,
    mat_rules: Optional[List[MatRule]] = None,
    home_team_id: Optional[int] = None,
    prefer_same_mat: bool = False,
) -> MatBoard:
    """Place new bouts after the ones already on *board*."""
    assigner = MatAssigner(board, wrestlers, meet_date, mat_rules, home_team_id, prefer_same_mat)
    for bout in sorted(bouts, key=lambda b: (b.pairing_score, b.id)):
        assigner.place(bout)
    return board
