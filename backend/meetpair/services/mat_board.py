"""
Mat board: the per-mat ordered bout lists of one meet.

Every mutation renumbers the touched mats so each mat's orders stay 1..k.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple


class MatBoardError(Exception):
    """Invalid mat board operation (unknown bout, mat out of range)"""
    pass


@dataclass
class BoutRef:
    id: int
    red_id: int
    green_id: int
    pairing_score: float = 0.0
    mat: Optional[int] = None
    order: Optional[int] = None
    original_mat: Optional[int] = None
    locked: bool = False

    @property
    def wrestler_ids(self) -> Tuple[int, int]:
        return (self.red_id, self.green_id)

    def involves(self, wrestler_id: int) -> bool:
        return self.red_id == wrestler_id or self.green_id == wrestler_id


@dataclass
class MatBoard:
    num_mats: int
    mats: Dict[int, List[BoutRef]] = field(default_factory=dict)

    def __post_init__(self):
        if self.num_mats < 1:
            raise MatBoardError(f"num_mats must be at least 1, got {self.num_mats}")
        for mat in range(1, self.num_mats + 1):
            self.mats.setdefault(mat, [])

    @classmethod
    def from_bouts(cls, bouts: Iterable[BoutRef], num_mats: int) -> "MatBoard":
        """Build a board from stored bouts.

        Bouts without a mat are not on the board until mats are assigned.
        Bouts on a mat above num_mats follow the last mat's own bouts. Within
        a mat, stored order wins; unordered bouts follow.
        """
        board = cls(num_mats=num_mats)
        placed = sorted(
            (b for b in bouts if b.mat is not None),
            key=lambda b: (b.mat, b.order is None, b.order or 0, b.id),
        )
        for bout in placed:
            board.mats[min(max(1, bout.mat), num_mats)].append(bout)
        for mat in board.mats:
            board._renumber(mat)
        return board

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _check_mat(self, mat: int) -> None:
        if mat not in self.mats:
            raise MatBoardError(f"mat {mat} is outside 1..{self.num_mats}")

    def locate(self, bout_id: int) -> Tuple[int, int]:
        """Return (mat, 0-based index) of a bout."""
        for mat, bouts in self.mats.items():
            for idx, bout in enumerate(bouts):
                if bout.id == bout_id:
                    return mat, idx
        raise MatBoardError(f"bout {bout_id} is not on the mat board")

    def get(self, bout_id: int) -> BoutRef:
        mat, idx = self.locate(bout_id)
        return self.mats[mat][idx]

    def mat_list(self, mat: int) -> List[BoutRef]:
        self._check_mat(mat)
        return list(self.mats[mat])

    def lists(self) -> List[List[BoutRef]]:
        """Mat lists in mat order (index 0 is mat 1)."""
        return [list(self.mats[mat]) for mat in range(1, self.num_mats + 1)]

    def all_bouts(self) -> List[BoutRef]:
        return [bout for bouts in self.lists() for bout in bouts]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _renumber(self, mat: int) -> None:
        for position, bout in enumerate(self.mats[mat], start=1):
            bout.mat = mat
            bout.order = position

    def append(self, mat: int, bout: BoutRef) -> None:
        self._check_mat(mat)
        self.mats[mat].append(bout)
        self._renumber(mat)

    def replace_mat(self, mat: int, ordering: List[BoutRef]) -> None:
        """Replace a mat's sequence with a permutation of its own bouts."""
        self._check_mat(mat)
        if sorted(b.id for b in ordering) != sorted(b.id for b in self.mats[mat]):
            raise MatBoardError(f"new ordering for mat {mat} must contain exactly the bouts already on it")
        self.mats[mat] = list(ordering)
        self._renumber(mat)

    def move(self, bout_id: int, mat: int, index: int) -> BoutRef:
        """Move a bout to *index* (0-based, clamped) on *mat*.

        The first move away from a mat records it as original_mat; moving the
        bout back to that mat clears the marker.
        """
        self._check_mat(mat)
        source_mat, source_idx = self.locate(bout_id)
        bout = self.mats[source_mat].pop(source_idx)
        self._renumber(source_mat)

        destination = self.mats[mat]
        index = min(max(0, index), len(destination))
        destination.insert(index, bout)
        self._renumber(mat)

        if mat != source_mat:
            if bout.original_mat is None:
                bout.original_mat = source_mat
            elif bout.original_mat == mat:
                bout.original_mat = None
        return bout

    def remove(self, bout_id: int) -> BoutRef:
        mat, idx = self.locate(bout_id)
        bout = self.mats[mat].pop(idx)
        self._renumber(mat)
        return bout

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def orders(self) -> Dict[str, List[int]]:
        """Canonical save format: {"1": [bout ids...], ..., "N": [...]}"""
        return {str(mat): [b.id for b in self.mats[mat]] for mat in range(1, self.num_mats + 1)}

    def assignments(self) -> List[Tuple[int, int, int]]:
        return [(b.id, b.mat, b.order) for b in self.all_bouts()]

    def conflict_severity(self, bout_id: int, wrestler_id: int, gap: int) -> Optional[int]:
        """Distance to the nearest other bout of *wrestler_id* on the same mat.

        Only distances up to *gap* count; None means no conflict.
        """
        mat, idx = self.locate(bout_id)
        if gap <= 0:
            return None
        bouts = self.mats[mat]
        best: Optional[int] = None
        for other_idx in range(max(0, idx - gap), min(len(bouts), idx + gap + 1)):
            if other_idx == idx or not bouts[other_idx].involves(wrestler_id):
                continue
            distance = abs(other_idx - idx)
            if best is None or distance < best:
                best = distance
        return best
