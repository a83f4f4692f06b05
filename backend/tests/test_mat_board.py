"""
Tests for the mat board: moves, renumbering and conflict severity.
"""

import pytest

from meetpair.services.mat_board import BoutRef, MatBoard, MatBoardError


def _board(layout):
    """layout: {mat: [(bout_id, red_id, green_id), ...]}"""
    bouts = []
    for mat, rows in layout.items():
        for order, (bout_id, red, green) in enumerate(rows, start=1):
            bouts.append(BoutRef(id=bout_id, red_id=red, green_id=green, mat=mat, order=order))
    return MatBoard.from_bouts(bouts, num_mats=max(layout))


def _ids(board, mat):
    return [b.id for b in board.mat_list(mat)]


def _assert_contiguous(board):
    for mat in range(1, board.num_mats + 1):
        assert [b.order for b in board.mat_list(mat)] == list(range(1, len(board.mat_list(mat)) + 1))
        assert all(b.mat == mat for b in board.mat_list(mat))


class TestMove:
    def _five_and_three(self):
        return _board(
            {
                1: [(1, 1, 2), (2, 3, 4), (3, 5, 6), (4, 7, 8), (5, 9, 10)],
                2: [(6, 11, 12), (7, 13, 14), (8, 15, 16)],
            }
        )

    def test_move_across_mats(self):
        board = self._five_and_three()
        moved = board.move(6, mat=1, index=3)

        assert len(board.mat_list(1)) == 6
        assert len(board.mat_list(2)) == 2
        assert _ids(board, 1) == [1, 2, 3, 6, 4, 5]
        assert moved.order == 4
        assert moved.mat == 1
        assert moved.original_mat == 2
        _assert_contiguous(board)

    def test_return_to_original_mat_clears_marker(self):
        board = self._five_and_three()
        board.move(6, mat=1, index=0)
        moved = board.move(6, mat=2, index=0)
        assert moved.original_mat is None

    def test_second_move_keeps_first_original_mat(self):
        board = _board({1: [(1, 1, 2)], 2: [(2, 3, 4)], 3: [(3, 5, 6)]})
        board.move(1, mat=2, index=0)
        moved = board.move(1, mat=3, index=0)
        assert moved.original_mat == 1

    def test_move_within_mat(self):
        board = self._five_and_three()
        moved = board.move(5, mat=1, index=0)
        assert _ids(board, 1) == [5, 1, 2, 3, 4]
        assert moved.original_mat is None
        _assert_contiguous(board)

    def test_index_is_clamped(self):
        board = self._five_and_three()
        board.move(1, mat=2, index=99)
        assert _ids(board, 2) == [6, 7, 8, 1]
        board.move(8, mat=1, index=-5)
        assert _ids(board, 1)[0] == 8
        _assert_contiguous(board)

    def test_unknown_bout(self):
        with pytest.raises(MatBoardError):
            self._five_and_three().move(99, mat=1, index=0)

    def test_mat_out_of_range(self):
        with pytest.raises(MatBoardError, match="outside 1..2"):
            self._five_and_three().move(1, mat=3, index=0)


class TestBoard:
    def test_from_bouts_sorts_and_renumbers(self):
        bouts = [
            BoutRef(id=1, red_id=1, green_id=2, mat=1, order=7),
            BoutRef(id=2, red_id=3, green_id=4, mat=1, order=2),
            BoutRef(id=3, red_id=5, green_id=6, mat=None, order=None),
            BoutRef(id=4, red_id=7, green_id=8, mat=5, order=1),
        ]
        board = MatBoard.from_bouts(bouts, num_mats=2)
        assert _ids(board, 1) == [2, 1]
        assert _ids(board, 2) == [4]
        _assert_contiguous(board)

    def test_unassigned_bouts_left_off(self):
        board = MatBoard.from_bouts([BoutRef(id=1, red_id=1, green_id=2)], num_mats=2)
        assert board.all_bouts() == []
        with pytest.raises(MatBoardError):
            board.locate(1)

    def test_removed_mat_follows_last_mat(self):
        bouts = [
            BoutRef(id=1, red_id=1, green_id=2, mat=3, order=1),
            BoutRef(id=2, red_id=3, green_id=4, mat=2, order=2),
            BoutRef(id=3, red_id=5, green_id=6, mat=2, order=1),
        ]
        board = MatBoard.from_bouts(bouts, num_mats=2)
        assert _ids(board, 2) == [3, 2, 1]
        _assert_contiguous(board)

    def test_orders_format(self):
        board = _board({1: [(1, 1, 2)], 2: [(2, 3, 4), (3, 5, 6)]})
        assert board.orders() == {"1": [1], "2": [2, 3]}

    def test_assignments(self):
        board = _board({1: [(1, 1, 2)], 2: [(2, 3, 4)]})
        assert board.assignments() == [(1, 1, 1), (2, 2, 1)]

    def test_replace_mat_requires_permutation(self):
        board = _board({1: [(1, 1, 2), (2, 3, 4)]})
        with pytest.raises(MatBoardError):
            board.replace_mat(1, [board.get(1)])

    def test_remove_renumbers(self):
        board = _board({1: [(1, 1, 2), (2, 3, 4), (3, 5, 6)]})
        board.remove(2)
        assert [(b.id, b.order) for b in board.mat_list(1)] == [(1, 1), (3, 2)]

    def test_zero_mats_rejected(self):
        with pytest.raises(MatBoardError):
            MatBoard(num_mats=0)


class TestConflictSeverity:
    def test_nearest_same_mat_distance(self):
        board = _board({1: [(1, 1, 2), (2, 3, 4), (3, 1, 5), (4, 6, 7), (5, 1, 8)]})
        assert board.conflict_severity(3, 1, gap=4) == 2
        assert board.conflict_severity(1, 1, gap=4) == 2
        assert board.conflict_severity(1, 2, gap=4) is None

    def test_outside_gap_is_no_conflict(self):
        board = _board({1: [(1, 1, 2), (2, 3, 4), (3, 5, 6), (4, 1, 7)]})
        assert board.conflict_severity(1, 1, gap=2) is None
        assert board.conflict_severity(1, 1, gap=3) == 3

    def test_other_mats_do_not_count(self):
        board = _board({1: [(1, 1, 2)], 2: [(2, 1, 3)]})
        assert board.conflict_severity(1, 1, gap=4) is None

    def test_zero_gap(self):
        board = _board({1: [(1, 1, 2), (2, 1, 3)]})
        assert board.conflict_severity(1, 1, gap=0) is None
