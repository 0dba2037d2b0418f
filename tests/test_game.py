"""Unit tests for Jibaro boards and win detection."""

import pytest

from jibaro.game import (
    CellOccupied,
    FixedBoard,
    Mark,
    OutOfBounds,
    Position,
    SparseBoard,
    Status,
    check_fixed,
    check_sparse,
    would_complete_line,
)


X, O = Mark.FIRST, Mark.SECOND


def test_fixed_board_starts_empty():
    board = FixedBoard()
    moves = board.available_moves()
    assert len(moves) == 9
    assert moves[0] == Position(0, 0)
    assert moves[-1] == Position(2, 2)
    assert not board.is_full()


def test_available_plus_occupied_is_nine_along_a_game():
    board = FixedBoard()
    mark = X
    for pos in [(1, 1), (0, 0), (2, 2), (0, 2), (0, 1), (2, 1), (1, 0), (1, 2), (2, 0)]:
        board.apply_move(Position(*pos), mark)
        assert len(board.available_moves()) + board.occupied_count() == 9
        mark = mark.opponent
    assert board.is_full()


def test_occupied_cell_is_rejected_without_changes():
    board = FixedBoard()
    board.apply_move(Position(0, 0), X)
    before = board.cells.copy()

    for _ in range(2):
        with pytest.raises(CellOccupied):
            board.apply_move(Position(0, 0), O)
        assert board.cells == before


@pytest.mark.parametrize("pos", [(-1, 0), (3, 0), (0, 3), (5, -2)])
def test_out_of_bounds_is_rejected(pos):
    board = FixedBoard()
    with pytest.raises(OutOfBounds):
        board.apply_move(Position(*pos), X)
    assert board.occupied_count() == 0


def test_fixed_clone_is_independent():
    board = FixedBoard.parse("X.. .O. ...")
    copy = board.clone()
    copy.apply_move(Position(2, 2), X)
    assert board.cells == FixedBoard.parse("X.. .O. ...").cells
    assert board[Position(2, 2)] is Mark.EMPTY


def test_check_fixed_top_row_win():
    board = FixedBoard.parse("XXX _OO __O")
    outcome = check_fixed(board)
    assert outcome.status is Status.WIN
    assert outcome.winner is X
    assert outcome.line == (Position(0, 0), Position(0, 1), Position(0, 2))


def test_check_fixed_draw():
    board = FixedBoard.parse("XOX OXO OXO")
    outcome = check_fixed(board)
    assert outcome.status is Status.DRAW
    assert outcome.winner is None


def test_check_fixed_in_progress_and_diagonal():
    assert check_fixed(FixedBoard.parse("X.. .O. ...")).status is Status.IN_PROGRESS
    outcome = check_fixed(FixedBoard.parse("..O .O. OXX"))
    assert outcome.winner is O
    assert outcome.line == (Position(0, 2), Position(1, 1), Position(2, 0))


def test_check_fixed_prefers_rows_over_columns():
    # Not reachable in a real game, but the scan order still decides
    board = FixedBoard.parse("XXX X.. X..")
    assert check_fixed(board).line == (Position(0, 0), Position(0, 1), Position(0, 2))


def test_sparse_board_seed_bounds():
    board = SparseBoard()
    assert board.bounds == (0, 4, 0, 4)
    assert len(board.available_moves()) == 25
    assert board.relevant_moves() == []


def test_sparse_edge_move_expands_by_two():
    board = SparseBoard()
    board.apply_move(Position(board.min_row, 2), X)
    assert board.min_row == -2
    assert (board.max_row, board.min_col, board.max_col) == (4, 0, 4)


def test_sparse_interior_move_keeps_bounds():
    board = SparseBoard()
    board.apply_move(Position(2, 2), X)
    assert board.bounds == (0, 4, 0, 4)


def test_sparse_corner_move_expands_two_sides():
    board = SparseBoard()
    board.apply_move(Position(4, 4), X)
    assert board.bounds == (0, 6, 0, 6)


@pytest.mark.parametrize("pos", [(1000, -1000), (5, 2), (2, -1), (-1, 4)])
def test_sparse_move_outside_window_rejected(pos):
    board = SparseBoard()
    with pytest.raises(OutOfBounds):
        board.apply_move(Position(*pos), X)
    assert board.cells == {}
    assert board.bounds == (0, 4, 0, 4)


def test_sparse_window_keeps_margin_around_marks():
    board = SparseBoard()
    pos = Position(2, 2)
    for _ in range(6):
        pos = Position(pos.row + 1, pos.col - 1)
        board.apply_move(pos, X)
        for dr, dc in ((1, 0), (0, -1)):
            assert board.in_bounds(Position(pos.row + dr, pos.col + dc))


def test_sparse_occupied_cell_rejected():
    board = SparseBoard()
    board.apply_move(Position(2, 2), X)
    with pytest.raises(CellOccupied):
        board.apply_move(Position(2, 2), O)
    assert board[Position(2, 2)] is X
    assert board.bounds == (0, 4, 0, 4)


def test_sparse_relevant_moves_surround_marks():
    board = SparseBoard()
    board.apply_move(Position(2, 2), X)
    relevant = board.relevant_moves()
    assert len(relevant) == 8
    assert all(max(abs(p.row - 2), abs(p.col - 2)) == 1 for p in relevant)

    board.apply_move(Position(2, 3), O)
    relevant = board.relevant_moves()
    # Cells touching both marks come first
    assert set(relevant[:4]) == {Position(1, 2), Position(1, 3), Position(3, 2), Position(3, 3)}
    assert Position(2, 2) not in relevant


def test_sparse_clone_is_independent():
    board = SparseBoard()
    board.apply_move(Position(2, 2), X)
    copy = board.clone()
    copy.apply_move(Position(0, 0), O)

    assert Position(0, 0) not in board.cells
    assert board.bounds == (0, 4, 0, 4)
    assert copy.bounds == (-2, 4, -2, 4)


def test_sparse_reset_restores_seed():
    board = SparseBoard()
    board.apply_move(Position(0, 0), X)
    board.reset()
    assert board.cells == {}
    assert board.bounds == (0, 4, 0, 4)


def test_check_sparse_five_horizontal():
    board = SparseBoard()
    for col in range(5):
        board.apply_move(Position(0, col), X)
    outcome = check_sparse(board, Position(0, 2))
    assert outcome.status is Status.WIN
    assert outcome.winner is X
    assert outcome.line == tuple(Position(0, c) for c in range(5))


def test_check_sparse_four_is_not_enough():
    board = SparseBoard()
    for col in range(4):
        board.apply_move(Position(0, col), X)
    assert check_sparse(board, Position(0, 3)).status is Status.IN_PROGRESS


def test_check_sparse_diagonals_and_negative_coordinates():
    board = SparseBoard()
    for i in range(5):
        board.apply_move(Position(-i, i), O)
    outcome = check_sparse(board, Position(-2, 2))
    assert outcome.winner is O
    assert len(outcome.line) == 5
    assert outcome.line[0] == Position(0, 0)
    assert outcome.line[-1] == Position(-4, 4)


def test_check_sparse_broken_run():
    board = SparseBoard()
    for col in (0, 1, 3, 4):
        board.apply_move(Position(1, col), X)
    board.apply_move(Position(1, 2), O)
    assert check_sparse(board, Position(1, 2)).status is Status.IN_PROGRESS
    assert check_sparse(board, Position(7, 7)).status is Status.IN_PROGRESS


def test_would_complete_line():
    board = SparseBoard()
    for col in range(4):
        board.apply_move(Position(3, col), X)
    assert would_complete_line(board, Position(3, 4), X)
    assert would_complete_line(board, Position(3, -1), X)
    assert not would_complete_line(board, Position(3, 4), O)
    assert not would_complete_line(board, Position(4, 4), X)
