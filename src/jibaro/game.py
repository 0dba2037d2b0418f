"""Core rules for Jibaro Tic-Tac-Toe: marks, boards and win detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Tuple


class Mark(str, Enum):
    EMPTY = " "
    FIRST = "X"
    SECOND = "O"

    @property
    def opponent(self) -> "Mark":
        if self is Mark.FIRST:
            return Mark.SECOND
        if self is Mark.SECOND:
            return Mark.FIRST
        return Mark.EMPTY


class Position(NamedTuple):
    row: int
    col: int


# ---------- Errors ----------


class MoveError(ValueError):
    """Base class for moves a board refuses to apply."""


class CellOccupied(MoveError):
    def __init__(self, pos: Position) -> None:
        super().__init__(f"Cell {tuple(pos)} is already occupied")
        self.position = pos


class OutOfBounds(MoveError):
    def __init__(self, pos: Position) -> None:
        super().__init__(f"Cell {tuple(pos)} is outside the board")
        self.position = pos


class GameOver(MoveError):
    """Raised when a move is submitted after the game has finished."""


class SearchExhausted(RuntimeError):
    """The infinite-board engine had no candidate moves at all."""


# ---------- Outcome ----------


class Status(str, Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class GameOutcome:
    status: Status = Status.IN_PROGRESS
    winner: Optional[Mark] = None
    line: Tuple[Position, ...] = ()

    @classmethod
    def in_progress(cls) -> "GameOutcome":
        return cls()

    @classmethod
    def win(cls, mark: Mark, line: Tuple[Position, ...]) -> "GameOutcome":
        return cls(Status.WIN, mark, tuple(line))

    @classmethod
    def draw(cls) -> "GameOutcome":
        return cls(Status.DRAW)

    @property
    def finished(self) -> bool:
        return self.status is not Status.IN_PROGRESS


# ---------- Fixed 3x3 board ----------

SIZE = 3

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def _to_position(idx: int) -> Position:
    return Position(*divmod(idx, SIZE))


@dataclass
class FixedBoard:
    # Row-major: index = row * 3 + col
    cells: List[Mark] = field(default_factory=lambda: [Mark.EMPTY] * 9)

    @classmethod
    def parse(cls, layout: str) -> "FixedBoard":
        """Build a board from 9 characters: ``X``, ``O`` and ``.`` or ``_`` for empty."""
        chars = [ch for ch in layout if not ch.isspace()]
        if len(chars) != 9:
            raise ValueError(f"Expected 9 cells, got {len(chars)}")
        return cls(cells=[Mark(ch) if ch in "XO" else Mark.EMPTY for ch in chars])

    @staticmethod
    def _index(pos: Position) -> int:
        row, col = pos
        if not (0 <= row < SIZE and 0 <= col < SIZE):
            raise OutOfBounds(Position(row, col))
        return row * SIZE + col

    def __getitem__(self, pos: Position) -> Mark:
        return self.cells[self._index(pos)]

    def apply_move(self, pos: Position, mark: Mark) -> None:
        idx = self._index(pos)
        if self.cells[idx] is not Mark.EMPTY:
            raise CellOccupied(Position(*pos))
        self.cells[idx] = mark

    def undo_move(self, pos: Position) -> None:
        self.cells[self._index(pos)] = Mark.EMPTY

    def is_full(self) -> bool:
        return all(c is not Mark.EMPTY for c in self.cells)

    def occupied_count(self) -> int:
        return sum(1 for c in self.cells if c is not Mark.EMPTY)

    def available_moves(self) -> List[Position]:
        return [_to_position(i) for i, c in enumerate(self.cells) if c is Mark.EMPTY]

    def reset(self) -> None:
        self.cells = [Mark.EMPTY] * 9

    def clone(self) -> "FixedBoard":
        return FixedBoard(cells=self.cells.copy())

    def rows(self) -> List[List[Mark]]:
        return [self.cells[r * SIZE : (r + 1) * SIZE] for r in range(SIZE)]


# ---------- Sparse, auto-expanding board ----------

# Seed rectangle: a 5x5 grid with its top-left corner at the origin
SEED_BOUNDS: Tuple[int, int, int, int] = (0, 4, 0, 4)
EXPAND_STEP = 2

NEIGHBOURS: Tuple[Tuple[int, int], ...] = tuple(
    (dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1) if (dr, dc) != (0, 0)
)


@dataclass
class SparseBoard:
    """Unbounded grid storing only occupied cells.

    ``min_row``..``max_row`` and ``min_col``..``max_col`` (inclusive) describe
    the playable rectangle shown to the player; moves outside it are refused.
    It keeps a margin around every placed mark and only ever grows during a
    game.
    """

    cells: Dict[Position, Mark] = field(default_factory=dict)
    min_row: int = SEED_BOUNDS[0]
    max_row: int = SEED_BOUNDS[1]
    min_col: int = SEED_BOUNDS[2]
    max_col: int = SEED_BOUNDS[3]

    def __getitem__(self, pos: Position) -> Mark:
        return self.cells.get(pos, Mark.EMPTY)

    def is_empty(self, pos: Position) -> bool:
        return pos not in self.cells

    def in_bounds(self, pos: Position) -> bool:
        row, col = pos
        return self.min_row <= row <= self.max_row and self.min_col <= col <= self.max_col

    @property
    def bounds(self) -> Tuple[int, int, int, int]:
        return self.min_row, self.max_row, self.min_col, self.max_col

    def apply_move(self, pos: Position, mark: Mark) -> None:
        pos = Position(*pos)
        if not self.in_bounds(pos):
            raise OutOfBounds(pos)
        if not self.is_empty(pos):
            raise CellOccupied(pos)
        self.cells[pos] = mark
        self.expand(pos)

    def expand(self, pos: Position) -> None:
        row, col = pos
        if row <= self.min_row + 1:
            self.min_row -= EXPAND_STEP
        if row >= self.max_row - 1:
            self.max_row += EXPAND_STEP
        if col <= self.min_col + 1:
            self.min_col -= EXPAND_STEP
        if col >= self.max_col - 1:
            self.max_col += EXPAND_STEP

    def occupied(self) -> List[Position]:
        return sorted(self.cells)

    def available_moves(self) -> List[Position]:
        return [
            Position(r, c)
            for r in range(self.min_row, self.max_row + 1)
            for c in range(self.min_col, self.max_col + 1)
            if Position(r, c) not in self.cells
        ]

    def relevant_moves(self) -> List[Position]:
        """Empty cells touching at least one mark, densest neighbourhoods first."""
        touching: Dict[Position, int] = {}
        for row, col in self.cells:
            for dr, dc in NEIGHBOURS:
                adj = Position(row + dr, col + dc)
                if adj not in self.cells:
                    touching[adj] = touching.get(adj, 0) + 1
        return sorted(touching, key=lambda p: (-touching[p], p.row, p.col))

    def reset(self) -> None:
        self.cells = {}
        self.min_row, self.max_row, self.min_col, self.max_col = SEED_BOUNDS

    def clone(self) -> "SparseBoard":
        return SparseBoard(
            cells=dict(self.cells),
            min_row=self.min_row,
            max_row=self.max_row,
            min_col=self.min_col,
            max_col=self.max_col,
        )

    def rows(self) -> List[List[Mark]]:
        return [
            [self[Position(r, c)] for c in range(self.min_col, self.max_col + 1)]
            for r in range(self.min_row, self.max_row + 1)
        ]


# ---------- Win detection ----------

WIN_LENGTH = 5

# Horizontal, vertical, diagonal down-right, diagonal up-right
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((0, 1), (1, 0), (1, 1), (-1, 1))


def check_fixed(board: FixedBoard) -> GameOutcome:
    """Evaluate a 3x3 board: first complete line in row, column, diagonal order."""
    cells = board.cells
    for a, b, c in WINNING_LINES:
        v = cells[a]
        if v is not Mark.EMPTY and v == cells[b] == cells[c]:
            return GameOutcome.win(v, tuple(_to_position(i) for i in (a, b, c)))
    if board.is_full():
        return GameOutcome.draw()
    return GameOutcome.in_progress()


def _run(board: SparseBoard, start: Position, mark: Mark, dr: int, dc: int) -> List[Position]:
    out: List[Position] = []
    pos = Position(start.row + dr, start.col + dc)
    while board[pos] is mark:
        out.append(pos)
        pos = Position(pos.row + dr, pos.col + dc)
    return out


def _line_through(
    board: SparseBoard, pos: Position, mark: Mark
) -> Optional[Tuple[Position, ...]]:
    # ``pos`` itself is not read, so this also answers "what if mark went here"
    for dr, dc in DIRECTIONS:
        backward = _run(board, pos, mark, -dr, -dc)
        forward = _run(board, pos, mark, dr, dc)
        if len(backward) + 1 + len(forward) >= WIN_LENGTH:
            return tuple(reversed(backward)) + (pos,) + tuple(forward)
    return None


def would_complete_line(board: SparseBoard, pos: Position, mark: Mark) -> bool:
    return _line_through(board, Position(*pos), mark) is not None


def check_sparse(board: SparseBoard, last_move: Position) -> GameOutcome:
    """Look for five in a row through ``last_move`` only.

    Any new run must include the cell just played, so this local scan is
    enough. The winning line is ordered from one end of the run to the other.
    """
    last_move = Position(*last_move)
    mark = board[last_move]
    if mark is Mark.EMPTY:
        return GameOutcome.in_progress()
    line = _line_through(board, last_move, mark)
    if line is None:
        return GameOutcome.in_progress()
    return GameOutcome.win(mark, line)
