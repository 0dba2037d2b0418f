"""Game orchestration: turns, AI replies, scores and difficulty across games."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple, Union
import logging

from .ai import BoundedMinimaxEngine, DifficultyController, MinimaxEngine
from .game import (
    FixedBoard,
    GameOutcome,
    GameOver,
    Mark,
    MoveError,
    Position,
    SparseBoard,
    check_fixed,
    check_sparse,
)

logger = logging.getLogger(__name__)

Board = Union[FixedBoard, SparseBoard]

HUMAN_MARK = Mark.FIRST
AI_MARK = Mark.SECOND


class GameMode(str, Enum):
    CLASSIC_VS_HUMAN = "classic_vs_human"
    CLASSIC_VS_AI = "classic_vs_ai"
    INFINITE_VS_HUMAN = "infinite_vs_human"
    INFINITE_VS_AI = "infinite_vs_ai"

    @property
    def infinite(self) -> bool:
        return self in (GameMode.INFINITE_VS_HUMAN, GameMode.INFINITE_VS_AI)

    @property
    def vs_ai(self) -> bool:
        return self in (GameMode.CLASSIC_VS_AI, GameMode.INFINITE_VS_AI)


class UndoUnavailable(ValueError):
    """Nothing to take back, or the board does not support undo."""


# ---------- Collaborators ----------


@dataclass
class PlayerProfile:
    name: str
    emoji: str


def default_players() -> Dict[Mark, PlayerProfile]:
    return {
        Mark.FIRST: PlayerProfile(name="Luna", emoji="🌙"),
        Mark.SECOND: PlayerProfile(name="Papá", emoji="⭐"),
    }


class ScoreKeeper(Protocol):
    """Receives one call per finished game; ``None`` means a draw."""

    def record_outcome(self, mark: Optional[Mark]) -> None: ...

    def reset(self) -> None: ...


@dataclass
class Scoreboard:
    """In-memory score keeper. Persisting the counters is up to the caller."""

    first_wins: int = 0
    second_wins: int = 0
    draws: int = 0

    def record_outcome(self, mark: Optional[Mark]) -> None:
        if mark is Mark.FIRST:
            self.first_wins += 1
        elif mark is Mark.SECOND:
            self.second_wins += 1
        else:
            self.draws += 1

    def reset(self) -> None:
        self.first_wins = self.second_wins = self.draws = 0


# ---------- Session ----------


@dataclass(frozen=True)
class BoardSnapshot:
    """Read-only view handed to the presentation layer."""

    rows: Tuple[Tuple[Mark, ...], ...]
    # Board coordinates of ``rows[0][0]``
    origin: Position
    turn: Mark
    outcome: GameOutcome
    last_move: Optional[Position]


@dataclass
class GameSession:
    """One player-facing game at a time, plus the state that outlives it.

    The board, turn and outcome belong to the current game and are replaced by
    :meth:`new_game`. Scores, player profiles and the difficulty controller
    persist for the life of the session. In AI modes the human plays
    ``Mark.FIRST`` and the AI plays ``Mark.SECOND``; ``human_starts`` decides
    who opens.
    """

    mode: GameMode = GameMode.CLASSIC_VS_AI
    human_starts: bool = True
    scores: ScoreKeeper = field(default_factory=Scoreboard)
    difficulty: DifficultyController = field(default_factory=DifficultyController)
    classic_ai: MinimaxEngine = field(default_factory=MinimaxEngine, repr=False)
    infinite_ai: BoundedMinimaxEngine = field(
        default_factory=BoundedMinimaxEngine, repr=False
    )
    players: Dict[Mark, PlayerProfile] = field(default_factory=default_players)

    board: Board = field(init=False)
    turn: Mark = field(init=False)
    outcome: GameOutcome = field(init=False)
    history: List[Tuple[Mark, Position]] = field(init=False)

    def __post_init__(self) -> None:
        self.new_game(GameMode(self.mode))

    # ---- API used by UI ----

    def new_game(
        self, mode: Optional[GameMode] = None, human_starts: Optional[bool] = None
    ) -> GameOutcome:
        if mode is not None:
            self.mode = GameMode(mode)
        if human_starts is not None:
            self.human_starts = human_starts

        self.board = SparseBoard() if self.mode.infinite else FixedBoard()
        self.turn = HUMAN_MARK if self.human_starts else AI_MARK
        self.outcome = GameOutcome.in_progress()
        self.history = []

        if self._ai_to_move():
            self._play_ai_turn()
        return self.outcome

    def current_turn(self) -> Mark:
        return self.turn

    def apply_move(self, pos: Position) -> GameOutcome:
        """Play ``pos`` for the side to move; rejected moves change nothing."""
        try:
            return self.play_move(pos)
        except MoveError as exc:
            logger.debug("rejected move %s: %s", tuple(pos), exc)
            return self.outcome

    def play_move(self, pos: Position) -> GameOutcome:
        """Like :meth:`apply_move` but raises :class:`MoveError` on rejection."""
        if self.outcome.finished:
            raise GameOver("Game already finished")
        if self._ai_to_move():
            raise MoveError("Waiting for the AI to move")
        self._place(Position(*pos))
        if self._ai_to_move():
            self._play_ai_turn()
        return self.outcome

    def undo(self) -> GameOutcome:
        """Take back the last human move (and the AI reply to it) on the 3x3 board."""
        if self.mode.infinite:
            raise UndoUnavailable("Undo is only available on the classic board")

        if self.mode.vs_ai:
            human_moves = [i for i, (mark, _) in enumerate(self.history) if mark is HUMAN_MARK]
            if not human_moves:
                raise UndoUnavailable("No move to undo")
            cut = human_moves[-1]
        else:
            if not self.history:
                raise UndoUnavailable("No move to undo")
            cut = len(self.history) - 1

        undone = self.history[cut:]
        del self.history[cut:]
        for _, pos in undone:
            self.board.undo_move(pos)
        self.turn = undone[0][0]
        self.outcome = GameOutcome.in_progress()
        return self.outcome

    def reset_scores(self) -> None:
        self.scores.reset()
        self.new_game()

    @property
    def last_move(self) -> Optional[Position]:
        return self.history[-1][1] if self.history else None

    @property
    def winning_line(self) -> Tuple[Position, ...]:
        return self.outcome.line

    def snapshot(self) -> BoardSnapshot:
        if isinstance(self.board, SparseBoard):
            origin = Position(self.board.min_row, self.board.min_col)
        else:
            origin = Position(0, 0)
        return BoardSnapshot(
            rows=tuple(tuple(row) for row in self.board.rows()),
            origin=origin,
            turn=self.turn,
            outcome=self.outcome,
            last_move=self.last_move,
        )

    # ---- helpers ----

    def _ai_to_move(self) -> bool:
        return self.mode.vs_ai and not self.outcome.finished and self.turn is AI_MARK

    def _place(self, pos: Position) -> None:
        mark = self.turn
        self.board.apply_move(pos, mark)
        self.history.append((mark, pos))

        if isinstance(self.board, SparseBoard):
            self.outcome = check_sparse(self.board, pos)
        else:
            self.outcome = check_fixed(self.board)

        if self.outcome.finished:
            self._finish()
        else:
            self.turn = mark.opponent

    def _play_ai_turn(self) -> None:
        if isinstance(self.board, SparseBoard):
            move = self.infinite_ai.best_move(
                self.board.clone(), AI_MARK, HUMAN_MARK, self.difficulty.search_depth
            )
        else:
            move = self.classic_ai.best_move(self.board.clone(), AI_MARK, HUMAN_MARK)
        if move is None:
            logger.warning("AI found no move; waiting on %s", self.mode.value)
            return
        self._place(move)

    def _finish(self) -> None:
        winner = self.outcome.winner
        logger.info(
            "%s game over: %s", self.mode.value, winner.name if winner else "draw"
        )
        self.scores.record_outcome(winner)
        if self.mode is GameMode.INFINITE_VS_AI:
            self.difficulty.observe(self.outcome, AI_MARK)
