"""Minimax opponents for the classic and infinite boards, plus adaptive difficulty."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Tuple
import logging
import math
import random

from .game import (
    FixedBoard,
    GameOutcome,
    Mark,
    Position,
    SearchExhausted,
    SparseBoard,
    Status,
    check_fixed,
    check_sparse,
    would_complete_line,
)

logger = logging.getLogger(__name__)


# ---------- Classic board: exhaustive minimax ----------


@dataclass
class MinimaxEngine:
    """Unbeatable 3x3 opponent.

    Scores are ``10 - depth`` for an AI win, ``depth - 10`` for a human win and
    0 for a draw, so quicker wins and slower losses are preferred. Ties keep
    the first move in row-major order, which makes the choice deterministic.
    """

    # (cells, ai mark, side to move, depth) -> score
    _cache: Dict[Tuple[Tuple[Mark, ...], Mark, Mark, int], int] = field(
        default_factory=dict, repr=False
    )

    def best_move(
        self, board: FixedBoard, ai_mark: Mark, human_mark: Mark
    ) -> Optional[Position]:
        best_move: Optional[Position] = None
        best_score = -math.inf
        for move in board.available_moves():
            child = board.clone()
            child.apply_move(move, ai_mark)
            score = self._minimax(child, 0, False, ai_mark, human_mark)
            if score > best_score:
                best_score, best_move = score, move
        logger.debug("classic AI picked %s (score %s)", best_move, best_score)
        return best_move

    def _minimax(
        self,
        board: FixedBoard,
        depth: int,
        maximizing: bool,
        ai_mark: Mark,
        human_mark: Mark,
    ) -> int:
        outcome = check_fixed(board)
        if outcome.status is Status.WIN:
            return 10 - depth if outcome.winner is ai_mark else depth - 10
        if outcome.status is Status.DRAW:
            return 0

        to_move = ai_mark if maximizing else human_mark
        key = (tuple(board.cells), ai_mark, to_move, depth)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        scores = []
        for move in board.available_moves():
            child = board.clone()
            child.apply_move(move, to_move)
            scores.append(
                self._minimax(child, depth + 1, not maximizing, ai_mark, human_mark)
            )
        value = max(scores) if maximizing else min(scores)
        self._cache[key] = value
        return value


# ---------- Infinite board: bounded alpha-beta ----------

ROOT_CANDIDATES = 20
PLY_CANDIDATES = 10
WIN_SCORE = 1000


@dataclass
class BoundedMinimaxEngine:
    """Depth-limited alpha-beta search over the moves next to existing marks.

    Leaves at the depth limit evaluate to 0: strength comes from how deep the
    search looks (see ``DifficultyTier``), not from a positional heuristic.
    """

    rng: random.Random = field(default_factory=random.Random, repr=False)
    root_candidates: int = ROOT_CANDIDATES
    ply_candidates: int = PLY_CANDIDATES

    def best_move(
        self,
        board: SparseBoard,
        ai_mark: Mark,
        human_mark: Mark,
        max_depth: int,
    ) -> Optional[Position]:
        try:
            candidates = self._root_candidates(board, ai_mark)
        except SearchExhausted:
            logger.exception("infinite AI has no move to play")
            return None

        alpha, beta = -math.inf, math.inf
        best_move: Optional[Position] = None
        best_score = -math.inf
        for move in candidates:
            child = board.clone()
            child.apply_move(move, ai_mark)
            if check_sparse(child, move).status is Status.WIN:
                score: float = WIN_SCORE
            else:
                score = self._alphabeta(
                    child, 0, alpha, beta, False, ai_mark, human_mark, max_depth
                )
            if score > best_score:
                best_score, best_move = score, move
            alpha = max(alpha, best_score)

        if best_move is None:
            best_move = self.rng.choice(candidates)
        logger.debug(
            "infinite AI picked %s (score %s, depth %d)", best_move, best_score, max_depth
        )
        return best_move

    def _root_candidates(self, board: SparseBoard, mover: Mark) -> List[Position]:
        moves = self._candidates(board, mover, self.root_candidates)
        if not moves:
            raise SearchExhausted("No candidate moves on the infinite board")
        return moves

    def _candidates(self, board: SparseBoard, mover: Mark, cap: int) -> List[Position]:
        """Moves worth searching, capped; wins first, then blocks, then by density."""
        moves = board.relevant_moves() or board.available_moves()
        moves.sort(
            key=lambda m: (
                not would_complete_line(board, m, mover),
                not would_complete_line(board, m, mover.opponent),
            )
        )
        return moves[:cap]

    def _alphabeta(
        self,
        board: SparseBoard,
        depth: int,
        alpha: float,
        beta: float,
        maximizing: bool,
        ai_mark: Mark,
        human_mark: Mark,
        max_depth: int,
    ) -> float:
        if depth >= max_depth:
            return self._evaluate(board)

        mover = ai_mark if maximizing else human_mark
        moves = self._candidates(board, mover, self.ply_candidates)
        if not moves:
            return self._evaluate(board)

        if maximizing:
            value = -math.inf
            for move in moves:
                child = board.clone()
                child.apply_move(move, mover)
                if check_sparse(child, move).status is Status.WIN:
                    return WIN_SCORE - depth
                value = max(
                    value,
                    self._alphabeta(
                        child, depth + 1, alpha, beta, False, ai_mark, human_mark, max_depth
                    ),
                )
                alpha = max(alpha, value)
                if beta <= alpha:
                    break
        else:
            value = math.inf
            for move in moves:
                child = board.clone()
                child.apply_move(move, mover)
                if check_sparse(child, move).status is Status.WIN:
                    return -WIN_SCORE + depth
                value = min(
                    value,
                    self._alphabeta(
                        child, depth + 1, alpha, beta, True, ai_mark, human_mark, max_depth
                    ),
                )
                beta = min(beta, value)
                if beta <= alpha:
                    break
        return value

    def _evaluate(self, board: SparseBoard) -> float:
        return 0.0


# ---------- Adaptive difficulty ----------


class DifficultyTier(IntEnum):
    EASY = 1
    MEDIUM = 2
    HARD = 3
    EXPERT = 4

    @property
    def search_depth(self) -> int:
        return self.value * 2


HUMAN_STREAK_TO_ADVANCE = 2
AI_STREAK_TO_REGRESS = 3


@dataclass
class DifficultyController:
    """Tracks win streaks across games and moves the infinite AI between tiers."""

    tier: DifficultyTier = DifficultyTier.MEDIUM
    human_streak: int = 0
    ai_streak: int = 0

    @property
    def search_depth(self) -> int:
        return self.tier.search_depth

    def on_human_win(self) -> None:
        self.human_streak += 1
        self.ai_streak = 0
        if self.human_streak >= HUMAN_STREAK_TO_ADVANCE and self.tier < DifficultyTier.EXPERT:
            self.tier = DifficultyTier(self.tier + 1)
            self.human_streak = 0
            logger.info("difficulty raised to %s", self.tier.name)

    def on_ai_win(self) -> None:
        self.ai_streak += 1
        self.human_streak = 0
        if self.ai_streak >= AI_STREAK_TO_REGRESS and self.tier > DifficultyTier.EASY:
            self.tier = DifficultyTier(self.tier - 1)
            self.ai_streak = 0
            logger.info("difficulty lowered to %s", self.tier.name)

    def on_draw(self) -> None:
        self.human_streak = 0
        self.ai_streak = 0

    def observe(self, outcome: GameOutcome, ai_mark: Mark) -> None:
        if outcome.status is Status.DRAW:
            self.on_draw()
        elif outcome.status is Status.WIN:
            if outcome.winner is ai_mark:
                self.on_ai_win()
            else:
                self.on_human_win()
