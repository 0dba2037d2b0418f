"""Jibaro Tic-Tac-Toe package exposing game rules, AI opponents, sessions and the web API."""

from .ai import BoundedMinimaxEngine, DifficultyController, DifficultyTier, MinimaxEngine
from .game import FixedBoard, GameOutcome, Mark, Position, SparseBoard
from .session import GameMode, GameSession
from .ui import app

__all__ = [
    "BoundedMinimaxEngine",
    "DifficultyController",
    "DifficultyTier",
    "FixedBoard",
    "GameMode",
    "GameOutcome",
    "GameSession",
    "Mark",
    "MinimaxEngine",
    "Position",
    "SparseBoard",
    "app",
]
