"""FastAPI JSON API letting a browser front-end drive game sessions."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .game import Mark, MoveError, Position, SparseBoard
from .session import GameMode, GameSession, PlayerProfile, Scoreboard, UndoUnavailable

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    """Registered session and the lock serialising requests against it."""

    session: GameSession
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    last_seen: float = field(default_factory=lambda: time.time())


SESSIONS: Dict[str, SessionEntry] = {}
app = FastAPI(
    title="Jibaro Tic-Tac-Toe",
    description="Classic and infinite tic-tac-toe with an adaptive AI",
)

MAX_NAME_LENGTH = 20
SESSION_TTL_SECONDS = 60 * 60 * 6  # 6 hours idle


class NewGameRequest(BaseModel):
    """Request payload for starting a new session."""

    model_config = ConfigDict(populate_by_name=True)

    mode: GameMode = Field(default=GameMode.CLASSIC_VS_AI)
    human_starts: bool = Field(default=True, alias="humanStarts")


class RestartRequest(BaseModel):
    """Request payload for starting the next game in an existing session."""

    mode: Optional[GameMode] = None


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    row: int
    col: int


class ProfileModel(BaseModel):
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    emoji: str = Field(min_length=1, max_length=8)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Player name must not be blank")
        return value


class PlayersRequest(BaseModel):
    first: ProfileModel
    second: ProfileModel


def _cleanup_sessions() -> None:
    """Forget sessions nobody has touched for SESSION_TTL_SECONDS."""

    now = time.time()
    expired = [
        game_id
        for game_id, entry in list(SESSIONS.items())
        if now - entry.last_seen >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("evicted %d idle sessions", len(expired))


def _create_session(mode: GameMode, human_starts: bool) -> Tuple[str, SessionEntry]:
    """Create a new session and register it for later access."""

    _cleanup_sessions()
    entry = SessionEntry(session=GameSession(mode=mode, human_starts=human_starts))
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = entry
    return session_id, entry


def _get_entry(game_id: str) -> SessionEntry:
    try:
        entry = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    entry.last_seen = time.time()
    return entry


def _position(pos: Optional[Position]) -> Optional[Dict[str, int]]:
    if pos is None:
        return None
    return {"row": pos.row, "col": pos.col}


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    snapshot = session.snapshot()
    outcome = snapshot.outcome
    board = session.board

    cells: List[List[str]] = [
        [c.value if c is not Mark.EMPTY else "" for c in row] for row in snapshot.rows
    ]
    if isinstance(board, SparseBoard):
        bounds = {
            "minRow": board.min_row,
            "maxRow": board.max_row,
            "minCol": board.min_col,
            "maxCol": board.max_col,
        }
    else:
        bounds = {"minRow": 0, "maxRow": 2, "minCol": 0, "maxCol": 2}

    state: Dict[str, object] = {
        "id": game_id,
        "mode": session.mode.value,
        "currentPlayer": snapshot.turn.value,
        "outcome": outcome.status.value,
        "winner": outcome.winner.value if outcome.winner else None,
        "winningLine": [_position(p) for p in outcome.line],
        "cells": cells,
        "bounds": bounds,
        "lastMove": _position(snapshot.last_move),
        "moveLog": [
            {"player": mark.value, "row": pos.row, "col": pos.col}
            for mark, pos in session.history
        ],
        "players": {
            mark.value: {"name": profile.name, "emoji": profile.emoji}
            for mark, profile in session.players.items()
        },
    }
    if isinstance(session.scores, Scoreboard):
        state["scores"] = {
            "first": session.scores.first_wins,
            "second": session.scores.second_wins,
            "draws": session.scores.draws,
        }
    if session.mode is GameMode.INFINITE_VS_AI:
        state["difficulty"] = {
            "tier": session.difficulty.tier.name.lower(),
            "searchDepth": session.difficulty.search_depth,
        }
    return state


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, entry = _create_session(request.mode, request.human_starts)
    with entry.lock:
        return _serialize_session(game_id, entry.session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    entry = _get_entry(game_id)
    with entry.lock:
        return _serialize_session(game_id, entry.session)


@app.post("/api/game/{game_id}/move")
def make_move(game_id: str, request: MoveRequest) -> Dict[str, object]:
    entry = _get_entry(game_id)
    with entry.lock:
        try:
            entry.session.play_move(Position(request.row, request.col))
        except MoveError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _serialize_session(game_id, entry.session)


@app.post("/api/game/{game_id}/new")
def restart_game(game_id: str, request: RestartRequest) -> Dict[str, object]:
    entry = _get_entry(game_id)
    with entry.lock:
        entry.session.new_game(request.mode)
        return _serialize_session(game_id, entry.session)


@app.post("/api/game/{game_id}/undo")
def undo_move(game_id: str) -> Dict[str, object]:
    entry = _get_entry(game_id)
    with entry.lock:
        try:
            entry.session.undo()
        except UndoUnavailable as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _serialize_session(game_id, entry.session)


@app.post("/api/game/{game_id}/scores/reset")
def reset_scores(game_id: str) -> Dict[str, object]:
    entry = _get_entry(game_id)
    with entry.lock:
        entry.session.reset_scores()
        return _serialize_session(game_id, entry.session)


@app.put("/api/game/{game_id}/players")
def update_players(game_id: str, request: PlayersRequest) -> Dict[str, object]:
    entry = _get_entry(game_id)
    with entry.lock:
        entry.session.players = {
            Mark.FIRST: PlayerProfile(name=request.first.name, emoji=request.first.emoji),
            Mark.SECOND: PlayerProfile(name=request.second.name, emoji=request.second.emoji),
        }
        logger.debug("players updated for game %s", game_id)
        return _serialize_session(game_id, entry.session)
