"""
Session module - Running a local game.

Provides:
- GameController: owns the session snapshot and dispatches operations
- SessionStore: save/load the current game (file or memory)
- LogSink: append-only action log per session
- GameHistory: index of recent games and their status
- GameLoop: bot-driven automated play
"""

from .controller import GameController
from .game_loop import GameLoop, GameLoopError, GameSummary, LoopState
from .history import (
    GameHistory,
    GameHistoryEntry,
    GameStatus,
    InMemoryGameHistory,
    JsonFileGameHistory,
)
from .log_sink import GameLogEntry, InMemoryLogSink, JsonFileLogSink, LogSink
from .persistence import FileSessionStore, InMemorySessionStore, SessionStore
from .serialization import deserialize_session, serialize_session

__all__ = [
    "GameController",
    "GameLoop",
    "GameLoopError",
    "GameSummary",
    "LoopState",
    "GameHistory",
    "GameHistoryEntry",
    "GameStatus",
    "InMemoryGameHistory",
    "JsonFileGameHistory",
    "GameLogEntry",
    "InMemoryLogSink",
    "JsonFileLogSink",
    "LogSink",
    "FileSessionStore",
    "InMemorySessionStore",
    "SessionStore",
    "deserialize_session",
    "serialize_session",
]
