"""
Game History - One index entry per game played at this table.

An entry is created the first time a session is saved and rewritten on
every later save, so it always shows the latest round reached. The
index keeps only the most recent MAX_HISTORY_ENTRIES games.

Usage:
    history = JsonFileGameHistory("saves/history.json")
    history.record(session)
    history.entries()  # oldest first
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from ..engine_core.state import GamePhase, GameSession, utc_now
from ..engine_core.errors import GameStateCorruptionError

MAX_HISTORY_ENTRIES = 50


class GameStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass
class HistoryPlayer:
    player_id: str
    name: str


@dataclass
class GameHistoryEntry:
    session_id: str
    start_time: datetime
    players: list[HistoryPlayer] = field(default_factory=list)
    rounds_reached: int = 1
    status: GameStatus = GameStatus.IN_PROGRESS
    end_time: datetime | None = None


_HISTORY_ADAPTER = TypeAdapter(list[GameHistoryEntry])


def entry_for(session: GameSession, previous: GameHistoryEntry | None = None) -> GameHistoryEntry:
    """The index entry describing `session` now."""
    completed = session.current_phase == GamePhase.GAME_END
    end_time = None
    if completed:
        # The first save at game-end fixes the end time.
        end_time = previous.end_time if previous and previous.end_time else utc_now()
    return GameHistoryEntry(
        session_id=session.session_id,
        start_time=session.created_at,
        players=[HistoryPlayer(p.player_id, p.name) for p in session.players],
        rounds_reached=session.current_round,
        status=GameStatus.COMPLETED if completed else GameStatus.IN_PROGRESS,
        end_time=end_time,
    )


def update_history(
    entries: list[GameHistoryEntry],
    session: GameSession,
    limit: int = MAX_HISTORY_ENTRIES,
) -> list[GameHistoryEntry]:
    """Replace or append the session's entry, then keep the newest `limit`."""
    updated = list(entries)
    for i, existing in enumerate(updated):
        if existing.session_id == session.session_id:
            updated[i] = entry_for(session, existing)
            break
    else:
        updated.append(entry_for(session))
    return updated[-limit:]


class GameHistory(ABC):
    """Index of games, oldest first."""

    def __init__(self, limit: int = MAX_HISTORY_ENTRIES):
        self.limit = limit

    @abstractmethod
    def entries(self) -> list[GameHistoryEntry]:
        ...

    @abstractmethod
    def _write(self, entries: list[GameHistoryEntry]) -> None:
        ...

    def record(self, session: GameSession) -> GameHistoryEntry:
        updated = update_history(self.entries(), session, self.limit)
        self._write(updated)
        return next(e for e in updated if e.session_id == session.session_id)

    def get(self, session_id: str) -> GameHistoryEntry | None:
        for entry in self.entries():
            if entry.session_id == session_id:
                return entry
        return None


class InMemoryGameHistory(GameHistory):
    def __init__(self, limit: int = MAX_HISTORY_ENTRIES):
        super().__init__(limit)
        self._entries: list[GameHistoryEntry] = []

    def entries(self) -> list[GameHistoryEntry]:
        return list(self._entries)

    def _write(self, entries: list[GameHistoryEntry]) -> None:
        self._entries = list(entries)


class JsonFileGameHistory(GameHistory):
    """The whole index as one JSON array. Timestamps come back as datetimes."""

    def __init__(self, path: str | Path, limit: int = MAX_HISTORY_ENTRIES):
        super().__init__(limit)
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def entries(self) -> list[GameHistoryEntry]:
        if not self.path.exists():
            return []
        try:
            return _HISTORY_ADAPTER.validate_json(self.path.read_bytes().decode("utf-8"))
        except UnicodeDecodeError as e:
            raise GameStateCorruptionError(f"History file {self.path} is not UTF-8: {e.reason}") from e
        except ValidationError as e:
            raise GameStateCorruptionError(
                f"Invalid history file {self.path}: {e.error_count()} error(s)"
            ) from e

    def _write(self, entries: list[GameHistoryEntry]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_bytes(_HISTORY_ADAPTER.dump_json(entries, indent=2))
        tmp_path.replace(self.path)
