"""
Game Log Sink - Append-only action log, keyed by session id.

Every accepted action is recorded with the round and phase it happened
in. Entries are never rewritten; the file sink writes one JSON object per
line per session.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from ..engine_core.state import GamePhase, utc_now


@dataclass
class GameLogEntry:
    session_id: str
    action: str
    round_number: int
    phase: GamePhase
    player_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)


_ENTRY_ADAPTER = TypeAdapter(GameLogEntry)


class LogSink(ABC):
    @abstractmethod
    def append(self, entry: GameLogEntry) -> None:
        ...

    @abstractmethod
    def entries(self, session_id: str) -> list[GameLogEntry]:
        """All entries for a session, oldest first."""

    @abstractmethod
    def session_ids(self) -> list[str]:
        """Sessions that have at least one entry."""


class InMemoryLogSink(LogSink):
    def __init__(self):
        self._entries: dict[str, list[GameLogEntry]] = {}

    def append(self, entry: GameLogEntry) -> None:
        self._entries.setdefault(entry.session_id, []).append(entry)

    def entries(self, session_id: str) -> list[GameLogEntry]:
        return list(self._entries.get(session_id, []))

    def session_ids(self) -> list[str]:
        return list(self._entries)


class JsonFileLogSink(LogSink):
    """
    One JSON Lines file per session under `log_dir`.

    Usage:
        sink = JsonFileLogSink("saves/logs")
        sink.append(entry)
        sink.entries(session_id)
    """

    def __init__(self, log_dir: str | Path):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        return self.log_dir / f"{session_id}.jsonl"

    def append(self, entry: GameLogEntry) -> None:
        line = _ENTRY_ADAPTER.dump_json(entry).decode("utf-8")
        with open(self._path(entry.session_id), "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def entries(self, session_id: str) -> list[GameLogEntry]:
        path = self._path(session_id)
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as f:
            return [_ENTRY_ADAPTER.validate_json(line) for line in f if line.strip()]

    def session_ids(self) -> list[str]:
        return sorted(p.stem for p in self.log_dir.glob("*.jsonl"))
