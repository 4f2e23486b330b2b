"""
Session Store - Saves and loads the current session.

The store:
- Holds exactly one "current game" document
- Writes JSON through the session serializer
- Leaves validation and repair to the caller (see recover_session)

Usage:
    store = FileSessionStore("saves/current.json")
    store.save(session)
    session = store.load()  # None if nothing saved
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
import logging

from ..engine_core.state import GameSession
from .serialization import deserialize_session, serialize_session

logger = logging.getLogger(__name__)

DEFAULT_SAVE_NAME = "current_session.json"


class SessionStore(ABC):
    """Persistence provider for the current session."""

    @abstractmethod
    def save(self, session: GameSession) -> None:
        ...

    @abstractmethod
    def load(self) -> GameSession | None:
        """The saved session, or None. Raises GameStateCorruptionError for a damaged save."""

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemorySessionStore(SessionStore):
    """Keeps the serialized document in memory. For tests and the HTTP app."""

    def __init__(self):
        self._document: str | None = None

    def save(self, session: GameSession) -> None:
        self._document = serialize_session(session)

    def load(self) -> GameSession | None:
        if self._document is None:
            return None
        return deserialize_session(self._document)

    def clear(self) -> None:
        self._document = None


class FileSessionStore(SessionStore):
    """
    One JSON file on local disk.

    Writes go to a temporary sibling first and are then renamed over the
    save, so a crash mid-write leaves the previous save intact.
    """

    def __init__(self, path: str | Path | None = None):
        if path is None:
            path = Path("saves") / DEFAULT_SAVE_NAME
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def save(self, session: GameSession) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(serialize_session(session))
        tmp_path.replace(self.path)
        logger.debug("Saved session %s to %s", session.session_id, self.path)

    def load(self) -> GameSession | None:
        if not self.path.exists():
            return None
        return deserialize_session(self.path.read_bytes())

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
