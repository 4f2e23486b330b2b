"""
Session Serialization - GameSession <-> JSON document.

The engine types are plain dataclasses; pydantic's TypeAdapter dumps and
validates them without a parallel model hierarchy. Enums are written as
their values and timestamps as ISO-8601 strings, decoded back to
timezone-aware datetimes on load.
"""

from __future__ import annotations
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..engine_core.state import GameSession
from ..engine_core.errors import GameStateCorruptionError

_SESSION_ADAPTER = TypeAdapter(GameSession)


def serialize_session(session: GameSession, indent: int | None = 2) -> str:
    return _SESSION_ADAPTER.dump_json(session, indent=indent).decode("utf-8")


def session_to_dict(session: GameSession) -> dict[str, Any]:
    """JSON-compatible dict (enums as values, datetimes as strings)."""
    return _SESSION_ADAPTER.dump_python(session, mode="json")


def deserialize_session(document: str | bytes) -> GameSession:
    """
    Decode a saved session.

    Raises GameStateCorruptionError when the document is not valid JSON or
    does not describe a session.
    """
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8")
        except UnicodeDecodeError as e:
            raise GameStateCorruptionError(f"Session document is not UTF-8: {e.reason}") from e
    try:
        return _SESSION_ADAPTER.validate_json(document)
    except ValidationError as e:
        raise GameStateCorruptionError(
            f"Invalid session document: {e.error_count()} error(s)"
        ) from e


def session_from_dict(data: dict[str, Any]) -> GameSession:
    try:
        return _SESSION_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise GameStateCorruptionError(
            f"Invalid session data: {e.error_count()} error(s)"
        ) from e
