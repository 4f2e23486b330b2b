"""
Pytest fixtures for Oshigame tests.
"""

from dataclasses import replace

import pytest

from ..config import GameConfig
from ..engine_core.state import GamePhase, GameSession, GoodsType
from ..engine_core.action import PlayerSetup
from ..engine_core.board import place_piece
from ..engine_core.reducer import Reducer
from ..engine_core.rng import ScriptedRandom
from ..engine_core.setup import create_session


def equip(session: GameSession, piece_id: str, goods: GoodsType) -> GameSession:
    """Put goods on a piece without paying for them."""
    piece = session.get_piece(piece_id)
    owner = session.get_player(piece.player_id)
    return session.with_player(owner.with_piece(replace(piece, goods=goods)))


def equip_and_place(session: GameSession, piece_id: str, goods: GoodsType, spot_id: int) -> GameSession:
    return place_piece(equip(session, piece_id, goods), piece_id, spot_id)


def at_phase(session: GameSession, phase: GamePhase, **kwargs) -> GameSession:
    return session._copy_with(current_phase=phase, **kwargs)


@pytest.fixture
def two_player_session() -> GameSession:
    """A fresh 2-player game in the setup phase."""
    return create_session(
        [PlayerSetup("Aoi"), PlayerSetup("Ren")],
        session_id="test-game",
    )


@pytest.fixture
def three_player_session() -> GameSession:
    return create_session(
        [PlayerSetup("Aoi"), PlayerSetup("Ren"), PlayerSetup("Mio")],
        session_id="test-game-3",
    )


@pytest.fixture
def labor_session(two_player_session) -> GameSession:
    return at_phase(two_player_session, GamePhase.LABOR)


@pytest.fixture
def goods_session(two_player_session) -> GameSession:
    return at_phase(two_player_session, GamePhase.OSHIKATSU_GOODS)


@pytest.fixture
def placement_session(two_player_session) -> GameSession:
    return at_phase(two_player_session, GamePhase.OSHIKATSU_PLACEMENT)


@pytest.fixture
def make_reducer():
    """Build a reducer whose dice and draws are scripted."""
    def factory(dice=(), sample_indices=(), choice_indices=(), **config) -> Reducer:
        return Reducer(
            config=GameConfig(**config),
            rng=ScriptedRandom(dice, sample_indices, choice_indices),
        )
    return factory
