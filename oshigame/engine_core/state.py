"""
Game State - The session snapshot the engine operates on.

Design principles:
- Immutable-friendly: all mutations return new state
- Serializable: plain dataclasses, dumped/loaded through pydantic
- Id-keyed lookups for players, pieces and spots
- Order-sensitive lists (players, spot occupants, waiting players) keep insertion order
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum, IntEnum


class GamePhase(str, Enum):
    """Phases of a round, plus the terminal game-end phase."""
    SETUP = "setup"
    LABOR = "labor"
    OSHIKATSU_DECISION = "oshikatsu-decision"
    OSHIKATSU_GOODS = "oshikatsu-goods"
    OSHIKATSU_PLACEMENT = "oshikatsu-placement"
    FANSA_TIME = "fansa-time"
    ROUND_END = "round-end"
    GAME_END = "game-end"


class PlayerColor(str, Enum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"


class GoodsType(str, Enum):
    """Purchasable goods. Each one changes how a piece scores."""
    UCHIWA = "uchiwa"  # fan-cheer: +1 from an adjacent oshi
    PENLIGHT = "penlight"  # glow-stick: +1 from the opposite oshi
    SASHIIRE = "sashiire"  # gift: doubles the basic split, enables clones


class OshikatsuDecision(str, Enum):
    PARTICIPATE = "participate"
    REST = "rest"


class OshiId(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class CardOrientation(str, Enum):
    FRONT = "front"
    BACK = "back"


class CardRotation(IntEnum):
    DEG_0 = 0
    DEG_90 = 90
    DEG_180 = 180
    DEG_270 = 270


@dataclass
class OtakuPiece:
    """
    A player-owned token.

    A piece without goods never holds a board spot. Clones
    (is_kagebunshin) only exist until the end of the round.
    """
    piece_id: str
    player_id: str
    board_spot_id: int | None = None
    goods: GoodsType | None = None
    is_kagebunshin: bool = False

    @property
    def is_placed(self) -> bool:
        return self.board_spot_id is not None


@dataclass
class Player:
    """State for a single player."""
    player_id: str
    name: str
    color: PlayerColor
    money: int = 0
    points: int = 0
    otaku_pieces: list[OtakuPiece] = field(default_factory=list)

    # Round-scoped selections
    selected_reward_card: str | None = None  # RewardCard.card_id
    decision: OshikatsuDecision | None = None

    def get_piece(self, piece_id: str) -> OtakuPiece | None:
        for piece in self.otaku_pieces:
            if piece.piece_id == piece_id:
                return piece
        return None

    @property
    def regular_pieces(self) -> list[OtakuPiece]:
        return [p for p in self.otaku_pieces if not p.is_kagebunshin]

    @property
    def clone_pieces(self) -> list[OtakuPiece]:
        return [p for p in self.otaku_pieces if p.is_kagebunshin]

    def owns_goods(self, goods: GoodsType) -> bool:
        return any(p.goods == goods for p in self.otaku_pieces)

    def with_piece(self, piece: OtakuPiece) -> Player:
        """Return new player with one piece replaced (matched by id)."""
        new_pieces = [
            piece if p.piece_id == piece.piece_id else p
            for p in self.otaku_pieces
        ]
        return replace(self, otaku_pieces=new_pieces)

    def _copy_with(self, **kwargs) -> Player:
        return replace(self, **kwargs)


@dataclass
class SpotPosition:
    row: int
    col: int


@dataclass
class BoardSpot:
    """
    One of the 8 hanamichi spots.

    `piece_ids` is the ordered occupant list; order matters for the
    remainder rule of the basic split.
    """
    spot_id: int
    position: SpotPosition
    piece_ids: list[str] = field(default_factory=list)
    oshi_id: OshiId | None = None

    @property
    def occupancy(self) -> int:
        return len(self.piece_ids)


@dataclass
class Board:
    spots: list[BoardSpot] = field(default_factory=list)

    def get_spot(self, spot_id: int) -> BoardSpot | None:
        for spot in self.spots:
            if spot.spot_id == spot_id:
                return spot
        return None

    def with_spot(self, spot: BoardSpot) -> Board:
        """Return new board with one spot replaced (matched by id)."""
        return Board(spots=[
            spot if s.spot_id == spot.spot_id else s
            for s in self.spots
        ])


@dataclass
class OshiPiece:
    oshi_id: OshiId
    current_spot_id: int | None = None


@dataclass
class RewardCard:
    """A labor-phase reward distribution card. `rewards` maps die face -> payout."""
    card_id: str
    name: str
    rewards: dict[int, int]


@dataclass
class FanserviceCard:
    card_id: str
    spots: tuple[int, int, int]
    orientation: CardOrientation = CardOrientation.FRONT
    rotation: CardRotation = CardRotation.DEG_0


@dataclass
class LaborResult:
    player_id: str
    selected_card: str  # card name, A-F
    dice_result: int
    reward: int


@dataclass
class DecisionRecord:
    player_id: str
    decision: OshikatsuDecision


@dataclass
class FansaResult:
    player_id: str
    points_earned: int
    breakdown: list[str] = field(default_factory=list)


@dataclass
class RoundResult:
    round_number: int
    labor_results: list[LaborResult] = field(default_factory=list)
    oshikatsu_decisions: list[DecisionRecord] = field(default_factory=list)
    fansa_results: list[FansaResult] = field(default_factory=list)


@dataclass
class TurnState:
    """
    Per-phase completion bookkeeping.

    `phase_actions` maps player id -> completed, in player order.
    `waiting_for_players` lists the ids still to act, in player order.
    """
    phase_actions: dict[str, bool] = field(default_factory=dict)
    waiting_for_players: list[str] = field(default_factory=list)

    @classmethod
    def fresh(cls, player_ids: list[str]) -> TurnState:
        return cls(
            phase_actions={pid: False for pid in player_ids},
            waiting_for_players=list(player_ids),
        )

    def is_completed(self, player_id: str) -> bool:
        return self.phase_actions.get(player_id) is True

    def with_completed(self, player_id: str, completed: bool, player_order: list[str]) -> TurnState:
        """Return new turn state with one flag set and the waiting list rebuilt in player order."""
        new_actions = dict(self.phase_actions)
        new_actions[player_id] = completed
        waiting = [pid for pid in player_order if not new_actions.get(pid, False)]
        return TurnState(phase_actions=new_actions, waiting_for_players=waiting)


def utc_now() -> datetime:
    """Current time, truncated to millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


@dataclass
class GameSession:
    """
    Complete game state at a point in time.

    This is the canonical snapshot that the engine operates on.
    All state changes go through the reducer.
    """
    session_id: str
    players: list[Player] = field(default_factory=list)
    current_round: int = 1
    current_phase: GamePhase = GamePhase.SETUP
    active_player_index: int = 0

    board: Board = field(default_factory=Board)
    oshi_pieces: list[OshiPiece] = field(default_factory=list)
    revealed_cards: list[FanserviceCard] = field(default_factory=list)
    current_dice_result: int | None = None
    round_history: list[RoundResult] = field(default_factory=list)

    turn_state: TurnState = field(default_factory=TurnState)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def active_player(self) -> Player:
        return self.players[self.active_player_index]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]

    def get_player(self, player_id: str) -> Player | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def get_piece(self, piece_id: str) -> OtakuPiece | None:
        """Find a piece by id across all players."""
        for p in self.players:
            piece = p.get_piece(piece_id)
            if piece is not None:
                return piece
        return None

    def all_pieces(self) -> list[OtakuPiece]:
        return [piece for p in self.players for piece in p.otaku_pieces]

    def pieces_by_id(self) -> dict[str, OtakuPiece]:
        return {piece.piece_id: piece for piece in self.all_pieces()}

    def current_round_result(self) -> RoundResult | None:
        for result in self.round_history:
            if result.round_number == self.current_round:
                return result
        return None

    def with_player(self, player: Player) -> GameSession:
        """Return new state with updated player."""
        new_players = [
            player if p.player_id == player.player_id else p
            for p in self.players
        ]
        return self._copy_with(players=new_players)

    def with_round_result(self, result: RoundResult) -> GameSession:
        """Return new state with the round's history entry replaced or appended."""
        history = [r for r in self.round_history if r.round_number != result.round_number]
        history.append(result)
        history.sort(key=lambda r: r.round_number)
        return self._copy_with(round_history=history)

    def _copy_with(self, **kwargs) -> GameSession:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
