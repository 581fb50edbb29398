"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import JOKER


@dataclass
class Card:
    id: str
    suit: str  # clubs|diamonds|hearts|spades|joker
    rank: str  # 3..10|J|Q|K|A|2|Joker

    @property
    def is_joker(self) -> bool:
        return self.rank == JOKER


@dataclass
class Player:
    id: str
    name: str
    seat: int
    hand: List[Card] = field(default_factory=list)
    connected: bool = True
    finished: bool = False
    result: Optional[str] = None  # 大富豪, 富豪, 平民, 貧民, 大貧民 or 退室
    has_passed: bool = False
    ready: bool = False


@dataclass
class Play:
    player_id: str
    cards: List[Card] = field(default_factory=list)
    timestamp: str = ''


@dataclass
class TableState:
    last_play: Optional[Play] = None
    required_count: Optional[int] = None
    pile: List[Card] = field(default_factory=list)  # cards of the live trick
    discard: List[Card] = field(default_factory=list)  # cards out of play
    logs: List[str] = field(default_factory=list)


@dataclass
class Flags:
    strength_reversed: bool = False  # always revolution_active XOR jack_reversal_active
    revolution_active: bool = False
    jack_reversal_active: bool = False
    rotation_reversed: bool = False
    lock_suit: Optional[str] = None
    awaiting_spade3: bool = False

    def sync_strength(self):
        self.strength_reversed = self.revolution_active != self.jack_reversal_active


@dataclass
class EffectPayload:
    player_id: Optional[str] = None
    count: Optional[int] = None
    optional: Optional[bool] = None
    remaining: Optional[int] = None
    declared_ranks: Optional[List[str]] = None


@dataclass
class Effect:
    type: str
    payload: Optional[EffectPayload] = None

    @property
    def remaining(self) -> int:
        if not self.payload:
            return 0
        if self.payload.remaining is not None:
            return self.payload.remaining
        if self.payload.count is not None:
            return self.payload.count
        return 0


@dataclass
class GameState:
    room_code: str
    players: List[Player] = field(default_factory=list)
    current_turn: Optional[str] = None
    starting_player: Optional[str] = None
    flags: Flags = field(default_factory=Flags)
    table: TableState = field(default_factory=TableState)
    pending_effects: List[Effect] = field(default_factory=list)
    turn_history: List[Play] = field(default_factory=list)
    finished: bool = False
    pass_streak: int = 0
    match_id: Optional[str] = None

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def players_by_seat(self) -> List[Player]:
        return sorted(self.players, key=lambda p: p.seat)

    def active_players(self) -> List[Player]:
        return [p for p in self.players if not p.finished]

    def has_dealt(self) -> bool:
        return any(p.hand for p in self.players)


@dataclass
class EffectAction:
    """Input for resolving one blocking effect."""
    type: str  # sevenGive|tenDiscard|queenPurge
    player_id: str
    cards: List[str] = field(default_factory=list)  # card ids, for sevenGive/tenDiscard
    rank: Optional[str] = None  # declared rank, for queenPurge
