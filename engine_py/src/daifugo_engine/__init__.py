"""
Rule engine for the daifugo shedding game.
"""

from .engine import (
    add_player, apply_effect_action, apply_pass, apply_play, create_empty_state,
    mark_ready, next_player, remove_player, start_game_if_ready
)
from .effects import has_blocking_effect
from .errors import GameError
from .events import apply_action, parse_action
from .models import Card, Effect, EffectAction, GameState, Player
from .rooms import RoomStore
from .rules import RuleConfig, create_rules, default_rules
from .serialization import parse_state, serialize_state, sync_for_client
from .shuffle import create_deck, deal_cards, shuffle_deck, sort_hand
from .validate import ValidationResult, can_play, legal_plays

__all__ = [
    "add_player",
    "apply_action",
    "apply_effect_action",
    "apply_pass",
    "apply_play",
    "can_play",
    "Card",
    "create_deck",
    "create_empty_state",
    "create_rules",
    "deal_cards",
    "default_rules",
    "Effect",
    "EffectAction",
    "GameError",
    "GameState",
    "has_blocking_effect",
    "legal_plays",
    "mark_ready",
    "next_player",
    "parse_action",
    "parse_state",
    "Player",
    "remove_player",
    "RoomStore",
    "RuleConfig",
    "serialize_state",
    "shuffle_deck",
    "sort_hand",
    "start_game_if_ready",
    "sync_for_client",
    "ValidationResult",
]
