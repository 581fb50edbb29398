"""
State serialization and sanitization utilities.
"""

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

import orjson

from .constants import ALL_RANKS, EFFECT_JACK_REVERSE, EFFECT_TYPES, JOKER, JOKER_SUIT, SUITS
from .engine import create_empty_state
from .models import (
    Card, Effect, EffectPayload, Flags, GameState, Play, Player, TableState
)

logger = logging.getLogger(__name__)


def sync_for_client(state: GameState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize game state for transmission to one client.

    Must be called once per recipient: only the viewer's own hand is
    included, every other player is reduced to a hand count.

    Args:
        state: Authoritative game state
        viewer_id: ID of the player viewing the state

    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    players = []
    for player in state.players:
        sanitized_player = {
            "id": player.id,
            "name": player.name,
            "seat": player.seat,
            "hand_count": len(player.hand),
            "connected": player.connected,
            "finished": player.finished,
            "result": player.result,
            "ready": player.ready,
            "has_passed": player.has_passed,
            "is_self": player.id == viewer_id,
        }

        # Show full hand only to the viewer
        if viewer_id is not None and player.id == viewer_id:
            sanitized_player["hand"] = [asdict(card) for card in player.hand]

        players.append(sanitized_player)

    return {
        "room_code": state.room_code,
        "players": players,
        "current_turn": state.current_turn,
        "starting_player": state.starting_player,
        "flags": asdict(state.flags),
        "table": {
            "last_play": asdict(state.table.last_play) if state.table.last_play else None,
            "required_count": state.table.required_count,
            "pile": [asdict(card) for card in state.table.pile],
            "discard_count": len(state.table.discard),
            "logs": list(state.table.logs),
        },
        "pending_effects": [asdict(effect) for effect in state.pending_effects],
        "finished": state.finished,
        "match_id": state.match_id,
    }


def serialize_state(state: GameState) -> str:
    """Encode the full authoritative state as JSON."""
    return orjson.dumps(state).decode()


def parse_state(data: Union[str, bytes, None], room_code: str) -> GameState:
    """
    Decode persisted state, repairing anything missing or malformed.

    Every field falls back to the value of a fresh empty state when absent
    or of the wrong shape. The room code always comes from the caller.

    Args:
        data: JSON text as stored (may be None or empty)
        room_code: Authoritative room code

    Returns:
        A usable GameState; never raises
    """
    base = create_empty_state(room_code)
    if not data:
        return base

    try:
        raw = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        logger.warning(f"Room {room_code}: unreadable state, starting fresh ({e})")
        return base

    if not isinstance(raw, dict):
        logger.warning(f"Room {room_code}: state is not an object, starting fresh")
        return base

    stored_code = raw.get("room_code")
    if stored_code is not None and stored_code != room_code:
        logger.warning(f"Room {room_code}: ignoring stored room code {stored_code!r}")

    pending_effects = _parse_list(raw.get("pending_effects"), _parse_effect)

    state = GameState(
        room_code=room_code,
        players=[
            player for player in (
                _parse_player(item, index) for index, item in enumerate(_as_list(raw.get("players")))
            ) if player is not None
        ],
        current_turn=_str_or_none(raw.get("current_turn")),
        starting_player=_str_or_none(raw.get("starting_player")),
        flags=_parse_flags(raw.get("flags"), pending_effects),
        table=_parse_table(raw.get("table")),
        pending_effects=pending_effects,
        turn_history=_parse_list(raw.get("turn_history"), _parse_play),
        finished=_bool(raw.get("finished"), base.finished),
        pass_streak=max(0, _int(raw.get("pass_streak"), base.pass_streak)),
        match_id=_str_or_none(raw.get("match_id")),
    )
    return state


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _parse_list(value: Any, parser) -> List[Any]:
    parsed = (parser(item) for item in _as_list(value))
    return [item for item in parsed if item is not None]


def _bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _int(value: Any, default: Optional[int]) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return default


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _parse_card(value: Any) -> Optional[Card]:
    raw = _as_dict(value)
    card_id, suit, rank = raw.get("id"), raw.get("suit"), raw.get("rank")
    if not all(isinstance(item, str) for item in (card_id, suit, rank)):
        logger.warning(f"Dropping malformed card {value!r}")
        return None
    if rank not in ALL_RANKS or suit not in SUITS + [JOKER_SUIT] or (rank == JOKER) != (suit == JOKER_SUIT):
        logger.warning(f"Dropping unknown card {card_id!r} ({suit} {rank})")
        return None
    return Card(id=card_id, suit=suit, rank=rank)


def _parse_play(value: Any) -> Optional[Play]:
    raw = _as_dict(value)
    player_id = raw.get("player_id")
    if not isinstance(player_id, str):
        return None
    return Play(
        player_id=player_id,
        cards=_parse_list(raw.get("cards"), _parse_card),
        timestamp=raw.get("timestamp") if isinstance(raw.get("timestamp"), str) else '',
    )


def _parse_player(value: Any, index: int) -> Optional[Player]:
    raw = _as_dict(value)
    player_id = raw.get("id")
    if not isinstance(player_id, str):
        logger.warning(f"Dropping player entry without id at position {index}")
        return None
    defaults = Player(id=player_id, name='', seat=index + 1)
    return Player(
        id=player_id,
        name=raw.get("name") if isinstance(raw.get("name"), str) else defaults.name,
        seat=_int(raw.get("seat"), defaults.seat),
        hand=_parse_list(raw.get("hand"), _parse_card),
        connected=_bool(raw.get("connected"), defaults.connected),
        finished=_bool(raw.get("finished"), defaults.finished),
        result=_str_or_none(raw.get("result")),
        has_passed=_bool(raw.get("has_passed"), defaults.has_passed),
        ready=_bool(raw.get("ready"), defaults.ready),
    )


def _parse_effect(value: Any) -> Optional[Effect]:
    raw = _as_dict(value)
    effect_type = raw.get("type")
    if effect_type not in EFFECT_TYPES:
        logger.warning(f"Dropping unknown effect {effect_type!r}")
        return None
    payload = None
    if isinstance(raw.get("payload"), dict):
        raw_payload = raw["payload"]
        declared = raw_payload.get("declared_ranks")
        payload = EffectPayload(
            player_id=_str_or_none(raw_payload.get("player_id")),
            count=_int(raw_payload.get("count"), None),
            optional=raw_payload.get("optional") if isinstance(raw_payload.get("optional"), bool) else None,
            remaining=_int(raw_payload.get("remaining"), None),
            declared_ranks=[r for r in declared if isinstance(r, str)] if isinstance(declared, list) else None,
        )
    return Effect(type=effect_type, payload=payload)


def _parse_flags(value: Any, pending_effects: List[Effect]) -> Flags:
    raw = _as_dict(value)
    defaults = Flags()
    lock_suit = raw.get("lock_suit")
    flags = Flags(
        revolution_active=_bool(raw.get("revolution_active"), False),
        jack_reversal_active=_bool(
            raw.get("jack_reversal_active"),
            any(effect.type == EFFECT_JACK_REVERSE for effect in pending_effects)
        ),
        rotation_reversed=_bool(raw.get("rotation_reversed"), defaults.rotation_reversed),
        lock_suit=lock_suit if lock_suit in SUITS else None,
        awaiting_spade3=_bool(raw.get("awaiting_spade3"), defaults.awaiting_spade3),
    )
    flags.sync_strength()
    return flags


def _parse_table(value: Any) -> TableState:
    raw = _as_dict(value)
    required_count = _int(raw.get("required_count"), None)
    return TableState(
        last_play=_parse_play(raw.get("last_play")) if raw.get("last_play") is not None else None,
        required_count=required_count if required_count and required_count > 0 else None,
        pile=_parse_list(raw.get("pile"), _parse_card),
        discard=_parse_list(raw.get("discard"), _parse_card),
        logs=[line for line in _as_list(raw.get("logs")) if isinstance(line, str)],
    )
