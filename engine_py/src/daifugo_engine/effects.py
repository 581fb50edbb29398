"""
Special card effects implementation.

Every function here mutates the draft state it is given; the engine makes
the copy before calling in.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from .comparator import (
    count_jokers, count_rank, is_single_spade_three, non_joker_cards, non_joker_suits
)
from .constants import (
    BLOCKING_EFFECTS, EFFECT_JACK_REVERSE, EFFECT_QUEEN_PURGE, EFFECT_SEVEN_GIVE,
    EFFECT_TEN_DISCARD, JOKER, WILD_ELIGIBLE_RANKS, WILD_MIN_COUNT, describe_suit
)
from .models import Card, Effect, EffectPayload, GameState, Play

logger = logging.getLogger(__name__)


def append_log(state: GameState, message: str):
    """Append a timestamped line to the table log."""
    state.table.logs.append(f"{datetime.now().strftime('%H:%M:%S')} {message}")


def trim_logs(state: GameState, limit: int):
    """Keep only the newest `limit` log lines."""
    if len(state.table.logs) > limit:
        state.table.logs = state.table.logs[-limit:]


def player_name(state: GameState, player_id: Optional[str]) -> str:
    player = state.get_player(player_id)
    return player.name if player else 'Unknown player'


def effective_count(cards: Sequence[Card], rank: str) -> int:
    """
    Count of a rank for effect-triggering purposes.

    A single joker alongside a wild-eligible rank lifts the count to
    WILD_MIN_COUNT, never beyond the real count when that is already higher.
    """
    rank_count = count_rank(cards, rank)
    if rank_count == 0:
        return 0
    if count_jokers(cards) == 1 and rank in WILD_ELIGIBLE_RANKS:
        return max(rank_count, WILD_MIN_COUNT)
    return rank_count


def is_revolution_play(cards: Sequence[Card]) -> bool:
    """Four of a rank without a joker, or four of a rank plus exactly one joker."""
    jokers = count_jokers(cards)
    regular = non_joker_cards(cards)
    if len(cards) == 4 and jokers == 0:
        return len({card.rank for card in regular}) == 1
    if len(cards) == 5 and jokers == 1 and len(regular) == 4:
        return len({card.rank for card in regular}) == 1
    return False


def is_blocking_effect(effect: Effect, player_id: Optional[str]) -> bool:
    """Check if an effect holds the turn on the given player."""
    if not effect.payload or effect.payload.player_id != player_id:
        return False
    if effect.type not in BLOCKING_EFFECTS:
        return False
    if effect.type == EFFECT_QUEEN_PURGE:
        return effect.remaining > 0
    return True


def has_blocking_effect(state: GameState, player_id: Optional[str]) -> bool:
    return any(is_blocking_effect(effect, player_id) for effect in state.pending_effects)


def drop_effects_for(state: GameState, player_id: str):
    """Discard pending blocking effects owned by a player who left the rotation."""
    kept = []
    for effect in state.pending_effects:
        if effect.type in BLOCKING_EFFECTS and effect.payload and effect.payload.player_id == player_id:
            logger.info(f"Dropping {effect.type} for finished player {player_id}")
            continue
        kept.append(effect)
    state.pending_effects = kept


def clear_jack_reversal(state: GameState):
    """End a jack reversal and its marker, restoring the revolution-only order."""
    was_active = state.flags.jack_reversal_active
    state.flags.jack_reversal_active = False
    state.pending_effects = [e for e in state.pending_effects if e.type != EFFECT_JACK_REVERSE]
    state.flags.sync_strength()
    if not was_active:
        return
    if state.flags.revolution_active:
        append_log(state, "Jack reversal ended; the revolution order is back")
    else:
        append_log(state, "Jack reversal ended; strength order is normal again")


def clear_table(state: GameState):
    """Flush the trick: pile to discard, bindings cleared, everyone back in."""
    state.table.discard.extend(state.table.pile)
    state.table.pile = []
    state.table.last_play = None
    state.table.required_count = None
    state.flags.lock_suit = None
    state.flags.awaiting_spade3 = False
    clear_jack_reversal(state)
    for player in state.players:
        player.has_passed = False
    state.pass_streak = 0


def apply_revolution(state: GameState, player_id: str):
    state.flags.revolution_active = not state.flags.revolution_active
    state.flags.sync_strength()
    name = player_name(state, player_id)
    if state.flags.revolution_active:
        order = 'reversed' if state.flags.strength_reversed else 'normal'
        append_log(state, f"Revolution by {name}! Strength order is now {order}")
    elif state.flags.strength_reversed:
        append_log(state, f"{name} undid the revolution, but the jack reversal keeps the order reversed")
    else:
        append_log(state, f"{name} undid the revolution; strength order is normal again")


def apply_jack_reverse(state: GameState, player_id: str):
    state.flags.jack_reversal_active = not state.flags.jack_reversal_active
    state.flags.sync_strength()
    state.pending_effects = [e for e in state.pending_effects if e.type != EFFECT_JACK_REVERSE]
    if state.flags.jack_reversal_active:
        state.pending_effects.append(
            Effect(type=EFFECT_JACK_REVERSE, payload=EffectPayload(player_id=player_id))
        )
    order = 'reversed' if state.flags.strength_reversed else 'normal'
    append_log(state, f"Jack back: strength order is now {order}")


def apply_eight_cut(state: GameState, player_id: str):
    append_log(state, f"Eight cut by {player_name(state, player_id)}! The table is cleared")
    clear_table(state)


def apply_ten_discard(state: GameState, player_id: str, count: int):
    state.pending_effects.append(Effect(
        type=EFFECT_TEN_DISCARD,
        payload=EffectPayload(player_id=player_id, count=count, optional=True, remaining=count)
    ))
    append_log(state, f"Ten discard: {player_name(state, player_id)} may discard up to {count} cards")


def apply_queen_purge(state: GameState, player_id: str, count: int):
    state.pending_effects.append(Effect(
        type=EFFECT_QUEEN_PURGE,
        payload=EffectPayload(player_id=player_id, count=count, remaining=count, declared_ranks=[])
    ))
    append_log(state, f"Queen purge: {player_name(state, player_id)} declares {count} rank(s)")


def apply_seven_give(state: GameState, player_id: str, count: int):
    state.pending_effects.append(Effect(
        type=EFFECT_SEVEN_GIVE,
        payload=EffectPayload(player_id=player_id, count=count, optional=True, remaining=count)
    ))
    append_log(state, f"Seven give: {player_name(state, player_id)} may pass up to {count} cards")


def apply_nine_reverse(state: GameState, player_id: str):
    state.flags.rotation_reversed = not state.flags.rotation_reversed
    direction = 'counter-clockwise' if state.flags.rotation_reversed else 'clockwise'
    append_log(state, f"Nine reverse by {player_name(state, player_id)}: play now goes {direction}")


def apply_spade3_counter(state: GameState, player_id: str):
    append_log(state, f"{player_name(state, player_id)} countered the joker with the spade 3")
    clear_table(state)


def register_effects(state: GameState, cards: Sequence[Card], player_id: str) -> bool:
    """
    Apply the effects triggered by a play, in fixed order.

    Returns:
        True if the actor keeps the turn (eight cut)
    """
    keep_turn = False

    if is_revolution_play(cards):
        apply_revolution(state, player_id)

    if effective_count(cards, 'J') > 0:
        apply_jack_reverse(state, player_id)

    if effective_count(cards, '8') > 0:
        apply_eight_cut(state, player_id)
        keep_turn = True

    ten_count = effective_count(cards, '10')
    if ten_count > 0:
        apply_ten_discard(state, player_id, ten_count)

    queen_count = effective_count(cards, 'Q')
    if queen_count > 0:
        apply_queen_purge(state, player_id, queen_count)

    seven_count = effective_count(cards, '7')
    if seven_count > 0:
        apply_seven_give(state, player_id, seven_count)

    if effective_count(cards, '9') > 0:
        apply_nine_reverse(state, player_id)

    return keep_turn


def update_suit_lock(state: GameState, cards: Sequence[Card], previous_play: Optional[Play]):
    """Bind the suit shared by this play and the one it answered."""
    if previous_play is None:
        return
    if any(card.rank == '8' for card in cards):
        return
    current_suits = non_joker_suits(cards)
    previous_suits = non_joker_suits(previous_play.cards)
    shared: List[str] = [suit for suit in current_suits if suit in previous_suits]
    if not shared:
        return
    if state.flags.lock_suit != shared[0]:
        state.flags.lock_suit = shared[0]
        append_log(state, f"{describe_suit(shared[0])} lock is in effect")


def update_awaiting_spade3(state: GameState, cards: Sequence[Card], player_id: str,
                           was_awaiting: bool) -> bool:
    """
    Track the joker / spade-3 exchange.

    Returns:
        True if the play countered a joker and the actor keeps the turn
    """
    if len(cards) == 1 and cards[0].rank == JOKER:
        state.flags.awaiting_spade3 = True
        append_log(state, "A joker was played; only the spade 3 can answer it")
        return False
    state.flags.awaiting_spade3 = False
    if was_awaiting and is_single_spade_three(cards):
        apply_spade3_counter(state, player_id)
        return True
    return False
