"""Turn and trick engine: every game action as a pure state transition"""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from . import errors
from .constants import (
    EFFECT_QUEEN_PURGE, EFFECT_SEVEN_GIVE, EFFECT_TEN_DISCARD, JOKER, RANKS,
    RESULT_FALLBACK, RESULT_LABELS, RESULT_LAST, SUIT_ICONS
)
from .effects import (
    append_log, clear_table, drop_effects_for, has_blocking_effect, is_blocking_effect,
    register_effects, trim_logs, update_awaiting_spade3, update_suit_lock
)
from .models import Card, EffectAction, Flags, GameState, Play, Player, TableState
from .rules import RuleConfig, default_rules
from .shuffle import deal_cards
from .validate import (
    CardSelection, ValidationResult, can_play, validate_effect_selection, validate_pass
)

logger = logging.getLogger(__name__)


def create_empty_state(room_code: str) -> GameState:
    return GameState(room_code=room_code)


def describe_cards(cards: List[Card]) -> str:
    parts = []
    for card in cards:
        if card.rank == JOKER:
            parts.append('Joker')
        else:
            parts.append(f"{SUIT_ICONS.get(card.suit, '')}{card.rank}")
    return ' '.join(parts)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def next_player(state: GameState, player_id: str) -> Optional[str]:
    """
    Find the next unfinished seat after player_id in the current direction.

    Returns:
        Player id, or None if the match is over or the player is unknown
    """
    if state.finished:
        return None
    ordered = state.players_by_seat()
    ids = [player.id for player in ordered]
    if player_id not in ids:
        return None
    direction = -1 if state.flags.rotation_reversed else 1
    total = len(ordered)
    index = ids.index(player_id)
    for _ in range(total):
        index = (index + direction) % total
        candidate = ordered[index]
        if not candidate.finished:
            return candidate.id
    return None


def _assign_result_label(state: GameState, player: Player):
    already = sum(1 for p in state.players if p.result and p.id != player.id)
    player.result = RESULT_LABELS[already] if already < len(RESULT_LABELS) else RESULT_FALLBACK


def _complete_if_out_of_cards(state: GameState, player: Player) -> bool:
    """Mark a player finished once their hand is empty."""
    if player.finished or player.hand:
        return False
    player.finished = True
    _assign_result_label(state, player)
    drop_effects_for(state, player.id)
    append_log(state, f"{player.name} is out! ({player.result})")
    logger.info(f"Room {state.room_code}: {player.id} finished as {player.result}")
    return True


def _check_match_end(state: GameState) -> bool:
    """End the match when at most one player still holds cards."""
    if state.finished:
        return True
    remaining = state.active_players()
    if len(remaining) > 1:
        return False
    state.finished = True
    state.current_turn = None
    if len(remaining) == 1:
        remaining[0].result = RESULT_LAST
    append_log(state, "The match is over")
    logger.info(f"Room {state.room_code}: match {state.match_id} finished")
    return True


def _settle_turn(state: GameState, actor_id: str, keep_turn: bool = False):
    """Decide whose turn follows an action by actor_id."""
    if _check_match_end(state):
        return
    actor = state.get_player(actor_id)
    if actor and not actor.finished and (keep_turn or has_blocking_effect(state, actor_id)):
        state.current_turn = actor_id
        return
    state.current_turn = next_player(state, actor_id)


def apply_play(state: GameState, player_id: str, cards: CardSelection,
               rules: RuleConfig = default_rules) -> Tuple[GameState, ValidationResult]:
    """
    Play cards for a player.

    Args:
        state: Current game state (left untouched)
        player_id: Acting player
        cards: Cards or card ids from the player's hand
        rules: Table limits

    Returns:
        Tuple of (new state, validation result); on failure the input state
    """
    validation = can_play(state, player_id, cards)
    if not validation.ok:
        return state, validation

    previous_play = state.table.last_play
    was_awaiting = state.flags.awaiting_spade3

    draft = copy.deepcopy(state)
    player = draft.get_player(player_id)
    played = copy.deepcopy(validation.cards)
    played_ids = {card.id for card in played}
    player.hand = [card for card in player.hand if card.id not in played_ids]

    play = Play(player_id=player_id, cards=played, timestamp=_timestamp())
    draft.table.last_play = play
    draft.table.required_count = len(played)
    draft.table.pile.extend(played)
    draft.turn_history.append(copy.deepcopy(play))
    draft.pass_streak = 0
    for p in draft.players:
        p.has_passed = False

    append_log(draft, f"{player.name} played {describe_cards(played)}")

    keep_turn = register_effects(draft, played, player_id)
    update_suit_lock(draft, played, previous_play)
    if update_awaiting_spade3(draft, played, player_id, was_awaiting):
        keep_turn = True

    _complete_if_out_of_cards(draft, player)
    _settle_turn(draft, player_id, keep_turn)
    trim_logs(draft, rules.log_limit)
    return draft, ValidationResult.success(played)


def apply_pass(state: GameState, player_id: str,
               rules: RuleConfig = default_rules) -> GameState:
    """
    Pass for a player.

    Invalid passes return an unchanged copy. When everyone else has passed
    on the current lead the table clears and the last play's author leads.
    """
    draft = copy.deepcopy(state)
    if not validate_pass(state, player_id).ok:
        return draft
    player = draft.get_player(player_id)

    player.has_passed = True
    draft.pass_streak += 1
    append_log(draft, f"{player.name} passed")

    active_count = len(draft.active_players())
    if draft.pass_streak >= max(active_count - 1, 1):
        last_play = draft.table.last_play
        leader_id = last_play.player_id if last_play else player_id
        clear_table(draft)
        append_log(draft, "Everyone passed; the table is cleared")
        logger.info(f"Room {draft.room_code}: pass-around, lead returns to {leader_id}")

        leader = draft.get_player(leader_id)
        if leader and not leader.finished:
            draft.current_turn = leader_id
        else:
            draft.current_turn = next_player(draft, leader_id if leader else player_id)
        trim_logs(draft, rules.log_limit)
        return draft

    draft.current_turn = next_player(draft, player_id)
    trim_logs(draft, rules.log_limit)
    return draft


def _find_effect_index(state: GameState, action: EffectAction) -> int:
    for index, effect in enumerate(state.pending_effects):
        if effect.type == action.type and effect.payload and effect.payload.player_id == action.player_id:
            return index
    return -1


def apply_effect_action(state: GameState, action: EffectAction,
                        rules: RuleConfig = default_rules) -> Tuple[GameState, ValidationResult]:
    """
    Resolve one outstanding effect owned by the acting player.

    Args:
        state: Current game state (left untouched)
        action: sevenGive/tenDiscard card selection or queenPurge declaration
        rules: Table limits

    Returns:
        Tuple of (new state, validation result); on failure the input state
    """
    if state.finished:
        return state, ValidationResult.error(errors.MATCH_FINISHED, "The match is already finished")
    if state.current_turn != action.player_id:
        return state, ValidationResult.error(errors.NOT_YOUR_TURN, "It's not your turn to resolve an effect")
    if not state.get_player(action.player_id):
        return state, ValidationResult.error(errors.PLAYER_NOT_FOUND, "Player not found")

    effect_index = _find_effect_index(state, action)
    if effect_index == -1:
        return state, ValidationResult.error(errors.NO_PENDING_EFFECT, "There is no matching effect to resolve")

    effect = state.pending_effects[effect_index]
    if not is_blocking_effect(effect, action.player_id):
        return state, ValidationResult.error(errors.NO_PENDING_EFFECT, "This effect has already been resolved")

    if action.type in (EFFECT_SEVEN_GIVE, EFFECT_TEN_DISCARD):
        return _resolve_card_effect(state, action, effect_index, rules)
    if action.type == EFFECT_QUEEN_PURGE:
        return _resolve_queen_purge(state, action, effect_index, rules)
    return state, ValidationResult.error(errors.INVALID_ACTION, f"Unsupported effect: {action.type}")


def _resolve_card_effect(state: GameState, action: EffectAction, effect_index: int,
                         rules: RuleConfig) -> Tuple[GameState, ValidationResult]:
    player = state.get_player(action.player_id)
    effect = state.pending_effects[effect_index]
    check = validate_effect_selection(effect, player, list(action.cards))
    if not check.ok:
        return state, check

    draft = copy.deepcopy(state)
    player = draft.get_player(action.player_id)
    selected_ids = {card.id for card in check.cards}
    moved = [card for card in player.hand if card.id in selected_ids]

    recipient = None
    if action.type == EFFECT_SEVEN_GIVE and moved:
        recipient_id = next_player(draft, action.player_id)
        recipient = draft.get_player(recipient_id)
        if recipient is None or recipient.id == action.player_id:
            return state, ValidationResult.error(errors.NO_RECIPIENT, "There is nobody to pass cards to")

    player.hand = [card for card in player.hand if card.id not in selected_ids]
    player.has_passed = False

    if action.type == EFFECT_SEVEN_GIVE:
        if recipient is not None:
            recipient.hand.extend(moved)
            append_log(draft, f"{player.name} passed {len(moved)} card(s) to {recipient.name} (seven give)")
        else:
            append_log(draft, f"{player.name} kept their cards (seven give)")
    else:
        draft.table.pile.extend(moved)
        if moved:
            append_log(draft, f"{player.name} discarded {len(moved)} card(s) (ten discard)")
        else:
            append_log(draft, f"{player.name} discarded nothing (ten discard)")

    del draft.pending_effects[effect_index]
    _complete_if_out_of_cards(draft, player)
    if recipient is not None:
        _complete_if_out_of_cards(draft, recipient)
    _settle_turn(draft, action.player_id)
    trim_logs(draft, rules.log_limit)
    return draft, ValidationResult.success(moved)


def _resolve_queen_purge(state: GameState, action: EffectAction, effect_index: int,
                         rules: RuleConfig) -> Tuple[GameState, ValidationResult]:
    rank = action.rank
    if rank not in RANKS:
        return state, ValidationResult.error(errors.RANK_NOT_ELIGIBLE, f"Rank {rank} cannot be declared")

    effect = state.pending_effects[effect_index]
    declared = list(effect.payload.declared_ranks or [])
    if rank in declared:
        return state, ValidationResult.error(
            errors.RANK_NOT_ELIGIBLE,
            f"Rank {rank} is not eligible to decide: it was already declared in this purge"
        )

    draft = copy.deepcopy(state)
    actor = draft.get_player(action.player_id)
    effect = draft.pending_effects[effect_index]

    removed_total = 0
    emptied = []
    for p in draft.players_by_seat():
        removed = [card for card in p.hand if card.rank == rank]
        if not removed:
            continue
        removed_total += len(removed)
        p.hand = [card for card in p.hand if card.rank != rank]
        draft.table.pile.extend(removed)
        emptied.append(p)

    effect.payload.remaining = max(0, effect.remaining - 1)
    effect.payload.declared_ranks = declared + [rank]
    append_log(draft, f"{actor.name} declared {rank} (queen purge); {removed_total} card(s) discarded")

    if effect.payload.remaining == 0:
        del draft.pending_effects[effect_index]

    for p in emptied:
        _complete_if_out_of_cards(draft, p)
    _settle_turn(draft, action.player_id)
    trim_logs(draft, rules.log_limit)
    return draft, ValidationResult.success()


def start_game_if_ready(state: GameState, seed: Optional[int] = None,
                        rules: RuleConfig = default_rules,
                        deck: Optional[List[Card]] = None) -> GameState:
    """
    Deal a new match once every seated player is ready.

    Args:
        state: Current game state (left untouched)
        seed: Optional seed for a reproducible shuffle
        rules: Table limits
        deck: Pre-arranged deck to deal as-is

    Returns:
        New state; unchanged copy if the table is not ready
    """
    draft = copy.deepcopy(state)
    if len(draft.players) < rules.min_players:
        return draft
    if draft.has_dealt() and not draft.finished:
        return draft
    if not all(player.ready for player in draft.players):
        return draft

    ordered_ids = [player.id for player in draft.players_by_seat()]
    hands, starter = deal_cards(ordered_ids, seed=seed, deck=deck)

    draft.flags = Flags()
    draft.table = TableState()
    draft.pending_effects = []
    draft.turn_history = []
    draft.pass_streak = 0
    draft.finished = False
    draft.match_id = uuid.uuid4().hex
    for player in draft.players:
        player.hand = hands.get(player.id, [])
        player.finished = False
        player.has_passed = False
        player.result = None
        player.ready = False

    draft.current_turn = starter or (ordered_ids[0] if ordered_ids else None)
    draft.starting_player = draft.current_turn
    starter_player = draft.get_player(draft.current_turn)
    append_log(draft, f"Cards dealt. {starter_player.name} holds the lowest card and leads")
    logger.info(f"Room {draft.room_code}: dealt match {draft.match_id}, {draft.current_turn} leads")
    trim_logs(draft, rules.log_limit)
    return draft


def add_player(state: GameState, player_id: str, name: str,
               rules: RuleConfig = default_rules) -> Tuple[GameState, ValidationResult]:
    """Seat a new player in the lowest free seat."""
    if state.get_player(player_id):
        return state, ValidationResult.success()
    if state.has_dealt() and not state.finished:
        return state, ValidationResult.error(errors.ALREADY_DEALT, "The match has already started")
    if len(state.players) >= rules.max_players:
        return state, ValidationResult.error(
            errors.ROOM_FULL,
            f"The room is full (max {rules.max_players} players)"
        )

    draft = copy.deepcopy(state)
    taken = {player.seat for player in draft.players}
    seat = 1
    while seat in taken:
        seat += 1
    draft.players.append(Player(id=player_id, name=name, seat=seat))
    append_log(draft, f"{name} joined (seat {seat})")
    logger.info(f"Room {draft.room_code}: {player_id} joined seat {seat}")
    trim_logs(draft, rules.log_limit)
    return draft, ValidationResult.success()


def mark_ready(state: GameState, player_id: str, seed: Optional[int] = None,
               rules: RuleConfig = default_rules) -> Tuple[GameState, ValidationResult]:
    """Flag a player as ready and deal once everyone is."""
    player = state.get_player(player_id)
    if not player:
        return state, ValidationResult.error(errors.PLAYER_NOT_FOUND, "Player not found")
    if state.has_dealt() and not state.finished:
        return state, ValidationResult.error(errors.ALREADY_DEALT, "The match has already started")
    if player.ready:
        return state, ValidationResult.success()
    if len(state.players) < rules.min_players:
        return state, ValidationResult.error(
            errors.NOT_ENOUGH_PLAYERS,
            f"At least {rules.min_players} players are needed to start"
        )

    draft = copy.deepcopy(state)
    draft.get_player(player_id).ready = True
    append_log(draft, f"{player.name} is ready")
    trim_logs(draft, rules.log_limit)
    return start_game_if_ready(draft, seed=seed, rules=rules), ValidationResult.success()


def remove_player(state: GameState, player_id: str, result_label: Optional[str] = None,
                  rules: RuleConfig = default_rules) -> GameState:
    """
    Remove a player from the room.

    Before the deal (or after the match) the seat is freed. Mid-match the
    player stays listed, finished, with their hand moved to the discard.
    """
    draft = copy.deepcopy(state)
    leaving = draft.get_player(player_id)
    if not leaving:
        return draft

    append_log(draft, f"{leaving.name} left the room")
    logger.info(f"Room {draft.room_code}: {player_id} left")

    if not draft.has_dealt() or draft.finished:
        draft.players = [p for p in draft.players if p.id != player_id]
        if draft.current_turn == player_id:
            ordered = draft.players_by_seat()
            draft.current_turn = ordered[0].id if ordered and not draft.finished else None
            draft.starting_player = draft.current_turn
        trim_logs(draft, rules.log_limit)
        return draft

    was_finished = leaving.finished
    draft.table.discard.extend(leaving.hand)
    leaving.hand = []
    leaving.connected = False
    leaving.finished = True
    leaving.has_passed = True
    leaving.ready = False
    if result_label or not was_finished:
        leaving.result = result_label or rules.leaver_label
    drop_effects_for(draft, player_id)

    if draft.current_turn == player_id:
        draft.current_turn = next_player(draft, player_id)
    _check_match_end(draft)
    trim_logs(draft, rules.log_limit)
    return draft
