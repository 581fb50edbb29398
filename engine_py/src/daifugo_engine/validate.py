"""
Combination validation for card plays and effect selections.
"""

import logging
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Union

from . import errors
from .comparator import (
    compare_combinations, has_uniform_rank, is_single_spade_three, non_joker_suits
)
from .constants import JOKER, describe_suit
from .effects import has_blocking_effect
from .models import Card, Effect, GameState, Player

logger = logging.getLogger(__name__)

CardSelection = Sequence[Union[Card, str]]

MAX_COMBINATION_SIZE = 5


class ValidationResult:
    """Result of a rule check: ok, or a reason string with an error code."""

    def __init__(
        self,
        ok: bool,
        reason: Optional[str] = None,
        code: Optional[str] = None,
        cards: Optional[List[Card]] = None
    ):
        self.ok = ok
        self.reason = reason
        self.code = code
        self.cards = cards or []

    @classmethod
    def success(cls, cards: Optional[List[Card]] = None) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(ok=True, cards=cards)

    @classmethod
    def error(cls, code: str, reason: str) -> 'ValidationResult':
        """Create a failed validation result."""
        logger.debug(f"Rejected: [{code}] {reason}")
        return cls(ok=False, reason=reason, code=code)

    def to_dict(self) -> Dict:
        if self.ok:
            return {'ok': True}
        return {'ok': False, 'reason': self.reason}

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        if self.ok:
            return 'ValidationResult(ok=True)'
        return f'ValidationResult(ok=False, code={self.code!r}, reason={self.reason!r})'


def selection_ids(cards: CardSelection) -> List[str]:
    """Normalize a selection of cards or card ids to card ids."""
    return [card.id if isinstance(card, Card) else card for card in cards]


def resolve_from_hand(player: Player, card_ids: Sequence[str]) -> Optional[List[Card]]:
    """
    Look up card ids in a player's hand.

    Returns:
        The hand's cards in selection order, or None if any id is missing
        or selected twice
    """
    if len(set(card_ids)) != len(card_ids):
        return None
    by_id = {card.id: card for card in player.hand}
    resolved = []
    for card_id in card_ids:
        card = by_id.get(card_id)
        if card is None:
            return None
        resolved.append(card)
    return resolved


def can_play(state: GameState, player_id: str, cards: CardSelection) -> ValidationResult:
    """
    Validate a card play attempt.

    Checks run in a fixed order and the first failure wins. Nothing in the
    state is touched.

    Args:
        state: Current game state
        player_id: ID of player attempting the play
        cards: Cards (or card ids) being played

    Returns:
        ValidationResult carrying the resolved hand cards on success
    """
    if state.finished:
        return ValidationResult.error(errors.MATCH_FINISHED, "The match is already finished")

    if state.current_turn != player_id:
        return ValidationResult.error(errors.NOT_YOUR_TURN, "It's not your turn")

    player = state.get_player(player_id)
    if not player:
        return ValidationResult.error(errors.PLAYER_NOT_FOUND, "Player not found")
    if player.finished:
        return ValidationResult.error(errors.ALREADY_FINISHED, "You have already finished")

    if not cards:
        return ValidationResult.error(errors.EMPTY_SELECTION, "Select at least one card")

    card_ids = selection_ids(cards)
    if len(set(card_ids)) != len(card_ids):
        return ValidationResult.error(
            errors.DUPLICATE_SELECTION,
            "The same card cannot be selected twice"
        )

    selected = resolve_from_hand(player, card_ids)
    if selected is None:
        return ValidationResult.error(
            errors.OWNERSHIP_MISMATCH,
            "Selected cards are not in your hand"
        )

    if not has_uniform_rank(selected):
        return ValidationResult.error(
            errors.PATTERN_MISMATCH,
            "Uniform rank only: all non-joker cards must share one rank"
        )

    required_count = state.table.required_count
    if required_count is not None and len(selected) != required_count:
        return ValidationResult.error(
            errors.COUNT_MISMATCH,
            f"Must play exactly {required_count} cards"
        )

    lock_suit = state.flags.lock_suit
    if lock_suit:
        suits = non_joker_suits(selected)
        if any(suit != lock_suit for suit in suits):
            return ValidationResult.error(
                errors.SUIT_LOCKED,
                f"Suit lock: only {describe_suit(lock_suit)} cards may be played"
            )

    if state.flags.awaiting_spade3:
        if is_single_spade_three(selected):
            return ValidationResult.success(selected)
        return ValidationResult.error(
            errors.SPADE3_REQUIRED,
            "Must counter with spade 3"
        )

    last_play = state.table.last_play
    if last_play is None:
        return ValidationResult.success(selected)

    if any(card.rank == JOKER for card in last_play.cards):
        if is_single_spade_three(selected):
            return ValidationResult.success(selected)
        return ValidationResult.error(
            errors.SPADE3_REQUIRED,
            "Only a single spade 3 can answer a joker"
        )

    if len(selected) != len(last_play.cards):
        return ValidationResult.error(
            errors.COUNT_MISMATCH,
            f"Must play {len(last_play.cards)} cards"
        )

    if compare_combinations(selected, last_play.cards, state.flags.strength_reversed) <= 0:
        return ValidationResult.error(
            errors.RANK_TOO_LOW,
            "Must beat the previous play"
        )

    return ValidationResult.success(selected)


def validate_effect_selection(
    effect: Effect,
    player: Player,
    card_ids: Sequence[str]
) -> ValidationResult:
    """
    Validate the card selection for a tenDiscard or sevenGive effect.

    An empty selection is a valid skip.
    """
    limit = effect.payload.count if effect.payload and effect.payload.count is not None else 0

    if len(set(card_ids)) != len(card_ids):
        return ValidationResult.error(
            errors.INVALID_EFFECT_SELECTION,
            "The same card cannot be selected twice"
        )

    if len(card_ids) > limit:
        return ValidationResult.error(
            errors.INVALID_EFFECT_SELECTION,
            f"You may select at most {limit} cards"
        )

    selected = resolve_from_hand(player, card_ids)
    if selected is None:
        return ValidationResult.error(
            errors.OWNERSHIP_MISMATCH,
            "Selected cards are not in your hand"
        )

    return ValidationResult.success(selected)


def legal_plays(state: GameState, player_id: str) -> List[List[Card]]:
    """
    Enumerate every combination in a player's hand that can_play accepts.

    Combinations are distinct by card-id set. Jokers fill out rank groups
    and are also tried on their own.
    """
    player = state.get_player(player_id)
    if not player or player.finished:
        return []

    jokers = [card for card in player.hand if card.rank == JOKER]
    groups: Dict[str, List[Card]] = {}
    for card in player.hand:
        if card.rank != JOKER:
            groups.setdefault(card.rank, []).append(card)

    largest = max((len(group) for group in groups.values()), default=0)
    max_length = max(1, min(MAX_COMBINATION_SIZE, max(largest + len(jokers), len(jokers))))
    if state.table.required_count is not None:
        target_lengths = [state.table.required_count]
    else:
        target_lengths = list(range(1, max_length + 1))

    seen = set()
    options: List[List[Card]] = []

    def add_option(option: List[Card]):
        if not option:
            return
        key = tuple(sorted(card.id for card in option))
        if key in seen:
            return
        seen.add(key)
        if can_play(state, player_id, option).ok:
            options.append(option)

    for target in target_lengths:
        for group in groups.values():
            for base_size in range(1, min(len(group), target) + 1):
                needed = target - base_size
                if needed > len(jokers):
                    continue
                for base in combinations(group, base_size):
                    add_option(list(base) + jokers[:needed])
        if target <= len(jokers):
            add_option(jokers[:target])

    return options


def validate_pass(state: GameState, player_id: str) -> ValidationResult:
    """
    Validate a pass attempt.

    apply_pass ignores passes that fail here instead of reporting them.
    """
    if state.finished:
        return ValidationResult.error(errors.MATCH_FINISHED, "The match is already finished")

    if state.current_turn != player_id:
        return ValidationResult.error(errors.NOT_YOUR_TURN, "It's not your turn")

    player = state.get_player(player_id)
    if not player:
        return ValidationResult.error(errors.PLAYER_NOT_FOUND, "Player not found")
    if player.finished:
        return ValidationResult.error(errors.ALREADY_FINISHED, "You have already finished")

    if has_blocking_effect(state, player_id):
        return ValidationResult.error(
            errors.EFFECT_PENDING,
            "Resolve the pending effect before passing"
        )

    return ValidationResult.success()
