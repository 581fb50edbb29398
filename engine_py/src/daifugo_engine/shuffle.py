"""
Card shuffling and dealing utilities.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from .comparator import get_rank_index, get_rank_strength
from .constants import (
    DECK_SIZE, JOKER, JOKER_SUIT, RANKS, SORT_STRENGTH, SORT_SUIT, SUITS, card_id_for
)
from .models import Card, GameState

logger = logging.getLogger(__name__)

HAND_SUIT_ORDER = ['spades', 'hearts', 'diamonds', 'clubs', JOKER_SUIT]


def create_deck() -> List[Card]:
    """Create the 53-card deck: 13 ranks in 4 suits plus one joker."""
    deck = []
    for suit in SUITS:
        for rank in RANKS:
            deck.append(Card(id=card_id_for(suit, rank), suit=suit, rank=rank))
    deck.append(Card(id=card_id_for(JOKER_SUIT, JOKER), suit=JOKER_SUIT, rank=JOKER))
    return deck


def shuffle_deck(deck: Sequence[Card], seed: Optional[int] = None) -> List[Card]:
    """
    Fisher-Yates shuffle, deterministic if seed is provided.

    Args:
        deck: Cards to shuffle (left untouched)
        seed: Optional seed for reproducible shuffling

    Returns:
        Shuffled copy of the deck
    """
    deck_copy = list(deck)
    rng = random.Random(seed) if seed is not None else random.SystemRandom()
    for i in range(len(deck_copy) - 1, 0, -1):
        j = rng.randint(0, i)
        deck_copy[i], deck_copy[j] = deck_copy[j], deck_copy[i]
    return deck_copy


def find_starting_player(hands: Dict[str, List[Card]]) -> Optional[str]:
    """
    Find the player holding the lowest-ranked non-joker card.

    Only the rank value counts; among equal ranks the first holder in
    dealing order keeps the lead.
    """
    starter = None
    lowest = None
    for player_id, cards in hands.items():
        for card in cards:
            if card.rank == JOKER:
                continue
            index = get_rank_index(card.rank)
            if lowest is None or index < lowest:
                lowest = index
                starter = player_id
    return starter


def deal_cards(
    player_ids: List[str],
    seed: Optional[int] = None,
    deck: Optional[List[Card]] = None
) -> Tuple[Dict[str, List[Card]], Optional[str]]:
    """
    Deal a shuffled deck round-robin to players ordered by seat.

    Args:
        player_ids: Player ids in seat order
        seed: Optional seed for deterministic shuffling
        deck: Pre-arranged deck to deal without shuffling

    Returns:
        Tuple of (player_id -> hand, starting player id)
    """
    if not player_ids:
        return {}, None

    if deck is None:
        deck = shuffle_deck(create_deck(), seed)

    hands: Dict[str, List[Card]] = {player_id: [] for player_id in player_ids}
    for i, card in enumerate(deck):
        hands[player_ids[i % len(player_ids)]].append(card)

    starter = find_starting_player(hands)
    logger.debug(f"Dealt {len(deck)} cards to {len(player_ids)} players, starter {starter}")
    return hands, starter


def sort_hand(cards: Sequence[Card], mode: str, strength_reversed: bool = False) -> List[Card]:
    """
    Sort a hand for display.

    Args:
        cards: Cards to sort
        mode: 'strength' (strongest first), 'suit' (grouped by suit) or 'none'
        strength_reversed: Whether the strength order is currently reversed

    Returns:
        Sorted copy of the cards
    """
    def strength(card: Card) -> int:
        return get_rank_strength(card.rank, strength_reversed)

    def suit_value(card: Card) -> int:
        return HAND_SUIT_ORDER.index(card.suit)

    if mode == SORT_STRENGTH:
        return sorted(cards, key=lambda c: (-strength(c), suit_value(c), c.id))
    if mode == SORT_SUIT:
        return sorted(cards, key=lambda c: (suit_value(c), -strength(c), c.id))
    return list(cards)


def count_cards(state: GameState) -> int:
    """Count every card in hands, on the table and in the discard."""
    in_hands = sum(len(player.hand) for player in state.players)
    return in_hands + len(state.table.pile) + len(state.table.discard)


def validate_deck_integrity(state: GameState) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.

    Only meaningful once cards have been dealt.
    """
    all_cards = []
    for player in state.players:
        all_cards.extend(card.id for card in player.hand)
    all_cards.extend(card.id for card in state.table.pile)
    all_cards.extend(card.id for card in state.table.discard)

    expected_cards = {card.id for card in create_deck()}
    return (
        len(all_cards) == DECK_SIZE and
        len(set(all_cards)) == len(all_cards) and
        set(all_cards) == expected_cards
    )
