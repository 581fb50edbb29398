"""
Rank comparison logic with support for strength reversal.
"""

from typing import List, Optional, Sequence

from .constants import JOKER, RANKS
from .models import Card

JOKER_STRENGTH = 100


def get_rank_index(rank: str) -> int:
    """Get the index of a non-joker rank in the normal ladder."""
    try:
        return RANKS.index(rank)
    except ValueError:
        raise ValueError(f"Invalid rank: {rank}")


def get_rank_strength(rank: str, reversed_order: bool = False) -> int:
    """
    Get the strength of a rank under the active order.

    The 13-rank ladder flips when reversed_order is set; the joker stays on top.
    """
    if rank == JOKER:
        return JOKER_STRENGTH
    index = get_rank_index(rank)
    if reversed_order:
        return len(RANKS) - 1 - index
    return index


def compare_ranks(rank_a: str, rank_b: str, reversed_order: bool = False) -> int:
    """
    Compare two ranks.

    Returns:
        < 0 if rank_a is weaker than rank_b
        0 if ranks are equal
        > 0 if rank_a is stronger than rank_b
    """
    return get_rank_strength(rank_a, reversed_order) - get_rank_strength(rank_b, reversed_order)


def is_higher_rank(rank_a: str, rank_b: str, reversed_order: bool = False) -> bool:
    """Check if rank_a beats rank_b."""
    return compare_ranks(rank_a, rank_b, reversed_order) > 0


def non_joker_cards(cards: Sequence[Card]) -> List[Card]:
    return [card for card in cards if not card.is_joker]


def count_jokers(cards: Sequence[Card]) -> int:
    return sum(1 for card in cards if card.is_joker)


def count_rank(cards: Sequence[Card], rank: str) -> int:
    return sum(1 for card in cards if card.rank == rank)


def non_joker_suits(cards: Sequence[Card]) -> List[str]:
    return [card.suit for card in non_joker_cards(cards)]


def has_uniform_rank(cards: Sequence[Card]) -> bool:
    """All non-joker cards share one rank (a lone joker always qualifies)."""
    ranks = {card.rank for card in non_joker_cards(cards)}
    return len(ranks) <= 1


def combination_rank(cards: Sequence[Card]) -> Optional[str]:
    """Representative rank of a combination: the common non-joker rank, else Joker."""
    if not cards:
        return None
    regular = non_joker_cards(cards)
    if not regular:
        return JOKER
    return regular[0].rank


def compare_combinations(challenger: Sequence[Card], current: Sequence[Card],
                         reversed_order: bool = False) -> int:
    """Compare two combinations by their representative ranks."""
    return compare_ranks(
        combination_rank(challenger),
        combination_rank(current),
        reversed_order
    )


def is_single_spade_three(cards: Sequence[Card]) -> bool:
    return len(cards) == 1 and cards[0].rank == '3' and cards[0].suit == 'spades'
