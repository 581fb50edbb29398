"""Game constants and card primitives"""

from typing import List

RANKS = ['3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A', '2']
JOKER = 'Joker'
ALL_RANKS = RANKS + [JOKER]

SUITS = ['clubs', 'diamonds', 'hearts', 'spades']
JOKER_SUIT = 'joker'
JOKER_CARD_ID = 'joker'

DECK_SIZE = len(RANKS) * len(SUITS) + 1

SUIT_ICONS = {
    'clubs': '♣',
    'diamonds': '♦',
    'hearts': '♥',
    'spades': '♠',
}

# Ranks whose effect a single joker can "complete" up to WILD_MIN_COUNT
WILD_ELIGIBLE_RANKS = ['7', '8', '9', '10', 'J', 'Q']
WILD_MIN_COUNT = 3

# Finish labels in finishing order
RESULT_LABELS: List[str] = ['大富豪', '富豪', '平民', '貧民', '大貧民']
RESULT_FALLBACK = '平民'
RESULT_LAST = '大貧民'
RESULT_LEFT = '退室'

# Effect types
EFFECT_EIGHT_CUT = 'eightCut'
EFFECT_TEN_DISCARD = 'tenDiscard'
EFFECT_QUEEN_PURGE = 'queenPurge'
EFFECT_SEVEN_GIVE = 'sevenGive'
EFFECT_JACK_REVERSE = 'jackReverse'
EFFECT_JOKER_COUNTER = 'jokerCounter'
EFFECT_NINE_REVERSE = 'nineReverse'

EFFECT_TYPES = [
    EFFECT_EIGHT_CUT,
    EFFECT_TEN_DISCARD,
    EFFECT_QUEEN_PURGE,
    EFFECT_SEVEN_GIVE,
    EFFECT_JACK_REVERSE,
    EFFECT_JOKER_COUNTER,
    EFFECT_NINE_REVERSE,
]

BLOCKING_EFFECTS = [EFFECT_TEN_DISCARD, EFFECT_SEVEN_GIVE, EFFECT_QUEEN_PURGE]

# Hand sort modes
SORT_NONE = 'none'
SORT_STRENGTH = 'strength'
SORT_SUIT = 'suit'


def card_id_for(suit: str, rank: str) -> str:
    if rank == JOKER:
        return JOKER_CARD_ID
    return f"{suit}-{rank}"


def describe_suit(suit: str) -> str:
    return SUIT_ICONS.get(suit, suit)
