"""
Test play validation, effect selection checks and legal play enumeration.
"""

import copy

from daifugo_engine import errors
from daifugo_engine.constants import EFFECT_TEN_DISCARD, JOKER, card_id_for
from daifugo_engine.models import Card, Effect, EffectPayload, GameState, Play, Player
from daifugo_engine.validate import (
    can_play, legal_plays, validate_effect_selection, validate_pass
)


def card(rank, suit="clubs"):
    if rank == JOKER:
        return Card(id=card_id_for("joker", JOKER), suit="joker", rank=JOKER)
    return Card(id=card_id_for(suit, rank), suit=suit, rank=rank)


def make_state(hands, turn="p1"):
    players = [
        Player(id=pid, name=pid.upper(), seat=i + 1, hand=list(cards))
        for i, (pid, cards) in enumerate(hands.items())
    ]
    return GameState(room_code="test-room", players=players, current_turn=turn, starting_player=turn)


def table_with(state, player_id, cards):
    state.table.last_play = Play(player_id=player_id, cards=list(cards))
    state.table.required_count = len(cards)
    state.table.pile.extend(cards)
    return state


def basic_state():
    return make_state({
        "p1": [card("3"), card("3", "diamonds"), card("5", "hearts"), card(JOKER), card("6", "spades"),
               card("3", "spades")],
        "p2": [card("4", "clubs"), card("2", "clubs")],
        "p3": [card("9", "clubs")],
        "p4": [card("K", "clubs")],
    })


def test_not_your_turn():
    state = basic_state()
    result = can_play(state, "p2", ["clubs-4"])

    assert not result.ok
    assert result.code == errors.NOT_YOUR_TURN
    assert result.reason == "It's not your turn"


def test_empty_selection():
    result = can_play(basic_state(), "p1", [])
    assert result.code == errors.EMPTY_SELECTION


def test_cards_must_be_in_hand():
    state = basic_state()

    assert can_play(state, "p1", ["clubs-K"]).code == errors.OWNERSHIP_MISMATCH


def test_duplicate_card_ids_rejected():
    result = can_play(basic_state(), "p1", ["clubs-3", "clubs-3"])

    assert result.code == errors.DUPLICATE_SELECTION
    assert result.reason == "The same card cannot be selected twice"


def test_uniform_rank_only():
    result = can_play(basic_state(), "p1", ["clubs-3", "hearts-5"])

    assert result.code == errors.PATTERN_MISMATCH
    assert result.reason.startswith("Uniform rank only")


def test_lone_joker_and_joker_pairs_are_legal_leads():
    state = basic_state()

    assert can_play(state, "p1", ["joker"]).ok
    assert can_play(state, "p1", ["clubs-3", "joker"]).ok
    assert can_play(state, "p1", [card("3"), card("3", "diamonds")]).ok


def test_required_count_must_match():
    state = table_with(basic_state(), "p4", [card("4", "hearts")])
    result = can_play(state, "p1", ["clubs-3", "diamonds-3"])

    assert result.code == errors.COUNT_MISMATCH


def test_must_beat_previous_play():
    state = table_with(basic_state(), "p4", [card("5", "spades")])

    weaker = can_play(state, "p1", ["clubs-3"])
    assert weaker.code == errors.RANK_TOO_LOW
    assert weaker.reason == "Must beat the previous play"

    # Ties are illegal
    assert can_play(state, "p1", ["hearts-5"]).code == errors.RANK_TOO_LOW
    assert can_play(state, "p1", ["spades-6"]).ok


def test_reversed_order_flips_the_ladder():
    state = table_with(basic_state(), "p4", [card("5", "spades")])
    state.flags.revolution_active = True
    state.flags.sync_strength()

    assert can_play(state, "p1", ["clubs-3"]).ok
    assert can_play(state, "p1", ["spades-6"]).code == errors.RANK_TOO_LOW
    # The joker stays on top either way
    assert can_play(state, "p1", ["joker"]).ok


def test_joker_pair_uses_common_rank():
    state = table_with(basic_state(), "p4", [card("4", "hearts"), card("4", "spades")])

    assert can_play(state, "p1", ["hearts-5", "joker"]).ok
    assert can_play(state, "p1", ["clubs-3", "joker"]).code == errors.RANK_TOO_LOW


def test_suit_lock():
    state = table_with(basic_state(), "p4", [card("4", "hearts")])
    state.flags.lock_suit = "hearts"

    locked = can_play(state, "p1", ["spades-6"])
    assert locked.code == errors.SUIT_LOCKED
    assert can_play(state, "p1", ["hearts-5"]).ok
    assert can_play(state, "p1", ["joker"]).ok


def test_awaiting_spade_three():
    state = table_with(basic_state(), "p4", [card(JOKER)])
    state.get_player("p1").hand.remove(card(JOKER))
    state.flags.awaiting_spade3 = True

    result = can_play(state, "p1", ["hearts-5"])
    assert result.code == errors.SPADE3_REQUIRED
    assert result.reason == "Must counter with spade 3"
    assert can_play(state, "p1", ["spades-3"]).ok


def test_only_spade_three_answers_a_joker():
    state = table_with(basic_state(), "p4", [card(JOKER)])
    state.get_player("p1").hand.remove(card(JOKER))

    result = can_play(state, "p1", ["hearts-5"])
    assert result.code == errors.SPADE3_REQUIRED
    assert result.reason == "Only a single spade 3 can answer a joker"
    assert can_play(state, "p1", ["spades-3"]).ok


def test_blocking_effect_stops_passes_only():
    state = basic_state()
    state.pending_effects.append(Effect(
        type=EFFECT_TEN_DISCARD,
        payload=EffectPayload(player_id="p1", count=1, optional=True, remaining=1)
    ))

    assert can_play(state, "p1", ["clubs-3"]).ok
    assert validate_pass(state, "p1").code == errors.EFFECT_PENDING


def test_finished_match_rejects_everything():
    state = basic_state()
    state.finished = True

    assert can_play(state, "p1", ["clubs-3"]).code == errors.MATCH_FINISHED
    assert validate_pass(state, "p1").code == errors.MATCH_FINISHED


def test_validation_never_mutates():
    state = table_with(basic_state(), "p4", [card("5", "spades")])
    state.flags.lock_suit = "spades"
    before = copy.deepcopy(state)

    for selection in (["clubs-3"], ["spades-6"], ["hearts-5"], ["joker"], []):
        can_play(state, "p1", selection)

    assert state == before


def test_result_to_dict():
    state = basic_state()

    assert can_play(state, "p1", ["clubs-3"]).to_dict() == {"ok": True}
    assert can_play(state, "p2", ["clubs-4"]).to_dict() == {
        "ok": False,
        "reason": "It's not your turn",
    }


def test_legal_plays_on_empty_table():
    state = make_state({
        "p1": [card("3"), card("3", "diamonds"), card("5", "hearts"), card(JOKER)],
        "p2": [card("4")],
    })
    options = legal_plays(state, "p1")
    keys = [frozenset(c.id for c in option) for option in options]

    assert len(keys) == len(set(keys)) == 9
    assert frozenset(["clubs-3", "diamonds-3", "joker"]) in keys
    assert frozenset(["joker"]) in keys
    assert all(can_play(state, "p1", option).ok for option in options)


def test_legal_plays_respect_the_table():
    state = make_state({
        "p1": [card("3"), card("3", "diamonds"), card("5", "hearts"), card(JOKER)],
        "p2": [card("4")],
    })
    table_with(state, "p2", [card("4", "hearts")])

    keys = {frozenset(c.id for c in option) for option in legal_plays(state, "p1")}
    assert keys == {frozenset(["hearts-5"]), frozenset(["joker"])}


def test_legal_plays_for_finished_player():
    state = basic_state()
    state.get_player("p1").finished = True

    assert legal_plays(state, "p1") == []


def test_effect_selection_limits():
    player = Player(id="p1", name="P1", seat=1, hand=[card("3"), card("4"), card("5")])
    effect = Effect(
        type=EFFECT_TEN_DISCARD,
        payload=EffectPayload(player_id="p1", count=2, optional=True, remaining=2)
    )

    assert validate_effect_selection(effect, player, []).ok
    assert validate_effect_selection(effect, player, ["clubs-3", "clubs-4"]).ok

    too_many = validate_effect_selection(effect, player, ["clubs-3", "clubs-4", "clubs-5"])
    assert too_many.code == errors.INVALID_EFFECT_SELECTION

    duplicate = validate_effect_selection(effect, player, ["clubs-3", "clubs-3"])
    assert duplicate.code == errors.INVALID_EFFECT_SELECTION

    missing = validate_effect_selection(effect, player, ["hearts-9"])
    assert missing.code == errors.OWNERSHIP_MISMATCH
