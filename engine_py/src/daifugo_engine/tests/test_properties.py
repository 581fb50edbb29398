"""
Random full-match playouts checking the invariants after every action.
"""

import random

import pytest

from daifugo_engine.constants import (
    EFFECT_QUEEN_PURGE, EFFECT_SEVEN_GIVE, EFFECT_TEN_DISCARD, RANKS
)
from daifugo_engine.effects import is_blocking_effect
from daifugo_engine.engine import (
    add_player, apply_effect_action, apply_pass, apply_play, create_empty_state, mark_ready
)
from daifugo_engine.models import EffectAction
from daifugo_engine.serialization import parse_state, serialize_state, sync_for_client
from daifugo_engine.shuffle import count_cards, validate_deck_integrity
from daifugo_engine.validate import legal_plays

MAX_STEPS = 2000


def dealt_state(seed):
    state = create_empty_state("prop-room")
    for i in range(1, 5):
        state, _ = add_player(state, f"p{i}", f"Player {i}")
    for i in range(1, 5):
        state, _ = mark_ready(state, f"p{i}", seed=seed)
    return state


def check_invariants(state):
    assert count_cards(state) == 53
    assert validate_deck_integrity(state)

    flags = state.flags
    assert flags.strength_reversed == (flags.revolution_active != flags.jack_reversal_active)

    if state.current_turn is None:
        assert state.finished
    else:
        assert not state.get_player(state.current_turn).finished

    for viewer in state.players:
        view = sync_for_client(state, viewer.id)
        for player in view["players"]:
            if player["id"] != viewer.id:
                assert "hand" not in player


def resolve_effect(state, player_id, rng):
    effect = next(e for e in state.pending_effects if is_blocking_effect(e, player_id))
    player = state.get_player(player_id)

    if effect.type == EFFECT_QUEEN_PURGE:
        declared = effect.payload.declared_ranks or []
        rank = rng.choice([r for r in RANKS if r not in declared])
        return apply_effect_action(state, EffectAction(type=effect.type, player_id=player_id, rank=rank))

    assert effect.type in (EFFECT_SEVEN_GIVE, EFFECT_TEN_DISCARD)
    count = rng.randint(0, min(effect.payload.count, len(player.hand)))
    chosen = [c.id for c in rng.sample(player.hand, count)]
    return apply_effect_action(state, EffectAction(type=effect.type, player_id=player_id, cards=chosen))


def play_match(seed):
    rng = random.Random(seed)
    state = dealt_state(seed)
    check_invariants(state)

    for _ in range(MAX_STEPS):
        if state.finished:
            break
        actor = state.current_turn

        if any(is_blocking_effect(e, actor) for e in state.pending_effects):
            state, result = resolve_effect(state, actor, rng)
            assert result.ok, result.reason
        else:
            options = legal_plays(state, actor)
            wants_pass = state.table.last_play is not None and rng.random() < 0.25
            if options and not wants_pass:
                state, result = apply_play(state, actor, rng.choice(options))
                assert result.ok, result.reason
            else:
                state = apply_pass(state, actor)

        check_invariants(state)

    return state


@pytest.mark.parametrize("seed", [1, 2, 3, 7, 42, 99, 2024])
def test_random_matches_keep_invariants(seed):
    state = play_match(seed)

    assert state.finished
    assert state.current_turn is None
    results = [p.result for p in state.players]
    assert all(results)
    # A purge can empty the last two hands at once, leaving no survivor
    assert results.count("大貧民") <= 1


def test_finished_match_survives_persistence():
    state = play_match(5)

    restored = parse_state(serialize_state(state), "prop-room")

    assert restored == state
    check_invariants(restored)
