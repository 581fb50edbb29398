"""
Action models and dispatch for the hosting layer.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError

from . import errors
from .engine import (
    add_player, apply_effect_action, apply_pass, apply_play, mark_ready, remove_player
)
from .models import EffectAction, GameState
from .rules import RuleConfig, default_rules
from .validate import ValidationResult, validate_pass


class ActionType(str, Enum):
    """Inbound action types."""
    JOIN = "join"
    READY = "ready"
    PLAY = "play"
    PASS = "pass"
    SEVEN_GIVE = "sevenGive"
    TEN_DISCARD = "tenDiscard"
    QUEEN_PURGE = "queenPurge"
    LEAVE = "leave"


class BaseAction(BaseModel):
    """Base action model."""
    type: ActionType
    player_id: str = Field(..., min_length=1, max_length=64)


class JoinAction(BaseAction):
    """Take a seat at the table."""
    type: ActionType = ActionType.JOIN
    name: str = Field(..., min_length=1, max_length=30)


class ReadyAction(BaseAction):
    """Declare ready; the deal happens once everyone is."""
    type: ActionType = ActionType.READY
    seed: Optional[int] = None


class PlayAction(BaseAction):
    """Play cards."""
    type: ActionType = ActionType.PLAY
    cards: List[str] = Field(..., min_length=1, max_length=5)


class PassAction(BaseAction):
    """Pass turn."""
    type: ActionType = ActionType.PASS


class SevenGiveAction(BaseAction):
    """Cards handed to the next seat (empty list skips)."""
    type: ActionType = ActionType.SEVEN_GIVE
    cards: List[str] = Field(default_factory=list, max_length=5)


class TenDiscardAction(BaseAction):
    """Cards discarded (empty list skips)."""
    type: ActionType = ActionType.TEN_DISCARD
    cards: List[str] = Field(default_factory=list, max_length=5)


class QueenPurgeAction(BaseAction):
    """Declare one rank to purge from every hand."""
    type: ActionType = ActionType.QUEEN_PURGE
    rank: str = Field(..., min_length=1, max_length=5)


class LeaveAction(BaseAction):
    """Leave the room."""
    type: ActionType = ActionType.LEAVE
    result_label: Optional[str] = Field(default=None, max_length=30)


# Union type for all inbound actions
Action = Union[
    JoinAction,
    ReadyAction,
    PlayAction,
    PassAction,
    SevenGiveAction,
    TenDiscardAction,
    QueenPurgeAction,
    LeaveAction
]

ACTION_MODELS = {
    ActionType.JOIN: JoinAction,
    ActionType.READY: ReadyAction,
    ActionType.PLAY: PlayAction,
    ActionType.PASS: PassAction,
    ActionType.SEVEN_GIVE: SevenGiveAction,
    ActionType.TEN_DISCARD: TenDiscardAction,
    ActionType.QUEEN_PURGE: QueenPurgeAction,
    ActionType.LEAVE: LeaveAction,
}


def parse_action(data: Dict[str, Any]) -> Action:
    """
    Parse raw action data into the matching action model.

    Args:
        data: Raw action payload from the hosting layer

    Returns:
        Parsed action model

    Raises:
        ValueError: If the action type is unknown or the data is malformed
    """
    action_type = data.get("type")

    if not action_type:
        raise ValueError("Missing action type")

    try:
        action_type = ActionType(action_type)
    except ValueError:
        raise ValueError(f"Invalid action type: {action_type}")

    action_class = ACTION_MODELS[action_type]
    try:
        return action_class(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid action data: {e}")


def apply_action(state: GameState, action: Action,
                 rules: RuleConfig = default_rules) -> Tuple[GameState, ValidationResult]:
    """
    Route a parsed action to the engine operation it names.

    Args:
        state: Current game state (left untouched)
        action: Parsed action
        rules: Table limits

    Returns:
        Tuple of (new state, validation result)
    """
    if isinstance(action, JoinAction):
        return add_player(state, action.player_id, action.name, rules=rules)

    if isinstance(action, ReadyAction):
        return mark_ready(state, action.player_id, seed=action.seed, rules=rules)

    if isinstance(action, PlayAction):
        return apply_play(state, action.player_id, action.cards, rules=rules)

    if isinstance(action, PassAction):
        check = validate_pass(state, action.player_id)
        if not check.ok:
            return state, check
        return apply_pass(state, action.player_id, rules=rules), check

    if isinstance(action, (SevenGiveAction, TenDiscardAction)):
        effect_action = EffectAction(
            type=action.type.value,
            player_id=action.player_id,
            cards=list(action.cards)
        )
        return apply_effect_action(state, effect_action, rules=rules)

    if isinstance(action, QueenPurgeAction):
        effect_action = EffectAction(
            type=action.type.value,
            player_id=action.player_id,
            rank=action.rank
        )
        return apply_effect_action(state, effect_action, rules=rules)

    if isinstance(action, LeaveAction):
        if not state.get_player(action.player_id):
            return state, ValidationResult.error(errors.PLAYER_NOT_FOUND, "Player not found")
        return remove_player(state, action.player_id, action.result_label, rules=rules), ValidationResult.success()

    return state, ValidationResult.error(errors.INVALID_ACTION, f"Unsupported action: {action!r}")
