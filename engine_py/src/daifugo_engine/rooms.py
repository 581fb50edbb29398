"""In-memory room host: one JSON blob per room, actions serialized per room"""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from . import errors
from .engine import create_empty_state
from .errors import raise_error
from .events import apply_action, parse_action
from .models import GameState
from .rules import RuleConfig, default_rules
from .serialization import parse_state, serialize_state, sync_for_client
from .validate import ValidationResult

logger = logging.getLogger(__name__)

STALE_STATE = "STALE_STATE"


@dataclass
class StoredRoom:
    state_json: str
    version: int = 0


class RoomStore:
    """
    Reference host for the engine.

    Every action on a room runs load -> apply -> store under that room's
    lock, so two requests can never compute divergent next states from the
    same read. `store` additionally checks the version it was handed.
    """

    def __init__(self, rules: RuleConfig = default_rules):
        self.rules = rules
        self.rooms: Dict[str, StoredRoom] = {}
        self.room_locks = defaultdict(threading.Lock)
        self._registry_lock = threading.Lock()

    def _lock_for(self, room_code: str) -> threading.Lock:
        with self._registry_lock:
            return self.room_locks[room_code]

    def create_room(self, room_code: str) -> GameState:
        with self._lock_for(room_code):
            if room_code in self.rooms:
                raise_error(errors.ROOM_EXISTS, f"Room {room_code} already exists")
            state = create_empty_state(room_code)
            self.rooms[room_code] = StoredRoom(state_json=serialize_state(state))
            logger.info(f"Created room {room_code}")
            return state

    def _get(self, room_code: str) -> StoredRoom:
        stored = self.rooms.get(room_code)
        if stored is None:
            raise_error(errors.ROOM_NOT_FOUND, f"Room {room_code} not found")
        return stored

    def load(self, room_code: str) -> Tuple[GameState, int]:
        """Read a room's state and the version it was read at."""
        stored = self._get(room_code)
        return parse_state(stored.state_json, room_code), stored.version

    def store(self, room_code: str, state: GameState, expected_version: int) -> int:
        """
        Write a room's state if nobody else wrote since expected_version.

        Raises:
            GameError: STALE_STATE on a version mismatch
        """
        with self._lock_for(room_code):
            return self._store_locked(room_code, state, expected_version)

    def _store_locked(self, room_code: str, state: GameState, expected_version: int) -> int:
        stored = self._get(room_code)
        if stored.version != expected_version:
            logger.warning(
                f"Room {room_code}: rejected write at version {expected_version}, "
                f"current is {stored.version}"
            )
            raise_error(STALE_STATE, f"Room {room_code} changed since version {expected_version}")
        stored.state_json = serialize_state(state)
        stored.version += 1
        return stored.version

    def apply(self, room_code: str, data: Dict[str, Any]) -> Tuple[GameState, ValidationResult]:
        """
        Parse and apply one action to a room.

        Rejected actions leave the stored state and version untouched.

        Raises:
            GameError: ROOM_NOT_FOUND for unknown rooms
            ValueError: For malformed action data
        """
        action = parse_action(data)
        with self._lock_for(room_code):
            state, version = self.load(room_code)
            new_state, result = apply_action(state, action, rules=self.rules)
            if result.ok:
                self._store_locked(room_code, new_state, version)
            else:
                logger.debug(f"Room {room_code}: {action.type.value} rejected: {result.reason}")
            return new_state, result

    def view(self, room_code: str, viewer_id: Optional[str]) -> Dict[str, Any]:
        state, _ = self.load(room_code)
        return sync_for_client(state, viewer_id)

    def views(self, room_code: str) -> Dict[str, Dict[str, Any]]:
        """Redact the room once per seated player, for fan-out."""
        state, _ = self.load(room_code)
        return {player.id: sync_for_client(state, player.id) for player in state.players}

    def delete_room(self, room_code: str):
        with self._lock_for(room_code):
            self.rooms.pop(room_code, None)
        with self._registry_lock:
            self.room_locks.pop(room_code, None)
        logger.info(f"Deleted room {room_code}")
