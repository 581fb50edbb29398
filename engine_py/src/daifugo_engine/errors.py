# engine_py/src/daifugo_engine/errors.py

class GameError(Exception):
    """Base exception for host-level failures (rule violations are returned, not raised)."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
MATCH_FINISHED = "MATCH_FINISHED"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
ALREADY_FINISHED = "ALREADY_FINISHED"
EFFECT_PENDING = "EFFECT_PENDING"
EMPTY_SELECTION = "EMPTY_SELECTION"
DUPLICATE_SELECTION = "DUPLICATE_SELECTION"
OWNERSHIP_MISMATCH = "OWNERSHIP_MISMATCH"
PATTERN_MISMATCH = "PATTERN_MISMATCH"
COUNT_MISMATCH = "COUNT_MISMATCH"
SUIT_LOCKED = "SUIT_LOCKED"
SPADE3_REQUIRED = "SPADE3_REQUIRED"
RANK_TOO_LOW = "RANK_TOO_LOW"
NO_PENDING_EFFECT = "NO_PENDING_EFFECT"
INVALID_EFFECT_SELECTION = "INVALID_EFFECT_SELECTION"
NO_RECIPIENT = "NO_RECIPIENT"
RANK_NOT_ELIGIBLE = "RANK_NOT_ELIGIBLE"
ROOM_FULL = "ROOM_FULL"
ALREADY_DEALT = "ALREADY_DEALT"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ROOM_EXISTS = "ROOM_EXISTS"
INVALID_ACTION = "INVALID_ACTION"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
