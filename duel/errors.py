from __future__ import annotations

from typing import Optional


class DuelError(Exception):
    """Base error; ``code`` is what hosts send back to clients."""

    code = "DUEL_ERROR"

    def __init__(self, msg: str, code: Optional[str] = None) -> None:
        super().__init__(msg)
        self.msg = msg
        if code is not None:
            self.code = code


class InvalidHandSize(DuelError, ValueError):
    code = "INVALID_HAND_SIZE"


class IllegalPlacement(DuelError, ValueError):
    code = "ILLEGAL_PLACEMENT"


class InvalidMove(DuelError, ValueError):
    code = "INVALID_MOVE"


class InvalidRoomCode(DuelError, ValueError):
    code = "BAD_ROOM_CODE"


class StaleWrite(DuelError, RuntimeError):
    code = "STALE_WRITE"

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Move log has {actual} entries, expected {expected}")
        self.expected = expected
        self.actual = actual


class MatchNotFound(DuelError, LookupError):
    code = "MATCH_NOT_FOUND"


class MatchFull(DuelError, RuntimeError):
    code = "MATCH_FULL"
