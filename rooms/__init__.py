"""Match rooms: the shared move-log store and the polling participants around it."""

from .session import MatchSession
from .store import MatchStore

__all__ = ["MatchSession", "MatchStore"]
