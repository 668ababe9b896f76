"""Table engine and per-account game state."""

from core.game.events import GameEvent, EventType
from core.game.state import GameState
from core.game.record import GameRecord
from core.game.results import ActionKind, ActionResult, RejectReason
from core.game.engine import BlackjackTable

__all__ = [
    "GameEvent",
    "EventType",
    "GameState",
    "GameRecord",
    "ActionKind",
    "ActionResult",
    "RejectReason",
    "BlackjackTable",
]
