"""Table events emitted while an operation runs."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable

logger = logging.getLogger("blackjack.events")


class EventType(Enum):
    """Types of table events."""

    # Round flow
    GAME_STARTED = auto()
    GAME_RESOLVED = auto()

    # Chips
    BET_DEBITED = auto()
    CHIPS_CREDITED = auto()

    # Cards
    CARD_DEALT = auto()

    # Player actions
    PLAYER_HIT = auto()
    PLAYER_STAY = auto()
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()

    # Dealer
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()

    # Business-rule rejections
    ACTION_REJECTED = auto()


@dataclass(frozen=True)
class GameEvent:
    """Immutable table event."""

    event_type: EventType
    account: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.event_type.name}[{self.account}]: {self.data}"


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Event emitter for one account's operation.

    Handlers subscribe to a specific event type or to every event (None).
    Every event is also logged at debug level.
    """

    def __init__(self, account: str) -> None:
        self.account = account
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._event_history: list[GameEvent] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Subscribe to events.

        Args:
            handler: Function to call when event occurs
            event_type: Specific event type to subscribe to, or None for all events
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def emit(self, event_type: EventType, **data: Any) -> GameEvent:
        """Create, record and dispatch an event."""
        event = GameEvent(event_type=event_type, account=self.account, data=data)
        self._event_history.append(event)
        logger.debug("%s", event)

        for handler in self._handlers.get(event_type, []):
            handler(event)
        for handler in self._handlers.get(None, []):
            handler(event)

        return event

    @property
    def history(self) -> list[GameEvent]:
        """Return the event history."""
        return self._event_history.copy()

    def types(self) -> list[EventType]:
        """Event types in emission order."""
        return [event.event_type for event in self._event_history]
