"""Typed results of table operations."""

from dataclasses import dataclass
from enum import Enum

from core.game.record import GameRecord
from core.resolver import Resolution


class ActionKind(Enum):
    """What an operation did."""

    STARTED = "started"
    DREW = "drew"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class RejectReason(Enum):
    """Business-rule rejections. None of them mutate state."""

    ACTIVE_GAME = "active_game"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    NO_GAME = "no_game"
    NOT_ACTIVE = "not_active"


@dataclass(frozen=True)
class ActionResult:
    """
    Result of StartGame, Hit or Stay.

    `game` and `balance` are the values to persist (or, for a rejection,
    the untouched values that were read). `bet_amount` is the requested
    bet for a start, kept so an insufficient-balance rejection can say
    what was attempted.
    """

    kind: ActionKind
    account: str
    balance: int
    game: GameRecord | None = None
    reason: RejectReason | None = None
    resolution: Resolution | None = None
    bet_amount: int | None = None

    @property
    def rejected(self) -> bool:
        return self.kind == ActionKind.REJECTED

    @property
    def mutates(self) -> bool:
        """Whether this result carries state that must be committed."""
        return not self.rejected

    @classmethod
    def reject(
        cls,
        account: str,
        reason: RejectReason,
        balance: int,
        game: GameRecord | None = None,
        bet_amount: int | None = None,
    ) -> "ActionResult":
        return cls(
            kind=ActionKind.REJECTED,
            account=account,
            balance=balance,
            game=game,
            reason=reason,
            bet_amount=bet_amount,
        )
