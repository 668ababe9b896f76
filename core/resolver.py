"""Round resolution: compare final hands and compute the ledger credit."""

from dataclasses import dataclass
from enum import Enum

from core.hand import BLACKJACK


class Outcome(Enum):
    """Final result of a round from the player's point of view."""

    BUST = "bust"
    DEALER_BUST = "dealer_bust"
    WIN = "win"
    LOSS = "loss"
    PUSH = "push"

    @property
    def is_win(self) -> bool:
        return self in (Outcome.WIN, Outcome.DEALER_BUST)


@dataclass(frozen=True)
class Resolution:
    """Outcome of a round and the chips credited back to the player."""

    outcome: Outcome
    player_value: int
    dealer_value: int
    bet_amount: int
    credit: int

    @property
    def net(self) -> int:
        """Net change in balance across the whole round."""
        return self.credit - self.bet_amount


def resolve(player_value: int, dealer_value: int, bet_amount: int) -> Resolution:
    """
    Resolve a round.

    The bet has already been debited, so a win credits twice the bet, a
    push returns the bet, and a loss or bust credits nothing.
    """
    if player_value > BLACKJACK:
        outcome, credit = Outcome.BUST, 0
    elif dealer_value > BLACKJACK:
        outcome, credit = Outcome.DEALER_BUST, bet_amount * 2
    elif player_value > dealer_value:
        outcome, credit = Outcome.WIN, bet_amount * 2
    elif player_value < dealer_value:
        outcome, credit = Outcome.LOSS, 0
    else:
        outcome, credit = Outcome.PUSH, bet_amount

    return Resolution(
        outcome=outcome,
        player_value=player_value,
        dealer_value=dealer_value,
        bet_amount=bet_amount,
        credit=credit,
    )
