"""Game state enumeration."""

from enum import Enum, auto


class GameState(Enum):
    """
    Per-account game state machine states.

    Flow: NO_GAME → PLAYER_TURN → DEALER_TURN → FINISHED → PLAYER_TURN ...
    """

    # Account has never played
    NO_GAME = auto()

    # Player may hit or stay
    PLAYER_TURN = auto()

    # Dealer draws; only exists inside a stay
    DEALER_TURN = auto()

    # Round resolved, record kept until the next start
    FINISHED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
