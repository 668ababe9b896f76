"""Persisted per-account game record."""

from dataclasses import dataclass, field
from typing import Any

from core.cards import validate_card
from core.game.state import GameState
from core.hand import calculate_hand_value

RECORD_FIELDS = (
    "player_hand",
    "dealer_hand",
    "dealer_hidden_card",
    "bet_amount",
    "is_active",
    "player_stayed",
)


@dataclass
class GameRecord:
    """
    One account's current or most recent game.

    `dealer_hand` holds only the dealer's visible cards. The hole card
    lives in `dealer_hidden_card` until the player stays, when it is
    appended to `dealer_hand`.
    """

    player_hand: list[int] = field(default_factory=list)
    dealer_hand: list[int] = field(default_factory=list)
    dealer_hidden_card: int = 0
    bet_amount: int = 0
    is_active: bool = True
    player_stayed: bool = False

    @property
    def state(self) -> GameState:
        if not self.is_active:
            return GameState.FINISHED
        if self.player_stayed:
            return GameState.DEALER_TURN
        return GameState.PLAYER_TURN

    @property
    def accepts_player_action(self) -> bool:
        return self.state == GameState.PLAYER_TURN

    @property
    def hole_card_revealed(self) -> bool:
        """The hole card may be shown once the game is over or the player stayed."""
        return not self.is_active or self.player_stayed

    @property
    def player_value(self) -> int:
        return calculate_hand_value(self.player_hand)

    def dealer_visible_hand(self) -> list[int]:
        """
        Dealer cards a viewer is allowed to see.

        A stay already appended the hole card to `dealer_hand`; a finished
        game that ended on a natural or a bust still has it only in
        `dealer_hidden_card`.
        """
        hand = list(self.dealer_hand)
        if self.hole_card_revealed and not self.player_stayed:
            hand.append(self.dealer_hidden_card)
        return hand

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_hand": list(self.player_hand),
            "dealer_hand": list(self.dealer_hand),
            "dealer_hidden_card": self.dealer_hidden_card,
            "bet_amount": self.bet_amount,
            "is_active": self.is_active,
            "player_stayed": self.player_stayed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameRecord":
        """Restore a record, raising ValueError on a malformed payload."""
        missing = [name for name in RECORD_FIELDS if name not in data]
        if missing:
            raise ValueError(f"Game record missing fields: {', '.join(missing)}")

        bet_amount = data["bet_amount"]
        if isinstance(bet_amount, bool) or not isinstance(bet_amount, int) or bet_amount < 0:
            raise ValueError(f"Invalid bet amount: {bet_amount!r}")

        return cls(
            player_hand=[validate_card(c) for c in data["player_hand"]],
            dealer_hand=[validate_card(c) for c in data["dealer_hand"]],
            dealer_hidden_card=validate_card(data["dealer_hidden_card"]),
            bet_amount=bet_amount,
            is_active=bool(data["is_active"]),
            player_stayed=bool(data["player_stayed"]),
        )
