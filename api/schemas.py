"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Literal

from core.cards import Card
from core.game import ActionResult, GameRecord
from core.hand import calculate_hand_value

MAX_BET = 2**64 - 1


# Operation schemas
class StartGameRequest(BaseModel):
    """Request to start a game."""

    bet_amount: int = Field(..., ge=0, le=MAX_BET, description="Chips to stake")


class CardResponse(BaseModel):
    """Card representation."""

    index: int
    rank: str
    suit: str
    value: int
    id: str

    @classmethod
    def from_index(cls, card: int) -> "CardResponse":
        c = Card.from_index(card)
        return cls(
            index=card,
            rank=str(c.rank),
            suit=c.suit.name.lower(),
            value=c.value,
            id=c.image_id,
        )


class GameView(BaseModel):
    """A game record as a viewer may see it."""

    player_hand: list[int]
    dealer_visible_hand: list[int]
    player_value: int
    dealer_visible_value: int
    bet_amount: int
    is_active: bool
    player_stayed: bool
    player_cards: list[CardResponse]
    dealer_cards: list[CardResponse]

    @classmethod
    def from_record(cls, game: GameRecord) -> "GameView":
        dealer_visible = game.dealer_visible_hand()
        return cls(
            player_hand=list(game.player_hand),
            dealer_visible_hand=dealer_visible,
            player_value=calculate_hand_value(game.player_hand),
            dealer_visible_value=calculate_hand_value(dealer_visible),
            bet_amount=game.bet_amount,
            is_active=game.is_active,
            player_stayed=game.player_stayed,
            player_cards=[CardResponse.from_index(c) for c in game.player_hand],
            dealer_cards=[CardResponse.from_index(c) for c in dealer_visible],
        )


class ActionResponse(BaseModel):
    """Result of StartGame, Hit or Stay."""

    message: str
    kind: Literal["started", "drew", "resolved", "rejected"]
    reason: str | None = None
    outcome: str | None = None
    balance: int
    game: GameView | None = None

    @classmethod
    def from_result(cls, result: ActionResult, message: str) -> "ActionResponse":
        return cls(
            message=message,
            kind=result.kind.value,
            reason=result.reason.value if result.reason else None,
            outcome=result.resolution.outcome.value if result.resolution else None,
            balance=result.balance,
            game=GameView.from_record(result.game) if result.game else None,
        )


# Query schemas
class BalanceResponse(BaseModel):
    """Account balance."""

    account: str
    balance: int
