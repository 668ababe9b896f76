"""Blackjack table engine with state machine."""

import logging

from transitions import Machine

from core.cards import Card
from core.deck import CardSource
from core.game.events import EventEmitter, EventType
from core.game.record import GameRecord
from core.game.results import ActionKind, ActionResult, RejectReason
from core.game.state import GameState
from core.hand import Hand, calculate_hand_value, is_bust, is_natural
from core.ledger import Ledger
from core.resolver import resolve

logger = logging.getLogger("blackjack.table")

DEALER_STANDS_ON = 17


class BlackjackTable:
    """
    One account's seat at the table for the duration of one operation.

    The table is built from the values read out of the store (balance,
    game record) and a card source positioned at the global seed. It
    mutates only its own working copies; the caller persists `result.game`,
    `result.balance` and the card source's new seed when the result is not
    a rejection.
    """

    # State machine states
    STATES = [s.name.lower() for s in GameState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "deal", "source": ["no_game", "finished"], "dest": "player_turn"},
        {"trigger": "player_draws", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "player_stands", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "finish", "source": ["player_turn", "dealer_turn"], "dest": "finished"},
    ]

    def __init__(
        self,
        account: str,
        balance: int,
        game: GameRecord | None,
        cards: CardSource,
        dealer_stands_on: int = DEALER_STANDS_ON,
    ) -> None:
        """
        Args:
            account: Caller's account identifier
            balance: Caller's balance as read from the store
            game: Caller's stored game record, if any
            cards: Card source (normally the global sequencer)
            dealer_stands_on: Dealer draws while below this total
        """
        self.account = account
        self.ledger = Ledger(account, balance)
        self.game = game
        self.cards = cards
        self.dealer_stands_on = dealer_stands_on
        self.events = EventEmitter(account)

        initial = GameState.NO_GAME if game is None else game.state
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=initial.name.lower(),
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def state(self) -> GameState:
        """Get current game state as enum."""
        return GameState[self._machine_state.upper()]  # type: ignore

    def start_game(self, bet_amount: int) -> ActionResult:
        """
        Debit the bet and deal a new round.

        Deals two player cards, one visible dealer card and the dealer's
        hole card, in that order. A two-card 21 resolves immediately.
        """
        if self.game is not None and self.game.is_active:
            return self._reject(RejectReason.ACTIVE_GAME)

        if not self.ledger.can_afford(bet_amount):
            return self._reject(RejectReason.INSUFFICIENT_BALANCE, bet_amount=bet_amount)

        self.ledger.debit(bet_amount)
        self.events.emit(EventType.BET_DEBITED, amount=bet_amount, balance=self.ledger.balance)

        player_hand = [self._draw("player"), self._draw("player")]
        dealer_card = self._draw("dealer")
        hidden_card = self._draw("dealer", face_up=False)

        self.game = GameRecord(
            player_hand=player_hand,
            dealer_hand=[dealer_card],
            dealer_hidden_card=hidden_card,
            bet_amount=bet_amount,
            is_active=True,
            player_stayed=False,
        )
        self.deal()

        player_value = self.game.player_value
        self.events.emit(
            EventType.GAME_STARTED,
            bet_amount=bet_amount,
            player_hand=list(player_hand),
            player_value=player_value,
            dealer_shows=dealer_card,
        )

        if is_natural(self.game.player_hand):
            self.events.emit(EventType.PLAYER_BLACKJACK)
            return self._resolve()

        return self._result(ActionKind.STARTED)

    def hit(self) -> ActionResult:
        """Player draws one card. Busting ends the round."""
        rejection = self._check_player_turn()
        if rejection is not None:
            return rejection

        card = self._draw("player")
        self.game.player_hand.append(card)
        self.player_draws()

        player_value = self.game.player_value
        self.events.emit(EventType.PLAYER_HIT, card=card, hand_value=player_value)

        if is_bust(self.game.player_hand):
            self.events.emit(EventType.PLAYER_BUSTS, hand_value=player_value)
            return self._resolve()

        return self._result(ActionKind.DREW)

    def stay(self) -> ActionResult:
        """Player stands; the dealer reveals the hole card and plays out."""
        rejection = self._check_player_turn()
        if rejection is not None:
            return rejection

        self.game.player_stayed = True
        self.player_stands()
        self.events.emit(EventType.PLAYER_STAY, hand_value=self.game.player_value)

        self.game.dealer_hand.append(self.game.dealer_hidden_card)
        self.events.emit(
            EventType.DEALER_REVEALS,
            card=self.game.dealer_hidden_card,
            hand_value=self._dealer_value(),
        )

        # No soft-17 rule: the dealer stands on any 17
        while self._dealer_should_hit():
            card = self._draw("dealer")
            self.game.dealer_hand.append(card)
            self.events.emit(EventType.DEALER_HITS, card=card, hand_value=self._dealer_value())

        dealer_value = self._dealer_value()
        if not is_bust(self.game.dealer_hand):
            self.events.emit(EventType.DEALER_STANDS, hand_value=dealer_value)

        return self._resolve()

    def _check_player_turn(self) -> ActionResult | None:
        if self.game is None:
            return self._reject(RejectReason.NO_GAME)
        if not self.game.accepts_player_action:
            return self._reject(RejectReason.NOT_ACTIVE)
        return None

    def _draw(self, to: str, face_up: bool = True) -> int:
        card = self.cards.draw_card()
        self.events.emit(
            EventType.CARD_DEALT,
            card=card if face_up else None,
            label=str(Card.from_index(card)) if face_up else "??",
            hand=to,
        )
        return card

    def _dealer_value(self) -> int:
        return calculate_hand_value(self.game.dealer_hand)

    def _dealer_should_hit(self) -> bool:
        return self._dealer_value() < self.dealer_stands_on

    def _resolve(self) -> ActionResult:
        """Settle the round exactly once and mark the record finished."""
        resolution = resolve(
            self.game.player_value,
            self._dealer_value(),
            self.game.bet_amount,
        )

        if resolution.credit:
            self.ledger.credit(resolution.credit)
            self.events.emit(
                EventType.CHIPS_CREDITED,
                amount=resolution.credit,
                balance=self.ledger.balance,
            )

        self.game.is_active = False
        self.finish()

        self.events.emit(
            EventType.GAME_RESOLVED,
            outcome=resolution.outcome.value,
            player_value=resolution.player_value,
            dealer_value=resolution.dealer_value,
            net=resolution.net,
        )
        logger.info(
            "Resolved game for %s: %s (player %s, dealer %s, net %+d, balance %d)",
            self.account,
            resolution.outcome.value,
            Hand(list(self.game.player_hand)),
            Hand(list(self.game.dealer_hand)),
            resolution.net,
            self.ledger.balance,
        )

        return self._result(ActionKind.RESOLVED, resolution=resolution)

    def _result(self, kind: ActionKind, **extra) -> ActionResult:
        return ActionResult(
            kind=kind,
            account=self.account,
            balance=self.ledger.balance,
            game=self.game,
            **extra,
        )

    def _reject(self, reason: RejectReason, bet_amount: int | None = None) -> ActionResult:
        self.events.emit(EventType.ACTION_REJECTED, reason=reason.value)
        logger.info("Rejected action for %s: %s", self.account, reason.value)
        return ActionResult.reject(
            self.account,
            reason,
            balance=self.ledger.balance,
            game=self.game,
            bet_amount=bet_amount,
        )
