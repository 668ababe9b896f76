"""Pytest fixtures for blackjack table tests."""

import os

# Endpoint tests hammer the same routes from one address
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest

from core.cards import card_index
from core.deck import Sequencer
from core.game import GameRecord


class StackedDeck:
    """Card source that deals a fixed list of cards, in order."""

    def __init__(self, cards: list[int]) -> None:
        self._cards = list(cards)
        self.drawn: list[int] = []

    def draw_card(self) -> int:
        if not self._cards:
            raise AssertionError("StackedDeck ran out of cards")
        card = self._cards.pop(0)
        self.drawn.append(card)
        return card

    @property
    def remaining(self) -> int:
        return len(self._cards)


def cards(*names: str) -> list[int]:
    """Card indices from strings like 'AS', '10H'."""
    return [card_index(name) for name in names]


@pytest.fixture
def stack():
    """Factory for a stacked deck: stack('AS', 'KH', ...)."""

    def _stack(*names: str) -> StackedDeck:
        return StackedDeck(cards(*names))

    return _stack


@pytest.fixture
def sequencer():
    """Sequencer starting from the bootstrap seed."""
    return Sequencer(0)


@pytest.fixture
def player_turn_game():
    """Active game: player 10-6 (16), dealer shows 9, hole card 8."""
    return GameRecord(
        player_hand=cards("10C", "6D"),
        dealer_hand=cards("9H"),
        dealer_hidden_card=card_index("8S"),
        bet_amount=100,
        is_active=True,
        player_stayed=False,
    )


@pytest.fixture
def finished_game():
    """Finished game that ended with a player bust."""
    return GameRecord(
        player_hand=cards("10C", "6D", "KC"),
        dealer_hand=cards("9H"),
        dealer_hidden_card=card_index("8S"),
        bet_amount=100,
        is_active=False,
        player_stayed=False,
    )
