"""Hand evaluation for blackjack."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Iterator

from core.cards import Card, rank_of

BLACKJACK = 21


def _evaluate(hand: Iterable[int]) -> tuple[int, int]:
    """Return (total, aces still counted as 11)."""
    total = 0
    aces = 0

    for card in hand:
        rank = rank_of(card)
        if rank.is_ace:
            aces += 1
        total += rank.blackjack_value

    # Reduce aces from 11 to 1 as needed
    while total > BLACKJACK and aces > 0:
        total -= 10
        aces -= 1

    return total, aces


def calculate_hand_value(hand: Iterable[int]) -> int:
    """
    Calculate the blackjack value of a sequence of card indices.

    Aces count 11 and are reduced to 1, one at a time, while the total is
    over 21. The result may still exceed 21 (a bust).
    """
    return _evaluate(hand)[0]


def is_soft(hand: Iterable[int]) -> bool:
    """Check if the hand still counts an ace as 11."""
    return _evaluate(hand)[1] > 0


def is_bust(hand: Iterable[int]) -> bool:
    """Check if the hand value exceeds 21."""
    return calculate_hand_value(hand) > BLACKJACK


def is_natural(hand: Sequence[int]) -> bool:
    """Check if the hand is a two-card 21."""
    return len(hand) == 2 and calculate_hand_value(hand) == BLACKJACK


@dataclass
class Hand:
    """An ordered, append-only list of card indices."""

    cards: list[int] = field(default_factory=list)

    def add_card(self, card: int) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    @property
    def value(self) -> int:
        return calculate_hand_value(self.cards)

    @property
    def is_soft(self) -> bool:
        return is_soft(self.cards)

    @property
    def is_busted(self) -> bool:
        return self.value > BLACKJACK

    @property
    def is_blackjack(self) -> bool:
        return is_natural(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[int]:
        return iter(self.cards)

    def __str__(self) -> str:
        cards_str = " ".join(str(Card.from_index(c)) for c in self.cards)
        value_str = f"({self.value})"
        if self.is_soft:
            value_str = f"(soft {self.value})"
        if self.is_blackjack:
            value_str = "(BLACKJACK)"
        if self.is_busted:
            value_str = "(BUST)"
        return f"{cards_str} {value_str}"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"
