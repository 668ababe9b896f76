"""Card representation - a card is an integer in [0, 51]."""

from dataclasses import dataclass
from enum import Enum

CARDS_PER_SUIT = 13
DECK_SIZE = 52


class Suit(Enum):
    """Card suits in deck order (card // 13)."""

    CLUBS = 0
    DIAMONDS = 1
    HEARTS = 2
    SPADES = 3

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks (card % 13 + 1). Rank 1 is the ace."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        if 2 <= self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @property
    def blackjack_value(self) -> int:
        """Return the blackjack point value (Ace = 11, face cards = 10)."""
        if self == Rank.ACE:
            return 11
        if self.value <= 10:
            return self.value
        return 10

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE

    @property
    def display_name(self) -> str:
        """Lower-case name used for card image ids ("ace", "7", "queen")."""
        if 2 <= self.value <= 10:
            return str(self.value)
        return self.name.lower()


def rank_of(card: int) -> Rank:
    """Return the rank of a card index."""
    return Rank(card % CARDS_PER_SUIT + 1)


def suit_of(card: int) -> Suit:
    """Return the suit of a card index. Never used for scoring."""
    return Suit(card // CARDS_PER_SUIT)


def validate_card(card: int) -> int:
    """Return `card` unchanged, raising ValueError if it is not in [0, 51]."""
    if isinstance(card, bool) or not isinstance(card, int):
        raise ValueError(f"Card must be an integer, got {card!r}")
    if not 0 <= card < DECK_SIZE:
        raise ValueError(f"Card out of range: {card}")
    return card


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable view of a card index."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @classmethod
    def from_index(cls, card: int) -> "Card":
        """Build a Card from its integer index."""
        validate_card(card)
        return cls(rank_of(card), suit_of(card))

    @property
    def index(self) -> int:
        """Return the integer index of this card."""
        return self.suit.value * CARDS_PER_SUIT + self.rank.value - 1

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @property
    def image_id(self) -> str:
        """Return an id like "queen_of_hearts" for front-end card images."""
        return f"{self.rank.display_name}_of_{self.suit.name.lower()}"

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', 'Kh'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        rank_map = {
            "A": Rank.ACE,
            "2": Rank.TWO,
            "3": Rank.THREE,
            "4": Rank.FOUR,
            "5": Rank.FIVE,
            "6": Rank.SIX,
            "7": Rank.SEVEN,
            "8": Rank.EIGHT,
            "9": Rank.NINE,
            "10": Rank.TEN,
            "T": Rank.TEN,
            "J": Rank.JACK,
            "Q": Rank.QUEEN,
            "K": Rank.KING,
        }

        suit_map = {
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
        }

        if rank_str not in rank_map:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank_map[rank_str], suit_map[suit_str])


def card_index(s: str) -> int:
    """Shortcut: parse a card string and return its index."""
    return Card.from_string(s).index
