"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Rank, Suit
from core.deck import Sequencer, next_seed
from core.hand import Hand, calculate_hand_value
from core.ledger import Ledger
from core.resolver import Outcome, Resolution, resolve

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "Sequencer",
    "next_seed",
    "Hand",
    "calculate_hand_value",
    "Ledger",
    "Outcome",
    "Resolution",
    "resolve",
]
