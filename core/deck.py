"""Deterministic card sequencer driven by a 64-bit linear congruential seed."""

from typing import Protocol

from core.cards import DECK_SIZE

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
SEED_MODULUS = 2**64


def next_seed(seed: int) -> int:
    """Advance the seed one step with unsigned 64-bit wraparound."""
    return (seed * LCG_MULTIPLIER + LCG_INCREMENT) % SEED_MODULUS


def validate_seed(seed: int) -> int:
    """Return `seed`, raising ValueError unless it is an unsigned 64-bit int."""
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise ValueError(f"Seed must be an integer, got {seed!r}")
    if not 0 <= seed < SEED_MODULUS:
        raise ValueError(f"Seed out of 64-bit range: {seed}")
    return seed


class CardSource(Protocol):
    """Anything the table can draw cards from."""

    def draw_card(self) -> int:
        ...


class Sequencer:
    """
    Card source backed by one mutable seed.

    Each draw returns `seed % 52` and then advances the seed. The sequence
    is fully predictable from the seed; it is a replayable dealer, not a
    fair shuffle.
    """

    def __init__(self, seed: int = 0) -> None:
        self._seed = validate_seed(seed)
        self._draws = 0

    @property
    def seed(self) -> int:
        """The seed the next draw will consume."""
        return self._seed

    @property
    def draws(self) -> int:
        """Number of cards drawn from this sequencer instance."""
        return self._draws

    def draw_card(self) -> int:
        """Draw the next card and advance the seed."""
        card = self._seed % DECK_SIZE
        self._seed = next_seed(self._seed)
        self._draws += 1
        return card

    def peek(self, count: int) -> list[int]:
        """Return the next `count` cards without consuming them."""
        cards = []
        seed = self._seed
        for _ in range(count):
            cards.append(seed % DECK_SIZE)
            seed = next_seed(seed)
        return cards

    def __repr__(self) -> str:
        return f"Sequencer(seed={self._seed})"
