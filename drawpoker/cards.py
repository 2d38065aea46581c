from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .models import EngineDefect

LOGGER = logging.getLogger("drawpoker.cards")

RANKS = tuple(range(2, 15))
SUITS = "cdhs"
FACE_NAMES = {11: "J", 12: "Q", 13: "K", 14: "A"}


class DeckCorruptedError(EngineDefect):
    pass


@dataclass(frozen=True, order=True)
class Card:
    rank: int
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def label(self) -> str:
        return f"{self.rank:02d}{self.suit}"

    @property
    def face(self) -> str:
        return FACE_NAMES.get(self.rank, str(self.rank))


def canonical_cards() -> List[Card]:
    return [Card(rank, suit) for rank in RANKS for suit in SUITS]


def cards_to_labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    # Labels are two rank digits and a suit letter, e.g. "02c" or "14s".
    if len(label) != 3 or not label[:2].isdigit():
        raise ValueError(f"Invalid card label: {label}")
    return Card(int(label[:2]), label[2])


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]


class Deck:
    """52 cards plus a cursor at the next undealt position."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        validate: bool = False,
        shuffle_range: Tuple[int, int] = (3, 17),
    ) -> None:
        self.rng = rng or random.Random()
        self.validate_after_shuffle = validate
        self.shuffle_range = shuffle_range
        self.cards: List[Card] = []
        self.position = 0
        self.reset()

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def remaining(self) -> int:
        return len(self.cards) - self.position

    def reset(self) -> None:
        # New pack order: each suit Ace first, then deuce through King.
        self.cards = [
            Card(rank, suit)
            for suit in "chds"
            for rank in (14,) + RANKS[:-1]
        ]
        self.position = 0

    def shuffle(self, iterations: Optional[int] = None) -> None:
        if iterations is None:
            iterations = self.rng.randint(*self.shuffle_range)
        LOGGER.debug("Shuffle: %d iterations", iterations)
        size = len(self.cards)
        for _ in range(iterations):
            self.rng.shuffle(self.cards)

            # Cut a slice out of the middle third and move it to the bottom.
            start = self.rng.randint(size // 4, size // 3 + 2)
            length = self.rng.randint(size // 4, size // 3 + 2)
            cut = self.cards[start : start + length]
            del self.cards[start : start + length]
            self.cards.extend(cut)

            # Fan merge: lift a prefix and interleave it back into the front.
            lifted = self.rng.randint(size * 5 // 12, size * 7 // 12)
            fan = self.cards[:lifted]
            del self.cards[:lifted]
            for idx in range(len(fan) - 1, -1, -1):
                self.cards.insert(idx, fan[idx])
        self.position = 0
        if self.validate_after_shuffle:
            self.validate()

    def validate(self) -> None:
        if sorted(self.cards) != canonical_cards():
            LOGGER.error("Deck corrupted: %s", cards_to_labels(self.cards))
            raise DeckCorruptedError("Deck no longer holds the 52 distinct cards")

    def draw(self) -> Card:
        if self.position >= len(self.cards):
            raise ValueError("Not enough cards left in deck")
        card = self.cards[self.position]
        self.position += 1
        return card

    def deal(self, count: int) -> List[Card]:
        if self.remaining < count:
            raise ValueError("Not enough cards left in deck")
        return [self.draw() for _ in range(count)]

    def recycle(self, used_count: Optional[int] = None) -> None:
        """Move the dealt prefix to the tail and reshuffle."""
        if used_count is None:
            used_count = self.position
        if not 0 <= used_count <= len(self.cards):
            raise ValueError(f"Cannot recycle {used_count} cards")
        used = self.cards[:used_count]
        del self.cards[:used_count]
        self.cards.extend(used)
        self.position = 0
        self.shuffle()
