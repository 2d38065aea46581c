from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from .cards import Card, FACE_NAMES
from .models import EngineDefect

HAND_SIZE = 5
WHEEL = (2, 3, 4, 5, 14)


class DuplicateCardError(EngineDefect):
    pass


class HandCategory(IntEnum):
    HIGH_CARD = 0
    ONE_PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8
    ROYAL_FLUSH = 9

    @property
    def title(self) -> str:
        return self.name.replace("_", " ").title().replace(" A ", " a ").replace(" Of ", " of ")


@dataclass(frozen=True)
class HandRank:
    category: HandCategory
    tiebreak: Tuple[int, ...]
    kickers: Tuple[int, ...] = ()

    def key(self) -> Tuple[int, Tuple[int, ...], Tuple[int, ...]]:
        return (int(self.category), self.tiebreak, self.kickers)

    @property
    def description(self) -> str:
        return describe_rank(self)


def _face(rank: int) -> str:
    # The wheel scores its Ace as 1 but it still reads as an Ace.
    if rank == 1:
        return "A"
    return FACE_NAMES.get(rank, str(rank))


def describe_rank(rank: HandRank) -> str:
    category = rank.category
    if category == HandCategory.ROYAL_FLUSH:
        return category.title
    if category in (HandCategory.STRAIGHT_FLUSH, HandCategory.STRAIGHT, HandCategory.FLUSH):
        return f"{category.title} {_face(rank.tiebreak[0])} high"
    if category in (HandCategory.TWO_PAIR, HandCategory.FULL_HOUSE):
        high, low = rank.tiebreak
        return f"{category.title} {_face(high)}'s {_face(low)}'s"
    if category == HandCategory.HIGH_CARD:
        return f"{category.title} {_face(rank.tiebreak[0])}"
    return f"{category.title} {_face(rank.tiebreak[0])}'s"


def is_low_straight(cards: Sequence[Card]) -> bool:
    return tuple(sorted(card.rank for card in cards)) == WHEEL


def sort_hand(cards: Sequence[Card]) -> List[Card]:
    """Ascending order, with the Ace moved to the front of an A-2-3-4-5 hand."""
    ordered = sorted(cards)
    if len(ordered) == HAND_SIZE and is_low_straight(ordered):
        ordered.insert(0, ordered.pop())
    return ordered


def _straight_high(ranks: Sequence[int]) -> Optional[int]:
    ordered = sorted(ranks)
    if tuple(ordered) == WHEEL:
        return 5
    if len(set(ordered)) == HAND_SIZE and ordered[-1] - ordered[0] == HAND_SIZE - 1:
        return ordered[-1]
    return None


def evaluate(cards: Sequence[Card]) -> HandRank:
    if len(cards) != HAND_SIZE:
        raise ValueError(f"A hand has exactly {HAND_SIZE} cards, got {len(cards)}")
    if len(set(cards)) != HAND_SIZE:
        labels = " ".join(card.label for card in cards)
        raise DuplicateCardError(f"Duplicate card in hand: {labels}")

    ranks = [card.rank for card in cards]
    is_flush = len({card.suit for card in cards}) == 1
    straight_high = _straight_high(ranks)

    if straight_high is not None:
        # Score the wheel's Ace as 1 so it ranks below a six-high straight.
        played = sorted((1 if r == 14 and straight_high == 5 else r for r in ranks), reverse=True)
        kickers = tuple(played[1:])
        if is_flush:
            if straight_high == 14:
                return HandRank(HandCategory.ROYAL_FLUSH, (14,), kickers)
            return HandRank(HandCategory.STRAIGHT_FLUSH, (straight_high,), kickers)
        return HandRank(HandCategory.STRAIGHT, (straight_high,), kickers)

    descending = sorted(ranks, reverse=True)
    if is_flush:
        return HandRank(HandCategory.FLUSH, (descending[0],), tuple(descending[1:]))

    counts = Counter(ranks)
    by_count = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    shape = [count for _, count in by_count]

    def rest(*exclude: int) -> Tuple[int, ...]:
        return tuple(r for r in descending if r not in exclude)

    if shape[0] == 4:
        quad = by_count[0][0]
        return HandRank(HandCategory.FOUR_OF_A_KIND, (quad,), rest(quad))
    if shape[:2] == [3, 2]:
        return HandRank(HandCategory.FULL_HOUSE, (by_count[0][0], by_count[1][0]))
    if shape[0] == 3:
        trips = by_count[0][0]
        return HandRank(HandCategory.THREE_OF_A_KIND, (trips,), rest(trips))
    if shape[:2] == [2, 2]:
        high, low = sorted((by_count[0][0], by_count[1][0]), reverse=True)
        return HandRank(HandCategory.TWO_PAIR, (high, low), rest(high, low))
    if shape[0] == 2:
        pair = by_count[0][0]
        return HandRank(HandCategory.ONE_PAIR, (pair,), rest(pair))
    return HandRank(HandCategory.HIGH_CARD, tuple(descending))
