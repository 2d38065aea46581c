from __future__ import annotations

from enum import Enum
from typing import Optional

from .evaluator import HandRank


class Outcome(str, Enum):
    FIRST_WINS = "FIRST_WINS"
    SECOND_WINS = "SECOND_WINS"
    DRAW = "DRAW"


def compare(first: Optional[HandRank], second: Optional[HandRank]) -> Outcome:
    """Decide a showdown. ``None`` marks a side that folded."""
    if first is None and second is None:
        raise ValueError("Both sides folded; there is no showdown")
    if first is None:
        return Outcome.SECOND_WINS
    if second is None:
        return Outcome.FIRST_WINS

    # Category, then tiebreak ranks, then the remaining cards high to low.
    for mine, theirs in (
        ((int(first.category),), (int(second.category),)),
        (first.tiebreak, second.tiebreak),
        (first.kickers, second.kickers),
    ):
        if mine > theirs:
            return Outcome.FIRST_WINS
        if mine < theirs:
            return Outcome.SECOND_WINS
    return Outcome.DRAW
