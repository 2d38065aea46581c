from __future__ import annotations

import random
from collections import Counter
from typing import TYPE_CHECKING, List, Sequence

from .cards import Card
from .evaluator import HandCategory, HandRank
from .models import DROP, GameConfig

if TYPE_CHECKING:
    from .game import GameEngine


_VERY_GOOD = {
    HandCategory.FLUSH,
    HandCategory.FULL_HOUSE,
    HandCategory.FOUR_OF_A_KIND,
    HandCategory.STRAIGHT_FLUSH,
    HandCategory.ROYAL_FLUSH,
}
_GOOD = {HandCategory.STRAIGHT, HandCategory.THREE_OF_A_KIND}
_BIG_BET = 15


def _legal(config: GameConfig, amount: int) -> int:
    # Snap to the nearest allowed amount that is not larger.
    allowed = [value for value in config.bet_amounts if value <= amount]
    return max(allowed) if allowed else min(config.bet_amounts)


def _opening_minimum(config: GameConfig) -> int:
    allowed = [value for value in config.bet_amounts if value >= config.ante]
    return min(allowed) if allowed else max(config.bet_amounts)


def choose_wager(
    rank: HandRank,
    to_call: int,
    pot: int,
    opening: bool,
    in_debt: bool,
    config: GameConfig,
    rng: random.Random,
) -> int:
    """House betting heuristic: a tier from the hand category, then a random
    amount within that tier's band.

    Big pots get smaller bets, the opener always puts in at least the ante,
    and weak hands sometimes drop when facing a bet unless the house is
    already in debt.
    """
    category = rank.category
    facing_big = to_call >= _BIG_BET
    big_pot = pot > config.conservative_pot

    if category in _VERY_GOOD:
        if facing_big:
            band = (10, 15, 20) if big_pot else (15, 20, 25)
        else:
            band = (5, 10, 15)
    elif category in _GOOD:
        if facing_big:
            band = (5, 10, 15) if big_pot else (10, 15, 20)
        else:
            band = (5, 10, 15)
    elif category == HandCategory.TWO_PAIR:
        band = (5, 10, 15)
    elif category == HandCategory.ONE_PAIR:
        if rng.random() < 0.2:
            band = (5, 10) if big_pot else (10, 15)
        else:
            band = (0, 5, 10)
    else:
        drop_chance = 0.2 if rank.tiebreak[0] >= 11 else 0.5
        if to_call > 0 and not in_debt and rng.random() < drop_chance:
            return DROP
        band = (0,) if facing_big else (0, 5)

    amount = _legal(config, rng.choice(band))
    if opening:
        amount = max(amount, _opening_minimum(config))
    return amount


def _straight_keepers(hand: Sequence[Card]) -> List[int]:
    best: List[int] = []
    for low in range(1, 11):
        window = set(range(low, low + 5))
        keep: List[int] = []
        seen = set()
        for idx, card in enumerate(hand):
            value = card.rank
            if value == 14 and low == 1:
                value = 1
            if value in window and value not in seen:
                seen.add(value)
                keep.append(idx)
        if len(keep) >= len(best):
            best = keep
    return best if len(best) >= 3 else []


def choose_discards(hand: Sequence[Card], rank: HandRank) -> List[int]:
    """Indices of the cards the house throws away."""
    if rank.category >= HandCategory.STRAIGHT:
        return []

    everything = set(range(len(hand)))
    if rank.category > HandCategory.HIGH_CARD:
        counts = Counter(card.rank for card in hand)
        keep = {idx for idx, card in enumerate(hand) if counts[card.rank] >= 2}
        return sorted(everything - keep)

    suits = Counter(card.suit for card in hand)
    suit, count = suits.most_common(1)[0]
    if count >= 3:
        return [idx for idx, card in enumerate(hand) if card.suit != suit]

    straight = _straight_keepers(hand)
    if straight:
        return sorted(everything - set(straight))

    high_idx = max(range(len(hand)), key=lambda idx: hand[idx].rank)
    if hand[high_idx].rank >= 10:
        return sorted(everything - {high_idx})
    return sorted(everything)


def is_opening(actions: int, seat: int, first_bettor: int, to_call: int) -> bool:
    """True only for the first bettor's first action of a wagering round."""
    return actions == 0 and seat == first_bettor and to_call == 0


def computer_wager(engine: GameEngine, seat: int) -> int:
    """Default bettor for computer-controlled seats."""
    wager = engine.wager
    if wager is None:
        raise RuntimeError("No wagering round in progress")
    player = engine.players[seat]
    if player.rank is None:
        raise RuntimeError("Seat has no evaluated hand")
    opening = is_opening(wager.actions, seat, engine.first_bettor, player.to_call)
    return choose_wager(
        player.rank,
        player.to_call,
        engine.pot.amount,
        opening,
        player.loan_count > 0,
        engine.config,
        engine.rng,
    )


def auto_discard(engine: GameEngine, seat: int) -> List[int]:
    """Default discarder for computer-controlled seats."""
    player = engine.players[seat]
    if player.rank is None:
        raise RuntimeError("Seat has no evaluated hand")
    return choose_discards(player.hand, player.rank)
