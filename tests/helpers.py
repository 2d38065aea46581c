from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from drawpoker.cards import Card, parse_cards
from drawpoker.game import GameEngine
from drawpoker.models import GameConfig


def cards(text: str) -> List[Card]:
    """Parse a space separated list of labels such as "02c 11d 14s"."""
    return parse_cards(text.split())


def scripted_bettor(amounts: Iterable[int] = (), default: int = 0):
    """House bettor that replays ``amounts``. After that it opens for the
    ante when nothing is owed and otherwise answers ``default``."""
    queue = list(amounts)

    def _bettor(engine: GameEngine, seat: int) -> int:
        if queue:
            return queue.pop(0)
        if engine.players[seat].to_call == 0:
            return engine.config.ante
        return default

    return _bettor


def stand_pat(engine: GameEngine, seat: int) -> List[int]:
    return []


def create_engine(
    *,
    seed: int = 7,
    bettor=None,
    discarder=None,
    **overrides,
) -> GameEngine:
    """Engine with a predictable house: opens for the ante or calls, and never draws."""
    config = GameConfig(**overrides)
    return GameEngine(
        config,
        seed=seed,
        bettor=bettor or scripted_bettor(),
        discarder=discarder or stand_pat,
    )


def rig_deck(
    engine: GameEngine,
    first_hand: str,
    second_hand: str,
    replacements: Optional[str] = None,
) -> None:
    """Order the deck so the next deal gives ``first_hand`` to the first
    bettor and ``second_hand`` to the other seat, followed by
    ``replacements`` for any discards."""
    first = cards(first_hand)
    second = cards(second_hand)
    dealt: List[Card] = []
    for mine, theirs in zip(first, second):
        dealt.extend([mine, theirs])
    dealt.extend(cards(replacements) if replacements else [])
    rest = [card for card in engine.deck.cards if card not in dealt]
    engine.deck.cards = dealt + rest
    engine.deck.position = 0


def ledger_balance(engine: GameEngine) -> int:
    """Money on the table net of house credit. Constant for a whole game."""
    total = sum(player.bankroll for player in engine.players) + engine.pot.amount
    return total - sum(engine.ledger.outstanding(player) for player in engine.players)


def labels(hand: Sequence[Card]) -> List[str]:
    return [card.label for card in hand]
