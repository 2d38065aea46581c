"""Five card draw round engine: deck, hand ranking, wagering and house credit."""

from .bots import auto_discard, computer_wager
from .cards import Card, Deck, DeckCorruptedError, RANKS, SUITS, parse_cards
from .evaluator import DuplicateCardError, HandCategory, HandRank, evaluate, sort_hand
from .game import GameEngine, RoundContext
from .ledger import BankrollLedger, FundsCheck
from .models import DROP, Controller, EngineDefect, GameConfig, InputKind, Player, Pot, Prompt, RoundState
from .showdown import Outcome, compare
from .wagering import BetState, WagerRound

__all__ = [
    "auto_discard",
    "computer_wager",
    "Card",
    "Deck",
    "DeckCorruptedError",
    "RANKS",
    "SUITS",
    "parse_cards",
    "DuplicateCardError",
    "HandCategory",
    "HandRank",
    "evaluate",
    "sort_hand",
    "GameEngine",
    "RoundContext",
    "BankrollLedger",
    "FundsCheck",
    "DROP",
    "Controller",
    "EngineDefect",
    "GameConfig",
    "InputKind",
    "Player",
    "Pot",
    "Prompt",
    "RoundState",
    "Outcome",
    "compare",
    "BetState",
    "WagerRound",
]
