from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from .cards import Card
    from .evaluator import HandRank


DROP = -1


class EngineDefect(RuntimeError):
    """Raised when an engine invariant is broken. Never a player error."""


class RoundState(str, Enum):
    AWAIT_DEAL = "AWAIT_DEAL"
    DEALT = "DEALT"
    FIRST_WAGER = "FIRST_WAGER"
    FIRST_RESOLVED = "FIRST_RESOLVED"
    DISCARD_FIRST = "DISCARD_FIRST"
    DISCARD_SECOND = "DISCARD_SECOND"
    SECOND_WAGER = "SECOND_WAGER"
    SECOND_RESOLVED = "SECOND_RESOLVED"
    SHOWDOWN = "SHOWDOWN"
    SETTLEMENT = "SETTLEMENT"
    CHECK_TERMINATION = "CHECK_TERMINATION"
    NEXT_ROUND = "NEXT_ROUND"
    GAME_OVER = "GAME_OVER"


class InputKind(str, Enum):
    DEAL = "DEAL"
    WAGER = "WAGER"
    DISCARD = "DISCARD"


class Controller(str, Enum):
    HUMAN = "HUMAN"
    COMPUTER = "COMPUTER"


@dataclass
class GameConfig:
    starting_bankroll: int = 100
    ante: int = 5
    bet_amounts: Tuple[int, ...] = (0, 5, 10, 15, 20, 25)
    raise_limit: int = 3
    bank_loan: int = 100
    loan_limit: int = 3
    payback_threshold: int = 100
    game_end: int = 500
    conservative_pot: int = 100
    player_name: str = "Player"
    opponent_name: str = "Computer"
    auto_play: bool = False
    validate_deck: bool = False
    shuffle_min: int = 3
    shuffle_max: int = 17


@dataclass
class Player:
    seat: int
    name: str
    controller: Controller
    bankroll: int
    loan_count: int = 0
    loan_high: int = 0
    to_call: int = 0
    folded: bool = False
    contributed: int = 0
    hand: List["Card"] = field(default_factory=list)
    rank: Optional["HandRank"] = None

    @property
    def is_computer(self) -> bool:
        return self.controller == Controller.COMPUTER

    def reset_for_round(self) -> None:
        self.to_call = 0
        self.folded = False
        self.contributed = 0
        self.hand.clear()
        self.rank = None

    def reset_for_wager(self) -> None:
        self.to_call = 0


@dataclass
class Pot:
    # A pot carried forward from a drawn round stays in ``amount`` until won.
    amount: int = 0

    def add(self, player: Player, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot commit a negative amount")
        player.bankroll -= amount
        player.contributed += amount
        self.amount += amount

    def refund(self, player: Player) -> int:
        refunded = player.contributed
        player.bankroll += refunded
        self.amount -= refunded
        player.contributed = 0
        return refunded

    def award(self, player: Player) -> int:
        won = self.amount
        player.bankroll += won
        self.amount = 0
        return won


@dataclass
class Prompt:
    """What the engine is waiting for before it can continue."""

    kind: InputKind
    seat: Optional[int] = None
    to_call: int = 0
    amounts: List[int] = field(default_factory=list)
    max_discards: int = 0
    actions: int = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind.value,
            "seat": self.seat,
            "to_call": self.to_call,
            "amounts": list(self.amounts),
            "max_discards": self.max_discards,
            "actions": self.actions,
        }
