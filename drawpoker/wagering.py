from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional

from .ledger import BankrollLedger
from .models import DROP, GameConfig, Player, Pot

LOGGER = logging.getLogger("drawpoker.wagering")


class BetState(str, Enum):
    BET = "BET"
    RAISE = "RAISE"
    CALL = "CALL"
    DROP = "DROP"
    ELIMINATED = "ELIMINATED"


TERMINAL_STATES = {BetState.CALL, BetState.DROP, BetState.ELIMINATED}


class WagerRound:
    """One betting round between two players.

    ``first`` opens the round. Each action is a single amount from
    ``config.bet_amounts`` on top of whatever the bettor owes, or ``DROP``.
    A ``0`` with nothing owed is a drop. Once ``raise_limit`` wagers have
    been made, whoever acts next can only call, so a round never takes more
    than ``raise_limit + 1`` actions.
    """

    def __init__(
        self,
        first: Player,
        second: Player,
        ledger: BankrollLedger,
        config: GameConfig,
        pot: Pot,
    ) -> None:
        self.order = [first, second]
        self.ledger = ledger
        self.config = config
        self.pot = pot
        self.state = BetState.BET
        self.turn = 0
        self.actions = 0
        self.raise_count = 0
        self.winner: Optional[Player] = None
        self.loser: Optional[Player] = None
        for player in self.order:
            player.reset_for_wager()

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def bettor(self) -> Player:
        return self.order[self.turn]

    @property
    def opponent(self) -> Player:
        return self.order[1 - self.turn]

    @property
    def forced_call(self) -> bool:
        return self.raise_count >= self.config.raise_limit

    def allowed_amounts(self) -> List[int]:
        if self.forced_call:
            return [0]
        return list(self.config.bet_amounts)

    def validate(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValueError(f"Bet amount must be an integer, got {amount!r}")
        if amount != DROP and amount not in self.config.bet_amounts:
            raise ValueError(f"Bet amount {amount} not in {list(self.config.bet_amounts)}")

    def apply(self, amount: int) -> List[Dict[str, object]]:
        if self.finished:
            raise RuntimeError("Wagering round is over")
        self.validate(amount)

        events: List[Dict[str, object]] = []
        player = self.bettor
        opponent = self.opponent

        if amount == DROP or (amount == 0 and player.to_call == 0):
            player.folded = True
            self._finish(BetState.DROP, winner=opponent, loser=player)
            events.append({"ev": "DROP", "seat": player.seat, "name": player.name})
            return events

        if amount > 0 and self.forced_call:
            LOGGER.debug("Raise limit reached, %s's %d taken as a call", player.name, amount)
            amount = 0

        owed = player.to_call
        total = owed + amount
        check = self.ledger.check_funds(player, total, events)
        if not check.approved:
            self._finish(BetState.ELIMINATED, winner=opponent, loser=player)
            return events
        self.pot.add(player, total)
        player.to_call = 0

        if amount == 0:
            self._finish(BetState.CALL)
            events.append({"ev": "CALL", "seat": player.seat, "name": player.name, "amount": owed})
            return events

        self.raise_count += 1
        opponent.to_call = amount
        events.append(
            {
                "ev": "RAISE" if owed > 0 else "BET",
                "seat": player.seat,
                "name": player.name,
                "amount": amount,
                "called": owed,
            }
        )
        self.state = BetState.RAISE
        self.actions += 1
        self.turn = 1 - self.turn
        return events

    def _finish(self, state: BetState, winner: Optional[Player] = None, loser: Optional[Player] = None) -> None:
        self.state = state
        self.winner = winner
        self.loser = loser
        self.actions += 1
        for player in self.order:
            player.to_call = 0
        LOGGER.debug("Wagering finished: %s after %d actions, pot %d", state.value, self.actions, self.pot.amount)
