from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .models import GameConfig, Player

LOGGER = logging.getLogger("drawpoker.ledger")

Events = List[Dict[str, object]]


@dataclass(frozen=True)
class FundsCheck:
    approved: bool
    loans_granted: int = 0
    repaid: int = 0


class BankrollLedger:
    """House credit for both players.

    A player who cannot cover a wager is lent ``bank_loan`` at a time, up to
    ``loan_limit`` loans. Loans are paid back automatically once the
    bankroll climbs above ``payback_threshold``.
    """

    def __init__(self, config: GameConfig) -> None:
        self.config = config

    def outstanding(self, player: Player) -> int:
        return player.loan_count * self.config.bank_loan

    def net_worth(self, player: Player) -> int:
        return player.bankroll - self.outstanding(player)

    def settle_paybacks(self, player: Player, events: Optional[Events] = None) -> int:
        repaid = 0
        while player.bankroll > self.config.payback_threshold and player.loan_count > 0:
            player.bankroll -= self.config.bank_loan
            player.loan_count -= 1
            repaid += 1
            LOGGER.debug("%s repaid a loan, %d outstanding", player.name, player.loan_count)
            if events is not None:
                events.append(
                    {
                        "ev": "PAYBACK",
                        "seat": player.seat,
                        "name": player.name,
                        "amount": self.config.bank_loan,
                        "loan_count": player.loan_count,
                    }
                )
        return repaid

    def check_funds(self, player: Player, amount: int, events: Optional[Events] = None) -> FundsCheck:
        if amount < 0:
            raise ValueError(f"Cannot check funds for a negative amount: {amount}")
        repaid = self.settle_paybacks(player, events)
        granted = 0
        while player.bankroll - amount < 0:
            if player.loan_count >= self.config.loan_limit:
                LOGGER.info(
                    "Credit refused for %s: bankroll %d, needs %d, %d loans",
                    player.name,
                    player.bankroll,
                    amount,
                    player.loan_count,
                )
                if events is not None:
                    events.append(
                        {
                            "ev": "CREDIT_REFUSED",
                            "seat": player.seat,
                            "name": player.name,
                            "amount": amount,
                            "loan_count": player.loan_count,
                        }
                    )
                return FundsCheck(False, granted, repaid)
            player.bankroll += self.config.bank_loan
            player.loan_count += 1
            player.loan_high = max(player.loan_high, player.loan_count)
            granted += 1
            LOGGER.debug("%s granted loan %d", player.name, player.loan_count)
            if events is not None:
                events.append(
                    {
                        "ev": "LOAN",
                        "seat": player.seat,
                        "name": player.name,
                        "amount": self.config.bank_loan,
                        "loan_count": player.loan_count,
                    }
                )
        return FundsCheck(True, granted, repaid)
