from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .bots import auto_discard, computer_wager
from .cards import Deck, cards_to_labels
from .evaluator import HAND_SIZE, evaluate, sort_hand
from .ledger import BankrollLedger
from .models import (
    DROP,
    Controller,
    EngineDefect,
    GameConfig,
    InputKind,
    Player,
    Pot,
    Prompt,
    RoundState,
)
from .showdown import Outcome, compare
from .wagering import BetState, WagerRound

# GameEngine owns the deck, the ledger and the round state. It never blocks:
# every inbound call runs until a human decision is needed and returns the
# events it produced.

LOGGER = logging.getLogger("drawpoker.game")

HUMAN_SEAT = 0
Events = List[Dict[str, object]]
Bettor = Callable[["GameEngine", int], int]
Discarder = Callable[["GameEngine", int], List[int]]

_BETWEEN_ROUNDS = {RoundState.AWAIT_DEAL, RoundState.NEXT_ROUND}
_WAGER_STATES = {RoundState.FIRST_WAGER, RoundState.SECOND_WAGER}
_DISCARD_STATES = {RoundState.DISCARD_FIRST, RoundState.DISCARD_SECOND}


@dataclass
class RoundContext:
    # Everything that lives for exactly one round.
    round_id: str
    first_bettor: int
    wager: Optional[WagerRound] = None
    outcome: Optional[Outcome] = None
    winner: Optional[int] = None
    eliminated: Optional[int] = None
    walked_away: bool = False
    events: Events = field(default_factory=list)


class GameEngine:
    """Two-seat five card draw: seat 0 is relayed from a host, seat 1 is the house."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        bettor: Bettor = computer_wager,
        discarder: Discarder = auto_discard,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = rng or random.Random(seed)
        self.bettor = bettor
        self.discarder = discarder
        self.ledger = BankrollLedger(self.config)
        self.deck = self._new_deck()

        seat_zero = Controller.COMPUTER if self.config.auto_play else Controller.HUMAN
        self.players = [
            Player(0, self.config.player_name, seat_zero, self.config.starting_bankroll),
            Player(1, self.config.opponent_name, Controller.COMPUTER, self.config.starting_bankroll),
        ]
        self.pot = Pot()
        self.state = RoundState.AWAIT_DEAL
        self.first_bettor = 0
        self.round_counter = 0
        self.round: Optional[RoundContext] = None
        self.win_history: List[Optional[int]] = []
        self.game_over_reason: Optional[str] = None
        self._pending_events: Events = []

    def _new_deck(self) -> Deck:
        deck = Deck(
            rng=self.rng,
            validate=self.config.validate_deck,
            shuffle_range=(self.config.shuffle_min, self.config.shuffle_max),
        )
        deck.shuffle()
        return deck

    # Convenience -----------------------------------------------------

    @property
    def wager(self) -> Optional[WagerRound]:
        return self.round.wager if self.round else None

    def opponent_of(self, seat: int) -> int:
        return 1 - seat

    def is_game_over(self) -> bool:
        return self.state == RoundState.GAME_OVER

    def _transition(self, state: RoundState) -> None:
        LOGGER.debug("%s -> %s", self.state.value, state.value)
        self.state = state

    def _acting_discard_seat(self) -> int:
        if self.state == RoundState.DISCARD_FIRST:
            return self.first_bettor
        return self.opponent_of(self.first_bettor)

    def _record(self, events: Events, produced: Events) -> None:
        events.extend(produced)
        if self.round:
            self.round.events.extend(produced)

    # Inbound ---------------------------------------------------------

    def deal_requested(self) -> Events:
        if self.state not in _BETWEEN_ROUNDS:
            raise RuntimeError(f"Cannot deal while in {self.state.value}")

        self.round_counter += 1
        self.round = RoundContext(round_id=f"R-{self.round_counter:04d}", first_bettor=self.first_bettor)
        for player in self.players:
            player.reset_for_round()
        self._transition(RoundState.AWAIT_DEAL)

        events: Events = []
        order = [self.first_bettor, self.opponent_of(self.first_bettor)]
        for seat in order:
            player = self.players[seat]
            produced: Events = []
            check = self.ledger.check_funds(player, self.config.ante, produced)
            if not check.approved:
                self._record(events, produced)
                self._eliminate(seat)
                self._advance(events)
                return events
            self.pot.add(player, self.config.ante)
            produced.append({"ev": "ANTE", "seat": seat, "name": player.name, "amount": self.config.ante})
            self._record(events, produced)

        self._guarded(self._deal, events)
        self._advance(events)
        return events

    def wager_chosen(self, amount: int) -> Events:
        wager = self._human_wager()
        wager.validate(amount)
        events: Events = []
        self._record(events, wager.apply(amount))
        self._after_wager(events)
        self._advance(events)
        return events

    def call_requested(self) -> Events:
        wager = self._human_wager()
        if wager.bettor.to_call == 0:
            raise ValueError("Nothing to call")
        return self.wager_chosen(0)

    def drop_requested(self) -> Events:
        if self.state in _BETWEEN_ROUNDS:
            return self.quit_requested()
        if self.state in _WAGER_STATES:
            return self.wager_chosen(DROP)
        if self.state in _DISCARD_STATES and self._acting_discard_seat() == HUMAN_SEAT:
            events: Events = []
            self._walk_away(HUMAN_SEAT, events)
            self._advance(events)
            return events
        raise RuntimeError(f"Cannot drop while in {self.state.value}")

    def discard_requested(self, indices: Sequence[int]) -> Events:
        if self.state not in _DISCARD_STATES:
            raise RuntimeError(f"Cannot discard while in {self.state.value}")
        seat = self._acting_discard_seat()
        if self.players[seat].controller != Controller.HUMAN:
            raise RuntimeError("Not the relayed player's turn to discard")
        chosen = self._validate_discards(indices)
        events: Events = []
        self._guarded(lambda produced: self._discard(seat, chosen, produced), events)
        self._advance(events)
        return events

    def quit_requested(self) -> Events:
        events: Events = []
        if self.state == RoundState.GAME_OVER:
            return events
        if self.state in _BETWEEN_ROUNDS:
            self._finish_game("quit", events)
            return events

        self._walk_away(HUMAN_SEAT, events)
        assert self.round is not None
        self.round.walked_away = True
        self._advance(events)
        return events

    def consume_pending_events(self) -> Events:
        # Events recorded while aborting a round, which the caller never sees
        # because the defect is re-raised.
        events = self._pending_events
        self._pending_events = []
        return events

    # Validation ------------------------------------------------------

    def _human_wager(self) -> WagerRound:
        if self.state not in _WAGER_STATES:
            raise RuntimeError(f"Cannot wager while in {self.state.value}")
        wager = self.wager
        assert wager is not None
        if wager.bettor.controller != Controller.HUMAN:
            raise RuntimeError("Not the relayed player's turn to bet")
        return wager

    def _validate_discards(self, indices: Sequence[int]) -> List[int]:
        chosen = list(indices)
        for idx in chosen:
            if isinstance(idx, bool) or not isinstance(idx, int):
                raise ValueError(f"Discard index must be an integer, got {idx!r}")
            if not 0 <= idx < HAND_SIZE:
                raise ValueError(f"Discard index out of range: {idx}")
        if len(set(chosen)) != len(chosen):
            raise ValueError("Discard indices must be distinct")
        return sorted(chosen)

    # Round steps -----------------------------------------------------

    def _guarded(self, step: Callable[[Events], None], events: Events) -> None:
        try:
            step(events)
        except EngineDefect as exc:
            self._abort_round(exc, events)
            raise

    def _deal(self, events: Events) -> None:
        self._transition(RoundState.DEALT)
        order = [self.first_bettor, self.opponent_of(self.first_bettor)]
        for _ in range(HAND_SIZE):
            for seat in order:
                self.players[seat].hand.append(self.deck.draw())
        produced: Events = []
        for seat in order:
            player = self.players[seat]
            player.hand = sort_hand(player.hand)
            player.rank = evaluate(player.hand)
            produced.append({"ev": "DEAL", "seat": seat, "name": player.name, "count": HAND_SIZE})
        self._record(events, produced)
        self._start_wager(RoundState.FIRST_WAGER)

    def _start_wager(self, state: RoundState) -> None:
        assert self.round is not None
        first = self.players[self.first_bettor]
        second = self.players[self.opponent_of(self.first_bettor)]
        self.round.wager = WagerRound(first, second, self.ledger, self.config, self.pot)
        self._transition(state)

    def _discard(self, seat: int, indices: List[int], events: Events) -> None:
        player = self.players[seat]
        for idx in indices:
            player.hand[idx] = self.deck.draw()
        player.hand = sort_hand(player.hand)
        player.rank = evaluate(player.hand)
        self._record(events, [{"ev": "DISCARD", "seat": seat, "name": player.name, "count": len(indices)}])
        if self.state == RoundState.DISCARD_FIRST:
            self._transition(RoundState.DISCARD_SECOND)
        else:
            self._start_wager(RoundState.SECOND_WAGER)

    def _after_wager(self, events: Events) -> None:
        wager = self.wager
        assert wager is not None and self.round is not None
        if not wager.finished:
            return
        if wager.state == BetState.CALL:
            if self.state == RoundState.FIRST_WAGER:
                self._transition(RoundState.FIRST_RESOLVED)
                self._transition(RoundState.DISCARD_FIRST)
            else:
                self._transition(RoundState.SECOND_RESOLVED)
                self._transition(RoundState.SHOWDOWN)
            return

        assert wager.winner is not None and wager.loser is not None
        self.round.winner = wager.winner.seat
        if wager.state == BetState.ELIMINATED:
            self.round.eliminated = wager.loser.seat
        self._transition(RoundState.SETTLEMENT)

    def _walk_away(self, seat: int, events: Events) -> None:
        assert self.round is not None
        if self.state in _WAGER_STATES and self.wager and not self.wager.finished and self.wager.bettor.seat == seat:
            self._record(events, self.wager.apply(DROP))
            self._after_wager(events)
            return
        player = self.players[seat]
        player.folded = True
        self.round.winner = self.opponent_of(seat)
        self._record(events, [{"ev": "DROP", "seat": seat, "name": player.name}])
        self._transition(RoundState.SETTLEMENT)

    def _eliminate(self, seat: int) -> None:
        assert self.round is not None
        self.round.eliminated = seat
        self.round.winner = self.opponent_of(seat)
        self._transition(RoundState.SETTLEMENT)

    def _advance(self, events: Events) -> None:
        # Run every step that needs no relayed input.
        while True:
            if self.state in _WAGER_STATES:
                wager = self.wager
                assert wager is not None
                bettor = wager.bettor
                if bettor.controller == Controller.HUMAN:
                    return
                amount = self.bettor(self, bettor.seat)
                LOGGER.debug("%s wagers %d", bettor.name, amount)
                self._record(events, wager.apply(amount))
                self._after_wager(events)
            elif self.state in _DISCARD_STATES:
                seat = self._acting_discard_seat()
                if self.players[seat].controller == Controller.HUMAN:
                    return
                chosen = self._validate_discards(self.discarder(self, seat))
                self._guarded(lambda produced: self._discard(seat, chosen, produced), events)
            elif self.state == RoundState.SHOWDOWN:
                self._showdown(events)
            elif self.state == RoundState.SETTLEMENT:
                self._guarded(self._settle, events)
            elif self.state == RoundState.CHECK_TERMINATION:
                self._check_termination(events)
            else:
                return

    def _showdown(self, events: Events) -> None:
        assert self.round is not None
        first, second = self.players
        outcome = compare(first.rank, second.rank)
        self.round.outcome = outcome
        if outcome == Outcome.FIRST_WINS:
            self.round.winner = first.seat
        elif outcome == Outcome.SECOND_WINS:
            self.round.winner = second.seat
        self._record(
            events,
            [
                {
                    "ev": "SHOWDOWN",
                    "outcome": outcome.value,
                    "winner": self.round.winner,
                    "hands": [self._hand_view(player) for player in self.players],
                }
            ],
        )
        self._transition(RoundState.SETTLEMENT)

    def _settle(self, events: Events) -> None:
        assert self.round is not None
        self.deck.recycle()

        produced: Events = []
        winner = self.round.winner
        if winner is None:
            produced.append({"ev": "POT_CARRIED", "amount": self.pot.amount})
            LOGGER.info("Round %s drawn, pot %d carried", self.round.round_id, self.pot.amount)
        else:
            player = self.players[winner]
            won = self.pot.award(player)
            produced.append({"ev": "POT_AWARD", "seat": winner, "name": player.name, "amount": won})
            LOGGER.info("Round %s won by %s for %d", self.round.round_id, player.name, won)
        self.win_history.append(winner)
        for player in self.players:
            player.contributed = 0
            self.ledger.settle_paybacks(player, produced)
        self._record(events, produced)
        self._transition(RoundState.CHECK_TERMINATION)

    def _check_termination(self, events: Events) -> None:
        assert self.round is not None
        if self.round.eliminated is not None:
            self._finish_game("eliminated", events)
        elif self.round.walked_away:
            self._finish_game("quit", events)
        elif any(player.bankroll >= self.config.game_end for player in self.players):
            self._finish_game("game_end", events)
        else:
            self.first_bettor = self.opponent_of(self.first_bettor)
            self._transition(RoundState.NEXT_ROUND)

    def _finish_game(self, reason: str, events: Events) -> None:
        produced: Events = []
        if self.pot.amount > 0:
            # A pot still carried from a draw goes to the larger bankroll.
            first, second = self.players
            if first.bankroll == second.bankroll:
                share = self.pot.amount // 2
                second.bankroll += share
                self.pot.amount -= share
                won = self.pot.award(first)
                produced.append({"ev": "POT_AWARD", "seat": first.seat, "name": first.name, "amount": won})
                produced.append({"ev": "POT_AWARD", "seat": second.seat, "name": second.name, "amount": share})
            else:
                richer = first if first.bankroll > second.bankroll else second
                won = self.pot.award(richer)
                produced.append({"ev": "POT_AWARD", "seat": richer.seat, "name": richer.name, "amount": won})
        self.game_over_reason = reason
        self._transition(RoundState.GAME_OVER)
        produced.append({"ev": "GAME_OVER", **self.result_payload()})
        LOGGER.info("Game over after %d rounds (%s)", self.round_counter, reason)
        self._record(events, produced)

    def _abort_round(self, exc: EngineDefect, events: Events) -> None:
        round_id = self.round.round_id if self.round else None
        LOGGER.error("Engine defect in round %s: %s", round_id, exc)
        for player in self.players:
            self.pot.refund(player)
            player.reset_for_round()
        self.deck = self._new_deck()
        aborted = {"ev": "ROUND_ABORTED", "round_id": round_id, "reason": str(exc)}
        events.append(aborted)
        if self.round:
            self.round.wager = None
        # A seat already eliminated or walked away does not come back.
        if self.round and self.round.eliminated is not None:
            self._finish_game("eliminated", events)
        elif self.round and self.round.walked_away:
            self._finish_game("quit", events)
        else:
            self._transition(RoundState.NEXT_ROUND)
        self._pending_events = list(events)

    # Outbound --------------------------------------------------------

    def _hand_view(self, player: Player) -> Dict[str, object]:
        return {
            "seat": player.seat,
            "cards": cards_to_labels(player.hand),
            "rank": player.rank.description if player.rank else None,
            "category": player.rank.category.name if player.rank else None,
            "folded": player.folded,
        }

    def awaiting(self) -> Optional[Prompt]:
        if self.state in _BETWEEN_ROUNDS:
            return Prompt(InputKind.DEAL, seat=HUMAN_SEAT)
        if self.state in _WAGER_STATES:
            wager = self.wager
            assert wager is not None
            return Prompt(
                InputKind.WAGER,
                seat=wager.bettor.seat,
                to_call=wager.bettor.to_call,
                amounts=wager.allowed_amounts(),
                actions=wager.actions,
            )
        if self.state in _DISCARD_STATES:
            return Prompt(InputKind.DISCARD, seat=self._acting_discard_seat(), max_discards=HAND_SIZE)
        return None

    def snapshot(self, seat: Optional[int] = None, reveal: bool = False) -> Dict[str, object]:
        players = []
        for player in self.players:
            view: Dict[str, object] = {
                "seat": player.seat,
                "name": player.name,
                "bankroll": player.bankroll,
                "loan_count": player.loan_count,
                "loan_high": player.loan_high,
                "folded": player.folded,
                "contributed": player.contributed,
            }
            if reveal or player.seat == seat:
                view.update(self._hand_view(player))
            players.append(view)
        return {
            "state": self.state.value,
            "round_id": self.round.round_id if self.round else None,
            "rounds": self.round_counter,
            "pot": self.pot.amount,
            "first_bettor": self.first_bettor,
            "players": players,
        }

    def result_payload(self) -> Dict[str, object]:
        first, second = self.players
        winner: Optional[int] = None
        if first.bankroll != second.bankroll:
            winner = first.seat if first.bankroll > second.bankroll else second.seat
        return {
            "reason": self.game_over_reason,
            "winner": winner,
            "rounds": self.round_counter,
            "win_history": list(self.win_history),
            "players": [
                {
                    "seat": player.seat,
                    "name": player.name,
                    "bankroll": player.bankroll,
                    "loan_count": player.loan_count,
                    "loan_high": player.loan_high,
                }
                for player in self.players
            ],
        }
