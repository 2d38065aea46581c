#!/usr/bin/env python3
"""Play many games of draw poker with the house strategy on both seats.

By default the engine runs headless in-process. With ``--wire`` the table
server is started in-process and a scripted client plays over WebSocket,
which exercises the whole prompt/event protocol.

Example:
    python scripts/autoplay_sim.py --games 20 --seed 7
    python scripts/autoplay_sim.py --wire --games 2
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import random
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import websockets

from drawpoker.bots import choose_discards, choose_wager, is_opening
from drawpoker.cards import parse_cards
from drawpoker.evaluator import evaluate
from drawpoker.game import GameEngine
from drawpoker.models import GameConfig
from table.server import run_server

LOGGER = logging.getLogger("autoplay_sim")


@dataclass
class SimStats:
    games: int = 0
    rounds: int = 0
    wins: List[int] = field(default_factory=lambda: [0, 0])
    draws: int = 0
    loan_high: List[int] = field(default_factory=lambda: [0, 0])

    def record(self, result: Dict[str, Any]) -> None:
        self.games += 1
        self.rounds += int(result["rounds"])
        winner = result.get("winner")
        if winner is not None:
            self.wins[winner] += 1
        self.draws += sum(1 for seat in result.get("win_history", []) if seat is None)
        for player in result["players"]:
            seat = player["seat"]
            self.loan_high[seat] = max(self.loan_high[seat], player["loan_high"])


def play_headless(config: GameConfig, seed: int, max_rounds: int) -> Dict[str, Any]:
    engine = GameEngine(config, seed=seed)
    while not engine.is_game_over():
        if engine.round_counter >= max_rounds:
            engine.quit_requested()
            break
        engine.deal_requested()
    return engine.result_payload()


def choose_reply(message: Dict[str, Any], config: GameConfig, rng: random.Random) -> Dict[str, Any]:
    """Answer a prompt the way the house would, from the prompted seat's view."""
    kind = message.get("kind")
    if kind == "DEAL":
        return {"type": "deal"}

    table = message.get("table", {})
    you = next(player for player in table.get("players", []) if "cards" in player)
    hand = parse_cards(you["cards"])
    rank = evaluate(hand)
    if kind == "DISCARD":
        return {"type": "discard", "cards": choose_discards(hand, rank)}

    to_call = int(message.get("to_call", 0))
    opening = is_opening(int(message.get("actions", 0)), you["seat"], table.get("first_bettor"), to_call)
    amount = choose_wager(rank, to_call, int(table.get("pot", 0)), opening, you["loan_count"] > 0, config, rng)
    if amount < 0:
        return {"type": "drop"}
    return {"type": "wager", "amount": amount}


async def play_over_wire(url: str, config: GameConfig, rng: random.Random, max_rounds: int) -> Dict[str, Any]:
    async with websockets.connect(url) as ws:
        await ws.send(json.dumps({"type": "hello", "v": 1, "name": "SimBot", "opponent": "House"}))
        while True:
            message = json.loads(await ws.recv())
            msg_type = message.get("type")
            if msg_type == "prompt":
                rounds = message.get("table", {}).get("rounds", 0)
                if message.get("kind") == "DEAL" and rounds >= max_rounds:
                    reply: Dict[str, Any] = {"type": "quit"}
                else:
                    reply = choose_reply(message, config, rng)
                await ws.send(json.dumps({"v": 1, **reply}))
            elif msg_type == "error":
                LOGGER.warning("Server rejected input: %s", message)
            elif msg_type == "game_over":
                return message


async def run_wire_simulation(args: argparse.Namespace, config: GameConfig) -> SimStats:
    stats = SimStats()
    ready = asyncio.Event()
    server_task = asyncio.create_task(run_server(args.host, args.port, config, ready=ready))
    try:
        await asyncio.wait_for(ready.wait(), timeout=5.0)
        url = f"ws://{args.host}:{args.port}/"
        for game in range(args.games):
            rng = random.Random(args.seed + game)
            stats.record(await play_over_wire(url, config, rng, args.max_rounds))
    finally:
        server_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await server_task
    return stats


def run_headless_simulation(args: argparse.Namespace, config: GameConfig) -> SimStats:
    stats = SimStats()
    auto_config = replace(config, auto_play=True)
    for game in range(args.games):
        stats.record(play_headless(auto_config, args.seed + game, args.max_rounds))
    return stats


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Auto-play draw poker games and report statistics")
    parser.add_argument("--games", type=int, default=10)
    parser.add_argument("--max-rounds", type=int, default=1_000)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--wire", action="store_true", help="play through the WebSocket table server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=9002)
    parser.add_argument("--validate-deck", action="store_true")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    config = GameConfig(validate_deck=args.validate_deck)

    started = time.perf_counter()
    try:
        if args.wire:
            stats = asyncio.run(run_wire_simulation(args, config))
        else:
            stats = run_headless_simulation(args, config)
    except KeyboardInterrupt:
        LOGGER.info("Simulation interrupted; shutting down")
        return

    elapsed = time.perf_counter() - started
    LOGGER.info(
        "%d games, %d rounds in %.2fs; wins %s, drawn rounds %d, highest loans %s",
        stats.games,
        stats.rounds,
        elapsed,
        stats.wins,
        stats.draws,
        stats.loan_high,
    )


if __name__ == "__main__":
    main()
