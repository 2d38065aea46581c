from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import asdict, dataclass, replace
from http import HTTPStatus
from typing import Any, Dict, List, Optional

import websockets

from drawpoker.game import HUMAN_SEAT, GameEngine
from drawpoker.models import EngineDefect, GameConfig

LOGGER = logging.getLogger("table_host")

COMMANDS = {"deal", "wager", "call", "drop", "discard", "quit"}


class TableServerError(Exception):
    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


def _config_payload(config: GameConfig) -> Dict[str, Any]:
    payload = asdict(config)
    payload["bet_amounts"] = list(config.bet_amounts)
    return payload


async def _send_error(websocket: websockets.WebSocketServerProtocol, code: str, msg: str) -> None:
    await websocket.send(json.dumps({"v": 1, "type": "error", "code": code, "msg": msg}))


@dataclass
class RemoteClient:
    name: str
    websocket: websockets.WebSocketServerProtocol

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send(json.dumps({"v": 1, **payload}))


class TableSession:
    """One remote player against the house until the game is over."""

    def __init__(self, config: GameConfig, remote: RemoteClient, seed: Optional[int] = None) -> None:
        self.engine = GameEngine(config, seed=seed)
        self.remote = remote

    async def run(self) -> None:
        try:
            while not self.engine.is_game_over():
                prompt = self.engine.awaiting()
                assert prompt is not None
                await self.remote.send_json(
                    {"type": "prompt", **prompt.as_dict(), "table": self.engine.snapshot(seat=HUMAN_SEAT)}
                )
                await self._handle_next_message()
        except websockets.ConnectionClosed:
            LOGGER.info("%s disconnected in %s", self.remote.name, self.engine.state.value)
            self.engine.quit_requested()
            return

        await self.remote.send_json({"type": "game_over", **self.engine.result_payload()})

    async def _handle_next_message(self) -> None:
        # A rejected message leaves the engine untouched; the caller re-prompts.
        raw = await self.remote.websocket.recv()
        try:
            events = self._dispatch(raw)
        except TableServerError as exc:
            await _send_error(self.remote.websocket, exc.code, exc.msg)
            return
        except EngineDefect as exc:
            for event in self.engine.consume_pending_events():
                await self._send_event(event)
            await _send_error(self.remote.websocket, "ENGINE_DEFECT", str(exc))
            return
        for event in events:
            await self._send_event(event)

    def _dispatch(self, raw: str) -> List[Dict[str, object]]:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise TableServerError("BAD_INPUT", "Message is not valid JSON") from exc
        if not isinstance(message, dict):
            raise TableServerError("BAD_INPUT", "Message must be an object")

        kind = message.get("type")
        if kind not in COMMANDS:
            raise TableServerError("BAD_INPUT", f"Unknown message type: {kind}")

        try:
            if kind == "deal":
                return self.engine.deal_requested()
            if kind == "wager":
                return self.engine.wager_chosen(message.get("amount"))
            if kind == "call":
                return self.engine.call_requested()
            if kind == "drop":
                return self.engine.drop_requested()
            if kind == "discard":
                cards = message.get("cards", [])
                if not isinstance(cards, list):
                    raise TableServerError("BAD_INPUT", "cards must be a list of indices")
                return self.engine.discard_requested(cards)
            return self.engine.quit_requested()
        except EngineDefect:
            raise
        except ValueError as exc:
            raise TableServerError("BAD_INPUT", str(exc)) from exc
        except RuntimeError as exc:
            raise TableServerError("OUT_OF_TURN", str(exc)) from exc

    async def _send_event(self, event: Dict[str, object]) -> None:
        await self.remote.send_json({"type": "event", **event})


async def handle_connection(
    websocket: websockets.WebSocketServerProtocol,
    config: GameConfig,
    seed: Optional[int] = None,
) -> None:
    hello_raw = await websocket.recv()
    try:
        hello = json.loads(hello_raw)
    except json.JSONDecodeError:
        await _send_error(websocket, "BAD_HELLO", "Expected hello")
        return
    if not isinstance(hello, dict) or hello.get("type") != "hello":
        await _send_error(websocket, "BAD_HELLO", "Expected hello")
        return

    name_raw = hello.get("name")
    name = name_raw.strip() if isinstance(name_raw, str) else ""
    if not name:
        name = config.player_name
    opponent_raw = hello.get("opponent")
    opponent = opponent_raw.strip() if isinstance(opponent_raw, str) else ""
    if not opponent:
        opponent = config.opponent_name

    table_config = replace(config, player_name=name, opponent_name=opponent, auto_play=False)
    remote = RemoteClient(name=name, websocket=websocket)
    await remote.send_json({"type": "welcome", "seat": HUMAN_SEAT, "config": _config_payload(table_config)})

    session = TableSession(table_config, remote, seed=seed)
    try:
        await session.run()
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Table session crashed for %s: %s", name, exc)


async def _process_request(path, request_headers):
    """Return a simple HTTP response for health checks."""

    upgrade_header = request_headers.get("Upgrade", "").lower()
    if upgrade_header == "websocket":
        return None

    if path in {"/", "/health", "/healthz"}:
        body = b"draw poker table running\n"
        status = HTTPStatus.OK
    else:
        body = b"not found\n"
        status = HTTPStatus.NOT_FOUND
    headers = [
        ("Content-Type", "text/plain; charset=utf-8"),
        ("Content-Length", str(len(body))),
    ]
    return status, headers, body


async def run_server(host: str, port: int, config: GameConfig, ready: Optional[asyncio.Event] = None) -> None:
    async def _handler(ws):
        await handle_connection(ws, config)

    async with websockets.serve(_handler, host, port, process_request=_process_request):
        LOGGER.info("Table server listening on %s:%s", host, port)
        if ready is not None:
            ready.set()
        await asyncio.Future()


def build_parser() -> argparse.ArgumentParser:
    defaults = GameConfig()
    parser = argparse.ArgumentParser(description="Five card draw against the house over WebSocket")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=9876)
    parser.add_argument("--starting-bankroll", type=int, default=defaults.starting_bankroll)
    parser.add_argument("--ante", type=int, default=defaults.ante)
    parser.add_argument("--loan-limit", type=int, default=defaults.loan_limit)
    parser.add_argument("--game-end", type=int, default=defaults.game_end)
    parser.add_argument("--validate-deck", action="store_true")
    parser.add_argument("--log-level", default="INFO")
    return parser


def config_from_args(args: argparse.Namespace) -> GameConfig:
    return GameConfig(
        starting_bankroll=args.starting_bankroll,
        ante=args.ante,
        loan_limit=args.loan_limit,
        game_end=args.game_end,
        validate_deck=args.validate_deck,
    )


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        asyncio.run(run_server(args.host, args.port, config_from_args(args)))
    except KeyboardInterrupt:
        LOGGER.info("Table server interrupted; shutting down")
