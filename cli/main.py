"""Command-line entry points for listing, running, serving and plotting games."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from core.config_loader import load_config
from core.event_bus import EventBus
from core.game_session import EVENT_STATE
from core.plugin_registry import discover_games
from core.scheduler import ThreadingTimerHost
from data.session_log import SessionLog
from launcher.calculator import GAME_TITLES, SECRET_CODES, Calculator, run_keys
from main import build_session, open_store, run_headless
from streaming.websocket_server import GameStateServer, session_input_handler
from visualization.plotting import plot_scores


LOGGER = logging.getLogger(__name__)


def _list_games() -> int:
    codes = {game: code for code, game in SECRET_CODES.items()}
    for name in sorted(discover_games()):
        print(f"{name:<12} {codes.get(name, '-'):<5} {GAME_TITLES.get(name, name)}")
    return 0


def _run(args: argparse.Namespace) -> int:
    config = load_config(args.config, strict=not args.lenient)
    storage = config["storage"]
    kv_path = args.kv or storage.get("kv_path")
    log_path = args.db or storage.get("session_log")

    store = open_store(kv_path)
    session_log = SessionLog(log_path) if log_path else None
    try:
        summary = run_headless(config, store=store, session_log=session_log)
    finally:
        store.close()
        if session_log is not None:
            session_log.close()
    print(json.dumps(summary, sort_keys=True))
    return 0


def _calc(args: argparse.Namespace) -> int:
    display, game = run_keys(args.keys, Calculator())
    if game is not None:
        print(f"open {game}")
    else:
        print(display)
    return 0


async def _serve_forever(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    store = open_store(args.kv or config["storage"].get("kv_path"))
    host = ThreadingTimerHost()
    bus = EventBus()
    session = build_session(config, host, store, event_bus=bus)
    server = GameStateServer(
        host=args.host,
        port=args.port,
        max_fps=args.fps,
        on_input=session_input_handler(session),
    )
    bus.subscribe(EVENT_STATE, server.broadcast_threadsafe)
    host.start()
    try:
        session.start()
        await server.start()
        if args.duration is not None:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()
    finally:
        bus.unsubscribe(EVENT_STATE, server.broadcast_threadsafe)
        session.exit()
        host.stop()
        bus.close()
        await server.stop()
        store.close()
        host.join(timeout=1.0)


def run_cli(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="arcade")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list")

    run_cmd = sub.add_parser("run")
    run_cmd.add_argument("--config", default="configs/keepup.yaml")
    run_cmd.add_argument("--db", default=None, help="SQLite session log path")
    run_cmd.add_argument("--kv", default=None, help="SQLite key/value store path")
    run_cmd.add_argument("--lenient", action="store_true", help="warn on unknown params instead of failing")

    calc_cmd = sub.add_parser("calc")
    calc_cmd.add_argument("keys", help="button presses, e.g. '12+3=' or '7+7='")

    serve_cmd = sub.add_parser("serve")
    serve_cmd.add_argument("--config", default="configs/keepup.yaml")
    serve_cmd.add_argument("--kv", default=None)
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8765)
    serve_cmd.add_argument("--fps", type=int, default=30)
    serve_cmd.add_argument("--duration", type=float, default=None)

    plot_cmd = sub.add_parser("plot")
    plot_cmd.add_argument("--game", required=True)
    plot_cmd.add_argument("--db", default="sessions.db")
    plot_cmd.add_argument("--out", default="artifacts/scores.png")

    args = parser.parse_args(argv)

    if args.command == "list":
        return _list_games()

    if args.command == "run":
        return _run(args)

    if args.command == "calc":
        return _calc(args)

    if args.command == "serve":
        try:
            asyncio.run(_serve_forever(args))
        except KeyboardInterrupt:
            LOGGER.info("Server interrupted.")
        return 0

    if args.command == "plot":
        path = plot_scores(args.db, args.game, args.out)
        print(path)
        return 0

    return 1


def main() -> int:
    logging.basicConfig(level=logging.INFO)
    return run_cli()


if __name__ == "__main__":
    raise SystemExit(main())
