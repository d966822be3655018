"""Headless sprint master runner.

Starts a new game (or continues a saved one) and lets the simulation run
month after month, printing every message and monthly report. The player
stays idle, so this mostly shows ingestion, events and score decay.

Usage:
  python -m sprint_master new "My Product" --months 3 --save game.json
  python -m sprint_master continue --save game.json --months 1
"""
from __future__ import annotations

import argparse
import logging
import sys

from sprint_master.clock import GameSpeed
from sprint_master.messages import Message, MessageKind
from sprint_master.session import Game
from sprint_master.storage import JsonFileStore, MemoryStore
from sprint_master.types import PersistenceError, SnapshotError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="sprint-master headless runner")
    p.add_argument("--save", type=str, default=None, metavar="FILE",
                   help="Save file (default: keep the game in memory)")
    p.add_argument("--months", type=int, default=1, help="Months to play (default: 1)")
    p.add_argument("--realtime", action="store_true",
                   help="Deliver ticks in real time instead of fast-forwarding")
    p.add_argument("--speed", choices=[s.value for s in GameSpeed], default="normal",
                   help="Real-time tick speed (default: normal)")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = p.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Start a new game")
    new.add_argument("product", help="Name of the product")
    new.add_argument("--tutorial", action="store_true", help="Start with the onboarding month")
    new.add_argument("--seed", type=int, default=None, help="Random seed")

    sub.add_parser("continue", help="Continue the saved game")

    args = p.parse_args(argv)
    args.months = max(1, args.months)
    return args


def print_message(message: Message) -> None:
    print(f"== {message.title}")
    if message.body:
        print(message.body)
    print()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(levelname)s %(name)s: %(message)s")

    store = JsonFileStore(args.save) if args.save else MemoryStore()
    try:
        if args.command == "new":
            game = Game.new(args.product, tutorial=args.tutorial, seed=args.seed, store=store)
        else:
            game = Game.load(store)
    except (PersistenceError, SnapshotError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    months_left = args.months

    def on_message(game: Game, message: Message) -> None:
        nonlocal months_left
        print_message(message)
        # closing a monthly report commits the rollover and saves
        game.acknowledge()
        if message.kind is MessageKind.END_OF_MONTH:
            months_left -= 1
            if months_left <= 0:
                game.request_stop()

    try:
        if args.realtime:
            game.set_speed(GameSpeed(args.speed))
            game.run_forever(on_message)
        else:
            ticks = game.state.config.ticks_per_month
            while months_left > 0:
                game.run(ticks)
                while game.message is not None and months_left > 0:
                    on_message(game, game.message)
        game.save()
    except PersistenceError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        game.save()
    return 0


if __name__ == "__main__":
    sys.exit(main())
