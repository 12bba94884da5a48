"""Simple command line demo for the Robo Factory engine."""

from __future__ import annotations

import argparse
from typing import List, Optional

from .board import BoardLoader
from .config import DEFAULT_LEVEL, GameSettings, configure_logging, resolve_directories
from .engine import RoboFactoryGame


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Robo Factory headless playthrough")
    parser.add_argument("--level", default=DEFAULT_LEVEL, help="Level name to load.")
    parser.add_argument("--turns", type=int, default=10, help="Maximum number of turns.")
    parser.add_argument("--seed", type=int, default=None, help="Deck shuffle seed.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    loader = BoardLoader(resolve_directories().level_root)
    level = loader.load(args.level)
    game = RoboFactoryGame(level, GameSettings(seed=args.seed))
    results = game.play(args.turns)

    robot = results["robot"]
    print("=== Robo Factory Demo ===")
    print(f"Level: {results['metadata']['name']} ({results['metadata']['difficulty']})")
    print(f"Turns played: {results['turns']}")
    print(
        f"Robot at ({robot['row']}, {robot['col']}) facing {robot['orientation']}, "
        f"health {robot['health']}/{robot['max_health']}, lives {robot['lives']}"
    )
    print(
        f"Checkpoints: {robot['highest_checkpoint']}/{results['metadata']['checkpoints']}"
    )
    if results["game_over"]:
        print("Result: won" if results["won"] else "Result: destroyed")
    else:
        print("Result: still running")
    print(f"Notifications emitted: {len(results['events'])}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
