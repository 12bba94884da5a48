"""Shared constants, settings and directory resolution for Robo Factory."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union


HAND_SIZE = 7
PROGRAM_SIZE = 5
MAX_HEALTH = 10
STARTING_LIVES = 3
TILE_SIZE = 50

LEVEL_ENV_VAR = "ROBO_FACTORY_LEVEL_ROOT"
DEFAULT_LEVEL = "factory_floor"


def _cards(card_type: str, text: str, count: int) -> List[Dict[str, str]]:
    return [{"type": card_type, "text": text} for _ in range(count)]


FULL_DECK_DEFINITION: List[Dict[str, str]] = (
    _cards("move1", "Move 1", 18)
    + _cards("move2", "Move 2", 10)
    + _cards("back1", "Back 1", 6)
    + _cards("turnL", "Turn L", 9)
    + _cards("turnR", "Turn R", 9)
    + _cards("uturn", "U-Turn", 2)
)


@dataclass
class GameSettings:
    """Per-session tunables. Defaults match the module constants."""

    hand_size: int = HAND_SIZE
    max_health: int = MAX_HEALTH
    starting_lives: int = STARTING_LIVES
    seed: Optional[int] = None

    def __post_init__(self):
        if self.hand_size < PROGRAM_SIZE:
            raise ValueError(
                f"hand_size must be at least {PROGRAM_SIZE}, got {self.hand_size}"
            )
        if self.max_health <= 0:
            raise ValueError(f"max_health must be positive, got {self.max_health}")
        if self.starting_lives <= 0:
            raise ValueError(
                f"starting_lives must be positive, got {self.starting_lives}"
            )


@dataclass(frozen=True)
class GameDirectories:
    """Resolved resource directories."""

    level_root: Path


def default_level_root() -> Path:
    return Path(__file__).resolve().parent / "levels"


def resolve_directories(check_exists: bool = True) -> GameDirectories:
    """Resolve the level directory, honouring ``ROBO_FACTORY_LEVEL_ROOT``.

    Parameters
    ----------
    check_exists:
        When *True*, raise :class:`FileNotFoundError` if the resolved directory
        does not exist on disk.
    """

    value = os.environ.get(LEVEL_ENV_VAR)
    level_root = Path(value).expanduser() if value else default_level_root()
    if check_exists and not level_root.exists():
        raise FileNotFoundError(
            f"Required level directory does not exist: {level_root}"
        )
    return GameDirectories(level_root=level_root)


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install a console handler. Only the command line entry points call this."""

    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
