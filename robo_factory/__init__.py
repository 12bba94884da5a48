"""Robo Factory package."""

from .board import Board, BoardLoader, Level
from .cards import Card, CardSupply, CardType
from .engine import ProgramExecutor, RoboFactoryGame, resolve_board_effects
from .robot import Robot, RobotStatus
from .tiles import Direction, Tile

__all__ = [
    "Board",
    "BoardLoader",
    "Card",
    "CardSupply",
    "CardType",
    "Direction",
    "Level",
    "ProgramExecutor",
    "RoboFactoryGame",
    "Robot",
    "RobotStatus",
    "Tile",
    "resolve_board_effects",
]
