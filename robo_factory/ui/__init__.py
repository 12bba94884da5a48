"""User interface package for Robo Factory."""

from .main import (
    LEVEL_ENV_VAR,
    GameDirectories,
    RoboFactoryApp,
    bootstrap_directories,
    main,
    resolve_directories,
    run,
)
from .toolkit import RoboFactoryUI

__all__ = [
    "LEVEL_ENV_VAR",
    "GameDirectories",
    "RoboFactoryApp",
    "RoboFactoryUI",
    "bootstrap_directories",
    "main",
    "resolve_directories",
    "run",
]
