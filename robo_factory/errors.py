"""Exception types raised by the simulation core."""

from __future__ import annotations


class BoardDefinitionError(ValueError):
    """A board or level definition is malformed. Raised while parsing."""


class NoRespawnAnchor(LookupError):
    """The robot has to respawn but never visited a station or checkpoint."""
