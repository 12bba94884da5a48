"""Tiles and the devices mounted on them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, FrozenSet, Optional, Tuple, Union

from .config import PROGRAM_SIZE
from .errors import BoardDefinitionError, NoRespawnAnchor

if TYPE_CHECKING:
    from .board import Board
    from .robot import Robot


logger = logging.getLogger(__name__)


class Direction(Enum):
    """Compass directions expressed as (row, col) offsets."""

    NORTH = (-1, 0)
    EAST = (0, 1)
    SOUTH = (1, 0)
    WEST = (0, -1)

    @property
    def vector(self) -> Tuple[int, int]:
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower()

    @staticmethod
    def from_name(name: str) -> "Direction":
        try:
            return Direction[str(name).upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown direction: {name}") from exc

    def turn_left(self) -> "Direction":
        mapping = {
            Direction.NORTH: Direction.WEST,
            Direction.WEST: Direction.SOUTH,
            Direction.SOUTH: Direction.EAST,
            Direction.EAST: Direction.NORTH,
        }
        return mapping[self]

    def turn_right(self) -> "Direction":
        mapping = {
            Direction.NORTH: Direction.EAST,
            Direction.EAST: Direction.SOUTH,
            Direction.SOUTH: Direction.WEST,
            Direction.WEST: Direction.NORTH,
        }
        return mapping[self]

    def reverse(self) -> "Direction":
        mapping = {
            Direction.NORTH: Direction.SOUTH,
            Direction.SOUTH: Direction.NORTH,
            Direction.EAST: Direction.WEST,
            Direction.WEST: Direction.EAST,
        }
        return mapping[self]


def coerce_side(side: object) -> Direction:
    """Accept a :class:`Direction` or its name, reject anything else."""

    if isinstance(side, Direction):
        return side
    if isinstance(side, str):
        try:
            return Direction.from_name(side)
        except ValueError:
            pass
    raise ValueError(
        f"Invalid wall side provided: {side!r}. Must be one of north, east, south, west."
    )


class Rotation(Enum):
    CW = "cw"
    CCW = "ccw"

    @staticmethod
    def from_name(name: str) -> "Rotation":
        try:
            return Rotation(str(name).lower())
        except ValueError as exc:
            raise ValueError(f"Unknown rotation: {name}") from exc


# ----------------------------------------------------------------------
# Floor devices. Exactly one per tile.


@dataclass(frozen=True)
class NoDevice:
    kind: ClassVar[str] = "none"


@dataclass(frozen=True)
class Hole:
    kind: ClassVar[str] = "hole"


@dataclass(frozen=True)
class RepairStation:
    kind: ClassVar[str] = "repair-station"


@dataclass(frozen=True)
class Checkpoint:
    """Goal flag; checkpoints must be reached in ascending ``order``."""

    order: int
    kind: ClassVar[str] = "checkpoint"

    def __post_init__(self):
        if isinstance(self.order, bool) or not isinstance(self.order, int) or self.order < 1:
            raise BoardDefinitionError(
                f"checkpoint order must be an integer >= 1, got {self.order!r}"
            )


@dataclass(frozen=True)
class Conveyor:
    direction: Direction
    speed: int = 1
    kind: ClassVar[str] = "conveyor"

    def __post_init__(self):
        if not isinstance(self.direction, Direction):
            raise BoardDefinitionError(f"invalid conveyor direction {self.direction!r}")
        if isinstance(self.speed, bool) or self.speed not in (1, 2):
            raise BoardDefinitionError(
                f"invalid conveyor speed {self.speed!r}, must be 1 or 2"
            )


@dataclass(frozen=True)
class Gear:
    rotation: Rotation
    kind: ClassVar[str] = "gear"

    def __post_init__(self):
        if not isinstance(self.rotation, Rotation):
            raise BoardDefinitionError(
                f"invalid gear direction {self.rotation!r}, must be 'cw' or 'ccw'"
            )


FloorDevice = Union[NoDevice, Hole, RepairStation, Checkpoint, Conveyor, Gear]


# ----------------------------------------------------------------------
# Wall devices. Mounted on one wall, acting through the opposite open side.


@dataclass(frozen=True)
class Laser:
    direction: Direction
    kind: ClassVar[str] = "laser"


@dataclass(frozen=True)
class Pusher:
    direction: Direction
    steps: FrozenSet[int] = frozenset()
    kind: ClassVar[str] = "pusher"

    def __post_init__(self):
        object.__setattr__(self, "steps", frozenset(self.steps))
        if not self.steps:
            raise BoardDefinitionError(
                "push panel has no activation steps defined (e.g. steps: [1, 3, 5])"
            )
        for step in self.steps:
            if isinstance(step, bool) or not isinstance(step, int) or not 1 <= step <= PROGRAM_SIZE:
                raise BoardDefinitionError(
                    f"push panel step {step!r} outside 1..{PROGRAM_SIZE}"
                )

    def active_on(self, program_step: int) -> bool:
        return program_step in self.steps


WallDevice = Union[Laser, Pusher]


@dataclass(frozen=True)
class MoveTarget:
    """Outcome of a single-cell move query against the board."""

    target_row: int
    target_col: int
    allowed: bool
    blocked_by_wall: bool = False


@dataclass(frozen=True)
class MoveResult:
    moved: bool
    row: Optional[int] = None
    col: Optional[int] = None


NO_MOVE = MoveResult(moved=False)


@dataclass(frozen=True)
class HoleResult:
    fell_in_hole: bool = False
    life_lost: bool = False
    destroyed: bool = False
    respawned: bool = False


@dataclass(frozen=True)
class Tile:
    """One static board cell. Validated at construction, never mutated."""

    row: int
    col: int
    walls: FrozenSet[Direction] = frozenset()
    floor_device: FloorDevice = field(default_factory=NoDevice)
    wall_devices: Tuple[WallDevice, ...] = ()

    def __post_init__(self):
        try:
            walls = frozenset(coerce_side(side) for side in self.walls)
        except ValueError as exc:
            raise BoardDefinitionError(f"Tile at ({self.row}, {self.col}): {exc}") from exc
        object.__setattr__(self, "walls", walls)
        object.__setattr__(self, "wall_devices", tuple(self.wall_devices))
        for device in self.wall_devices:
            if not isinstance(device.direction, Direction):
                raise BoardDefinitionError(
                    f"Invalid {device.kind} direction at ({self.row}, {self.col})."
                )
            required = device.direction.reverse()
            if required not in self.walls:
                raise BoardDefinitionError(
                    f"{device.kind} at ({self.row}, {self.col}) firing "
                    f"{device.direction.label} must be attached to a {required.label} wall."
                )
        if sum(isinstance(device, Pusher) for device in self.wall_devices) > 1:
            raise BoardDefinitionError(
                f"Tile at ({self.row}, {self.col}) carries more than one push panel."
            )

    @property
    def position(self) -> Tuple[int, int]:
        return self.row, self.col

    def has_wall(self, side: Union[Direction, str]) -> bool:
        return coerce_side(side) in self.walls

    def _wall_device(self, device_type: type) -> Optional[WallDevice]:
        for device in self.wall_devices:
            if isinstance(device, device_type):
                return device
        return None

    def lasers(self) -> Tuple[Laser, ...]:
        """Every laser mounted on this tile. Each one fires on its own."""

        return tuple(device for device in self.wall_devices if isinstance(device, Laser))

    def pusher(self) -> Optional[Pusher]:
        return self._wall_device(Pusher)

    def _shift(self, direction: Direction, board: "Board", source: str) -> MoveResult:
        target = board.step(self.row, self.col, direction)
        if not target.allowed:
            logger.debug(
                "%s at (%d,%d) blocked (wall: %s, boundary: %s)",
                source,
                self.row,
                self.col,
                target.blocked_by_wall,
                not target.blocked_by_wall,
            )
            return NO_MOVE
        logger.debug(
            "%s moving from (%d,%d) to (%d,%d)",
            source,
            self.row,
            self.col,
            target.target_row,
            target.target_col,
        )
        return MoveResult(True, target.target_row, target.target_col)

    # ------------------------------------------------------------------
    # Device appliers. Movement appliers only report, the pipeline commits.

    def try_conveyor(self, board: "Board", only_speed_2x: bool = False) -> MoveResult:
        device = self.floor_device
        if not isinstance(device, Conveyor):
            return NO_MOVE
        if only_speed_2x and device.speed != 2:
            return NO_MOVE
        return self._shift(device.direction, board, f"{device.speed}x conveyor")

    def try_pusher(self, board: "Board", program_step: int) -> MoveResult:
        pusher = self.pusher()
        if pusher is None:
            return NO_MOVE
        if not pusher.active_on(program_step):
            logger.debug(
                "Push panel at (%d,%d) fires on steps %s, skipping step %d",
                self.row,
                self.col,
                sorted(pusher.steps),
                program_step,
            )
            return NO_MOVE
        return self._shift(pusher.direction, board, "Push panel")

    def gear_turn(self) -> Optional[str]:
        device = self.floor_device
        if not isinstance(device, Gear):
            return None
        return "right" if device.rotation is Rotation.CW else "left"

    def try_repair_station(self, robot: "Robot") -> bool:
        """Heal and set the respawn anchor. Returns whether the tile is a station."""

        if not isinstance(self.floor_device, RepairStation):
            return False
        robot.set_last_visited_station(self.position)
        robot.heal()
        logger.info("Robot visited repair station at (%d, %d)", self.row, self.col)
        return True

    def try_checkpoint(self, robot: "Robot", board: "Board") -> bool:
        """Apply checkpoint arrival. Returns ``True`` when the game is won."""

        device = self.floor_device
        if not isinstance(device, Checkpoint):
            return False
        robot.set_last_visited_station(self.position)
        robot.heal()
        if not robot.visit_flag(self.position, device.order):
            logger.debug(
                "Checkpoint at (%d, %d) (order %d) not visited in sequence",
                self.row,
                self.col,
                device.order,
            )
            return False
        reached = robot.highest_visited_checkpoint_order
        logger.info("Visited %d / %d checkpoints", reached, board.total_checkpoints)
        if board.total_checkpoints > 0 and reached == board.total_checkpoints:
            logger.info("All checkpoints reached")
            return True
        return False

    def try_hole(self, robot: "Robot") -> HoleResult:
        if not isinstance(self.floor_device, Hole):
            return HoleResult()
        logger.info("Robot landed on a hole at (%d, %d)", self.row, self.col)
        life_lost = robot.take_damage()
        if robot.is_destroyed:
            logger.info("Robot destroyed by falling in hole")
            return HoleResult(fell_in_hole=True, life_lost=life_lost, destroyed=True)
        try:
            robot.respawn()
        except NoRespawnAnchor:
            logger.error(
                "Fell in hole at (%d, %d) but no station was visited; cannot return",
                self.row,
                self.col,
            )
            return HoleResult(fell_in_hole=True, life_lost=life_lost)
        return HoleResult(fell_in_hole=True, life_lost=life_lost, respawned=True)
