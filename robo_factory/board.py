"""Board model, definition parsing and level loading."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import BoardDefinitionError
from .tiles import (
    Checkpoint,
    Conveyor,
    Direction,
    FloorDevice,
    Gear,
    Hole,
    Laser,
    MoveTarget,
    NoDevice,
    Pusher,
    RepairStation,
    Rotation,
    Tile,
    WallDevice,
    coerce_side,
)


logger = logging.getLogger(__name__)

Position = Tuple[int, int]


@dataclass(frozen=True)
class Flag:
    """A goal tile: repair station (no order) or checkpoint."""

    row: int
    col: int
    kind: str
    order: Optional[int] = None

    @property
    def position(self) -> Position:
        return self.row, self.col


class Board:
    """Rectangular grid of tiles plus the derived goal indices."""

    def __init__(self, tiles: Sequence[Sequence[Tile]]):
        if not tiles or not tiles[0]:
            raise BoardDefinitionError("Board definition is empty or invalid.")
        self.rows = len(tiles)
        self.cols = len(tiles[0])
        for r, row in enumerate(tiles):
            if len(row) != self.cols:
                raise BoardDefinitionError(
                    f"Board definition row {r} has inconsistent length."
                )
            for c, tile in enumerate(row):
                if tile.position != (r, c):
                    raise BoardDefinitionError(
                        f"Tile {tile.position} stored at grid cell ({r}, {c})."
                    )
        self.tiles: Tuple[Tuple[Tile, ...], ...] = tuple(tuple(row) for row in tiles)

        checkpoints: List[Flag] = []
        stations: List[Flag] = []
        has_hole = False
        for tile in self:
            device = tile.floor_device
            if isinstance(device, Checkpoint):
                checkpoints.append(Flag(tile.row, tile.col, device.kind, device.order))
            elif isinstance(device, RepairStation):
                stations.append(Flag(tile.row, tile.col, device.kind))
            elif isinstance(device, Hole):
                has_hole = True

        checkpoints.sort(key=lambda flag: flag.order)
        orders = [flag.order for flag in checkpoints]
        if orders != list(range(1, len(orders) + 1)):
            raise BoardDefinitionError(
                f"Checkpoint orders must run 1..{len(orders)} without gaps or repeats, got {orders}."
            )
        if has_hole and not (checkpoints or stations):
            raise BoardDefinitionError(
                "Board has holes but no repair station or checkpoint to respawn at."
            )

        self.flags: List[Flag] = checkpoints + stations
        self.total_checkpoints = len(checkpoints)
        logger.debug(
            "Parsed %dx%d board with %d flags (%d checkpoints)",
            self.rows,
            self.cols,
            len(self.flags),
            self.total_checkpoints,
        )

    @classmethod
    def from_definition(cls, definition: Sequence[Sequence[Mapping[str, object]]]) -> "Board":
        return cls(parse_board_definition(definition))

    def __iter__(self) -> Iterator[Tile]:
        for row in self.tiles:
            yield from row

    def inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def get_tile(self, row: int, col: int) -> Optional[Tile]:
        if not self.inside(row, col):
            return None
        return self.tiles[row][col]

    def has_wall(self, row: int, col: int, side: Union[Direction, str]) -> bool:
        side = coerce_side(side)
        tile = self.get_tile(row, col)
        if tile is None:
            return False
        return side in tile.walls

    def step(self, row: int, col: int, direction: Direction) -> MoveTarget:
        """Check a one-cell move: boundary first, then exit and entry walls."""

        d_row, d_col = direction.vector
        target_row, target_col = row + d_row, col + d_col
        if not self.inside(target_row, target_col):
            return MoveTarget(target_row, target_col, allowed=False)
        if self.has_wall(row, col, direction) or self.has_wall(
            target_row, target_col, direction.reverse()
        ):
            return MoveTarget(target_row, target_col, allowed=False, blocked_by_wall=True)
        return MoveTarget(target_row, target_col, allowed=True)

    def laser_emitters(self) -> Iterator[Tuple[Tile, Laser]]:
        for tile in self:
            for laser in tile.lasers():
                yield tile, laser

    def trace_laser_path(
        self,
        origin_row: int,
        origin_col: int,
        direction: Direction,
        robot_position: Optional[Position] = None,
    ) -> List[Position]:
        """Cells swept by a beam leaving ``(origin_row, origin_col)``.

        The emitter cell itself is never part of the path. A beam stops at
        the board edge, on the robot (inclusive), before leaving a cell
        through a wall (exclusive of the next cell), or on a cell whose
        entry side carries a wall (inclusive). The emitter's own mounting
        wall never blocks its outbound beam.
        """

        origin = (origin_row, origin_col)
        robot = tuple(robot_position) if robot_position is not None else None
        path: List[Position] = []
        d_row, d_col = direction.vector
        entry_side = direction.reverse()
        current = origin
        candidate = (origin_row + d_row, origin_col + d_col)

        while True:
            if not self.inside(*candidate):
                break
            if candidate == robot:
                path.append(candidate)
                break
            if current != origin and self.has_wall(current[0], current[1], direction):
                break
            if self.has_wall(candidate[0], candidate[1], entry_side):
                path.append(candidate)
                break
            path.append(candidate)
            current = candidate
            candidate = (candidate[0] + d_row, candidate[1] + d_col)

        return path


# ----------------------------------------------------------------------
# Definition parsing


def _error(row: int, col: int, message: str) -> BoardDefinitionError:
    return BoardDefinitionError(f"Tile at ({row}, {col}): {message}")


def parse_floor_device(spec: Optional[Mapping[str, object]], row: int, col: int) -> FloorDevice:
    if spec is None:
        return NoDevice()
    if not isinstance(spec, Mapping) or not spec.get("type"):
        raise _error(row, col, "floorDevice is missing its type.")
    kind = spec["type"]
    try:
        if kind == "none":
            return NoDevice()
        if kind == "hole":
            return Hole()
        if kind == "repair-station":
            return RepairStation()
        if kind == "checkpoint":
            return Checkpoint(spec.get("order"))
        if kind == "conveyor":
            try:
                direction = Direction.from_name(spec.get("direction"))
            except ValueError as exc:
                raise BoardDefinitionError(
                    f"invalid conveyor direction {spec.get('direction')!r}"
                ) from exc
            return Conveyor(direction, spec.get("speed"))
        if kind == "gear":
            try:
                rotation = Rotation.from_name(spec.get("direction"))
            except ValueError as exc:
                raise BoardDefinitionError(
                    f"invalid gear direction {spec.get('direction')!r}, must be 'cw' or 'ccw'"
                ) from exc
            return Gear(rotation)
    except BoardDefinitionError as exc:
        raise _error(row, col, str(exc)) from exc
    raise _error(row, col, f"unknown floor device type {kind!r}.")


def parse_wall_device(spec: Mapping[str, object], row: int, col: int) -> WallDevice:
    kind = spec.get("type") if isinstance(spec, Mapping) else None
    if kind not in ("laser", "pusher"):
        raise _error(row, col, f"unknown wall device type {kind!r}.")
    try:
        direction = Direction.from_name(spec.get("direction"))
    except ValueError as exc:
        raise _error(row, col, f"invalid {kind} direction {spec.get('direction')!r}.") from exc
    if kind == "laser":
        return Laser(direction)
    try:
        return Pusher(direction, frozenset(spec.get("steps") or ()))
    except (BoardDefinitionError, TypeError) as exc:
        raise _error(row, col, str(exc)) from exc


def parse_tile(spec: Mapping[str, object], row: int, col: int) -> Tile:
    if not isinstance(spec, Mapping):
        raise _error(row, col, "tile definition must be an object.")
    floor_device = parse_floor_device(spec.get("floorDevice"), row, col)
    wall_devices = tuple(
        parse_wall_device(device, row, col) for device in spec.get("wallDevices") or ()
    )
    return Tile(
        row=row,
        col=col,
        walls=frozenset(spec.get("walls") or ()),
        floor_device=floor_device,
        wall_devices=wall_devices,
    )


def parse_board_definition(
    definition: Sequence[Sequence[Mapping[str, object]]],
) -> List[List[Tile]]:
    """Turn a 2D list of tile specs into tiles, failing on the first bad cell."""

    if not definition or not definition[0]:
        raise BoardDefinitionError("Board definition is empty or invalid.")
    cols = len(definition[0])
    tiles: List[List[Tile]] = []
    for r, row_spec in enumerate(definition):
        if not row_spec or len(row_spec) != cols:
            raise BoardDefinitionError(
                f"Board definition row {r} has inconsistent length or is missing."
            )
        tiles.append([parse_tile(spec, r, c) for c, spec in enumerate(row_spec)])
    return tiles


# ----------------------------------------------------------------------
# ASCII layouts

LAYOUT_SYMBOLS: Dict[str, Dict[str, object]] = {
    " ": {"type": "none"},
    ".": {"type": "none"},
    "R": {"type": "repair-station"},
    "O": {"type": "hole"},
    ">": {"type": "conveyor", "direction": "east", "speed": 1},
    "<": {"type": "conveyor", "direction": "west", "speed": 1},
    "^": {"type": "conveyor", "direction": "north", "speed": 1},
    "v": {"type": "conveyor", "direction": "south", "speed": 1},
    "}": {"type": "conveyor", "direction": "east", "speed": 2},
    "{": {"type": "conveyor", "direction": "west", "speed": 2},
    "A": {"type": "conveyor", "direction": "north", "speed": 2},
    "V": {"type": "conveyor", "direction": "south", "speed": 2},
    ")": {"type": "gear", "direction": "cw"},
    "(": {"type": "gear", "direction": "ccw"},
}


def _layout_floor(symbol: str, row: int, col: int) -> Dict[str, object]:
    if symbol.isdigit() and symbol != "0":
        return {"type": "checkpoint", "order": int(symbol)}
    try:
        return dict(LAYOUT_SYMBOLS[symbol])
    except KeyError:
        raise _error(row, col, f"unknown layout symbol {symbol!r}.") from None


def layout_to_definition(
    layout: Sequence[str],
    *,
    outer_walls: bool = False,
    walls: Sequence[Mapping[str, object]] = (),
    wall_devices: Sequence[Mapping[str, object]] = (),
) -> List[List[Dict[str, object]]]:
    """Expand ASCII rows plus wall overrides into a board definition."""

    if not layout or not layout[0]:
        raise BoardDefinitionError("Board layout is empty.")
    cols = len(layout[0])
    definition: List[List[Dict[str, object]]] = []
    for r, line in enumerate(layout):
        if len(line) != cols:
            raise BoardDefinitionError(f"Board layout row {r} has inconsistent length.")
        definition.append(
            [
                {"walls": [], "floorDevice": _layout_floor(symbol, r, c), "wallDevices": []}
                for c, symbol in enumerate(line)
            ]
        )
    rows = len(definition)

    def cell(entry: object, section: str) -> Dict[str, object]:
        try:
            r, c = (int(v) for v in entry["position"])
        except (KeyError, TypeError, ValueError) as exc:
            raise BoardDefinitionError(
                f"{section} entry {entry!r} needs a [row, col] position."
            ) from exc
        if not (0 <= r < rows and 0 <= c < cols):
            raise BoardDefinitionError(f"Position ({r}, {c}) is outside the layout.")
        return definition[r][c]

    if outer_walls:
        for c in range(cols):
            definition[0][c]["walls"].append("north")
            definition[rows - 1][c]["walls"].append("south")
        for r in range(rows):
            definition[r][0]["walls"].append("west")
            definition[r][cols - 1]["walls"].append("east")
    for entry in walls:
        target = cell(entry, "walls")
        for side in entry.get("sides", ()):
            if side not in target["walls"]:
                target["walls"].append(side)
    for entry in wall_devices:
        target = cell(entry, "wall_devices")
        target["wallDevices"].append(
            {key: value for key, value in entry.items() if key != "position"}
        )
    return definition


# ----------------------------------------------------------------------
# Levels


@dataclass
class Level:
    """A board plus the robot's starting placement."""

    name: str
    difficulty: str
    board: Board
    start_row: int = 0
    start_col: int = 0
    start_orientation: Direction = Direction.EAST

    @property
    def metadata(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "difficulty": self.difficulty,
            "dimensions": f"{self.board.rows}x{self.board.cols}",
            "checkpoints": self.board.total_checkpoints,
        }


class BoardLoader:
    """Load level files stored as JSON."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def available(self) -> List[str]:
        return sorted(path.stem for path in self.root.glob("*.json"))

    def load(self, name: str) -> Level:
        path = self.root / f"{name}.json"
        if not path.exists():
            raise FileNotFoundError(path)
        data = json.loads(path.read_text())
        logger.info("Loading level %s from %s", name, path)
        return self.parse_level(data, default_name=name)

    @staticmethod
    def parse_level(data: Mapping[str, object], default_name: str = "Untitled") -> Level:
        if "tiles" in data:
            definition = data["tiles"]
        elif "layout" in data:
            definition = layout_to_definition(
                data["layout"],
                outer_walls=bool(data.get("outer_walls", False)),
                walls=data.get("walls", []),
                wall_devices=data.get("wall_devices", []),
            )
        else:
            raise BoardDefinitionError("Level needs either 'tiles' or 'layout'.")
        board = Board.from_definition(definition)

        start = data.get("start", {})
        try:
            start_row = int(start.get("row", 0))
            start_col = int(start.get("col", 0))
        except (AttributeError, TypeError, ValueError) as exc:
            raise BoardDefinitionError(
                f"Start {start!r} needs integer 'row' and 'col' values."
            ) from exc
        if not board.inside(start_row, start_col):
            raise BoardDefinitionError(
                f"Start position ({start_row}, {start_col}) is outside the board."
            )
        try:
            orientation = Direction.from_name(start.get("orientation", "east"))
        except ValueError as exc:
            raise BoardDefinitionError(str(exc)) from exc

        return Level(
            name=str(data.get("name", default_name)),
            difficulty=str(data.get("difficulty", "Unknown")),
            board=board,
            start_row=start_row,
            start_col=start_col,
            start_orientation=orientation,
        )
