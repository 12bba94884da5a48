"""Robot state machine: movement, damage, lives and checkpoint progress."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from .config import MAX_HEALTH, PROGRAM_SIZE, STARTING_LIVES
from .errors import NoRespawnAnchor
from .events import Notifier
from .tiles import Direction, MoveTarget

if TYPE_CHECKING:
    from .board import Board
    from .cards import Card


logger = logging.getLogger(__name__)


class RobotStatus(Enum):
    ACTIVE = "active"
    POWERED_DOWN = "powered_down"
    DESTROYED = "destroyed"


class Robot:
    """The single simulated robot.

    All state is private; the methods below are the only way to change it, and
    each committed change emits exactly one notification.
    """

    def __init__(
        self,
        row: int,
        col: int,
        orientation: Direction = Direction.EAST,
        *,
        notifier: Optional[Notifier] = None,
        max_health: int = MAX_HEALTH,
        lives: int = STARTING_LIVES,
    ) -> None:
        self.notifier = notifier or Notifier()
        self.max_health = max_health
        self._row = row
        self._col = col
        self._orientation = orientation
        self._health = max_health
        self._lives = lives
        self._last_visited_station_key: Optional[Tuple[int, int]] = None
        self._highest_checkpoint = 0
        self._program: List["Card"] = []
        self._status = RobotStatus.ACTIVE
        self._power_down_intent = False
        logger.debug("Robot initialised at (%d, %d) facing %s", row, col, orientation.label)

    # ------------------------------------------------------------------
    # Read-only views

    @property
    def row(self) -> int:
        return self._row

    @property
    def col(self) -> int:
        return self._col

    @property
    def position(self) -> Tuple[int, int]:
        return self._row, self._col

    @property
    def orientation(self) -> Direction:
        return self._orientation

    @property
    def health(self) -> int:
        return self._health

    @property
    def lives(self) -> int:
        return self._lives

    @property
    def last_visited_station_key(self) -> Optional[Tuple[int, int]]:
        return self._last_visited_station_key

    @property
    def highest_visited_checkpoint_order(self) -> int:
        return self._highest_checkpoint

    @property
    def program(self) -> List["Card"]:
        return list(self._program)

    @property
    def status(self) -> RobotStatus:
        return self._status

    @property
    def is_destroyed(self) -> bool:
        return self._status is RobotStatus.DESTROYED

    @property
    def is_powered_down(self) -> bool:
        return self._status is RobotStatus.POWERED_DOWN

    @property
    def power_down_intent(self) -> bool:
        return self._power_down_intent

    def snapshot(self) -> Dict[str, object]:
        return {
            "row": self._row,
            "col": self._col,
            "orientation": self._orientation.label,
            "health": self._health,
            "max_health": self.max_health,
            "lives": self._lives,
            "last_visited_station": (
                list(self._last_visited_station_key)
                if self._last_visited_station_key is not None
                else None
            ),
            "highest_checkpoint": self._highest_checkpoint,
            "status": self._status.value,
            "power_down_intent": self._power_down_intent,
        }

    # ------------------------------------------------------------------
    # Movement

    def calculate_move_target(self, steps: int, board: "Board") -> MoveTarget:
        """Where a one-cell move would land. Does not change any state.

        Positive ``steps`` moves along the facing direction, negative moves
        backwards.
        """

        direction = self._orientation if steps > 0 else self._orientation.reverse()
        return board.step(self._row, self._col, direction)

    def set_position(self, row: int, col: int) -> None:
        if (row, col) == (self._row, self._col):
            return
        self._row = row
        self._col = col
        self.notifier.robot_moved(row, col, self._orientation)

    def turn(self, direction: str) -> Direction:
        if direction == "left":
            self._orientation = self._orientation.turn_left()
        elif direction == "right":
            self._orientation = self._orientation.turn_right()
        else:
            raise ValueError(f"Invalid turn direction: {direction!r}")
        self.notifier.robot_turned(self._row, self._col, self._orientation)
        return self._orientation

    def u_turn(self) -> Direction:
        self._orientation = self._orientation.reverse()
        self.notifier.robot_turned(self._row, self._col, self._orientation)
        return self._orientation

    # ------------------------------------------------------------------
    # Health and lives

    def take_damage(self) -> bool:
        """Remove one health point. Returns ``True`` when a life was lost."""

        if self.is_destroyed:
            raise RuntimeError("Cannot damage a destroyed robot.")
        self._health -= 1
        self.notifier.health_changed(self._health, self.max_health)
        if self._health <= 0:
            self.lose_life()
            return True
        return False

    def lose_life(self) -> None:
        self._lives -= 1
        self.notifier.lives_changed(self._lives)
        if self._lives <= 0:
            self._status = RobotStatus.DESTROYED
            logger.info("Robot destroyed, no lives left")
            return
        logger.info("Robot lost a life, %d remaining", self._lives)
        self._health = self.max_health
        self.notifier.health_changed(self._health, self.max_health)

    def heal(self) -> None:
        if self._health == self.max_health:
            return
        self._health = self.max_health
        self.notifier.health_changed(self._health, self.max_health)

    def set_last_visited_station(self, key: Tuple[int, int]) -> None:
        self._last_visited_station_key = tuple(key)

    def respawn(self) -> None:
        if self._last_visited_station_key is None:
            raise NoRespawnAnchor("No repair station or checkpoint has been visited.")
        logger.info("Returning to last visited station %s", self._last_visited_station_key)
        self.set_position(*self._last_visited_station_key)

    def visit_flag(self, key: Tuple[int, int], order: int) -> bool:
        """Record a checkpoint visit. Only the next order in sequence counts."""

        if order != self._highest_checkpoint + 1:
            return False
        self._highest_checkpoint = order
        self.notifier.flag_visited(tuple(key), self._highest_checkpoint)
        return True

    # ------------------------------------------------------------------
    # Program and power management

    def set_program(self, cards: Sequence["Card"]) -> None:
        if len(cards) > PROGRAM_SIZE:
            raise ValueError(
                f"A program holds at most {PROGRAM_SIZE} cards, got {len(cards)}."
            )
        self._program = list(cards)

    def clear_program(self) -> None:
        self._program = []

    def request_power_down(self) -> bool:
        """Ask to power down at the end of this turn.

        Refused (``False``) while destroyed or already powered down, since
        cleanup always powers a powered-down robot back up.
        """

        if self.is_destroyed or self._status is RobotStatus.POWERED_DOWN:
            logger.debug("Power down request refused in status %s", self._status.value)
            return False
        self._power_down_intent = True
        return True

    def end_of_turn_cleanup(self) -> None:
        if self._status is RobotStatus.POWERED_DOWN:
            self._status = RobotStatus.ACTIVE
        elif self._status is RobotStatus.ACTIVE and self._power_down_intent:
            self._status = RobotStatus.POWERED_DOWN
        else:
            return
        self._power_down_intent = False
        logger.info("Robot is now %s", self._status.value)
        self.notifier.power_state_changed(self._status.value)
