"""Board rendering and keyboard programming on top of pygame.

Rendering is deterministic so it can be exercised in automated tests using
the SDL ``dummy`` video driver.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional, Tuple

from ..config import PROGRAM_SIZE
from ..engine import RoboFactoryGame, TurnResult
from ..events import Notifier
from ..tiles import Checkpoint, Conveyor, Direction, Gear, Rotation, Tile
from . import layout


logger = logging.getLogger(__name__)

# pygame is imported lazily so test environments can pick the SDL drivers
# before the first import.
_PYGAME = None


def ensure_pygame():
    global _PYGAME
    if _PYGAME is None:
        os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
        _PYGAME = __import__("pygame")
        _PYGAME.display.init()
        _PYGAME.font.init()
    return _PYGAME


ARROW_SYMBOLS = {
    Direction.NORTH: "^",
    Direction.EAST: ">",
    Direction.SOUTH: "v",
    Direction.WEST: "<",
}
GEAR_SYMBOLS = {Rotation.CW: "@>", Rotation.CCW: "<@"}


class RoboFactoryUI(Notifier):
    """Draws the board and turns key presses into programs and turns.

    Registered as a listener on the game so the status line reflects what
    the engine reports.
    """

    def __init__(
        self,
        game: RoboFactoryGame,
        *,
        cell_size: int = 32,
        surface=None,
        use_display: bool = False,
    ) -> None:
        pygame = ensure_pygame()
        self.game = game
        self.cell_size = cell_size
        width = game.board.cols * cell_size
        height = game.board.rows * cell_size
        self.surface = surface or pygame.Surface((width, height))
        self.screen = None
        if use_display:
            self.screen = pygame.display.set_mode((width, height))
        self.pending_program: List[str] = []
        self.status_message = "Pick up to five cards with 1-7, then press Return."
        self.font = pygame.font.Font(pygame.font.get_default_font(), max(10, cell_size // 3))

    # ------------------------------------------------------------------
    # Notifications

    def flag_visited(self, flag_key, highest_order):
        self.status_message = f"Checkpoint {highest_order} reached at {flag_key}."

    def lives_changed(self, lives):
        self.status_message = f"Robot lost a life, {lives} left."

    def power_state_changed(self, status):
        self.status_message = f"Robot is {status.replace('_', ' ')}."

    def game_over(self, won):
        self.status_message = "All checkpoints reached!" if won else "Robot destroyed."

    # ------------------------------------------------------------------
    # Input handling

    def select_card(self, hand_index: int) -> bool:
        hand = self.game.hand
        if not 0 <= hand_index < len(hand):
            return False
        card = hand[hand_index]
        if card.instance_id in self.pending_program or len(self.pending_program) >= PROGRAM_SIZE:
            return False
        self.pending_program.append(card.instance_id)
        return True

    def unselect_last(self) -> Optional[str]:
        if not self.pending_program:
            return None
        return self.pending_program.pop()

    def commit_turn(self) -> Optional[TurnResult]:
        if self.game.is_over:
            self.status_message = "The game is over, press R to restart."
            return None
        if not self.game.robot.is_powered_down:
            self.game.program(self.pending_program)
        self.pending_program = []
        return self.game.run_turn()

    def restart(self) -> None:
        self.pending_program = []
        self.game.reset()
        self.game.deal()
        self.status_message = "Game restarted."

    def process_events(self, events: Iterable[object]) -> None:
        pygame = ensure_pygame()
        number_keys = [getattr(pygame, f"K_{n}") for n in range(1, 10)]
        for event in events:
            if event.type != pygame.KEYDOWN:
                continue
            if event.key in number_keys:
                self.select_card(number_keys.index(event.key))
            elif event.key == pygame.K_BACKSPACE:
                self.unselect_last()
            elif event.key == pygame.K_RETURN:
                self.commit_turn()
            elif event.key == pygame.K_p:
                if self.game.request_power_down():
                    self.status_message = "Power down requested for the end of this turn."
                else:
                    self.status_message = "Robot is already powered down."
            elif event.key == pygame.K_r:
                self.restart()

    # ------------------------------------------------------------------
    # Rendering helpers

    def render(self):
        pygame = ensure_pygame()
        self.surface.fill(layout.BACKGROUND_COLOR)
        for tile in self.game.board:
            self._draw_tile(tile)
        self._draw_lasers()
        self._draw_robot()
        if self.screen:
            self.screen.blit(self.surface, (0, 0))
            pygame.display.flip()
        return self.surface

    def cell_rect(self, row: int, col: int):
        pygame = ensure_pygame()
        return pygame.Rect(
            col * self.cell_size, row * self.cell_size, self.cell_size, self.cell_size
        )

    def cell_center(self, row: int, col: int) -> Tuple[int, int]:
        return (
            col * self.cell_size + self.cell_size // 2,
            row * self.cell_size + self.cell_size // 2,
        )

    def _draw_tile(self, tile: Tile) -> None:
        pygame = ensure_pygame()
        rect = self.cell_rect(tile.row, tile.col)
        device = tile.floor_device
        color = layout.FLOOR_DEVICE_COLORS.get(device.kind, layout.FLOOR_COLOR)
        if isinstance(device, Conveyor) and device.speed == 2:
            color = layout.FAST_CONVEYOR_COLOR
        self.surface.fill(color, rect)
        pygame.draw.rect(self.surface, layout.GRID_LINE_COLOR, rect, 1)

        if isinstance(device, Conveyor):
            symbol = ARROW_SYMBOLS[device.direction] * device.speed
            self._draw_text(tile.row, tile.col, symbol)
        elif isinstance(device, Gear):
            self._draw_text(tile.row, tile.col, GEAR_SYMBOLS[device.rotation])
        elif isinstance(device, Checkpoint):
            self._draw_text(tile.row, tile.col, str(device.order))

        for side in tile.walls:
            self._draw_wall(rect, side, layout.WALL_COLOR)
        pusher = tile.pusher()
        if pusher is not None:
            self._draw_wall(rect, pusher.direction.reverse(), layout.PUSHER_COLOR)
            steps = "".join(str(step) for step in sorted(pusher.steps))
            self._draw_text(tile.row, tile.col, steps, offset=self.cell_size // 3)

    def _draw_wall(self, rect, side: Direction, color: Tuple[int, int, int]) -> None:
        pygame = ensure_pygame()
        thickness = layout.WALL_THICKNESS
        if side is Direction.NORTH:
            wall = pygame.Rect(rect.left, rect.top, rect.width, thickness)
        elif side is Direction.SOUTH:
            wall = pygame.Rect(rect.left, rect.bottom - thickness, rect.width, thickness)
        elif side is Direction.WEST:
            wall = pygame.Rect(rect.left, rect.top, thickness, rect.height)
        else:
            wall = pygame.Rect(rect.right - thickness, rect.top, thickness, rect.height)
        self.surface.fill(color, wall)

    def _draw_lasers(self) -> None:
        pygame = ensure_pygame()
        board = self.game.board
        robot = self.game.robot.position
        for emitter, laser in board.laser_emitters():
            symbol = ARROW_SYMBOLS.get(laser.direction)
            if symbol is None:
                logger.warning(
                    "No symbol for laser direction %r at %s, skipping",
                    laser.direction,
                    emitter.position,
                )
                continue
            self._draw_text(emitter.row, emitter.col, symbol, color=layout.LASER_COLOR)
            path = board.trace_laser_path(emitter.row, emitter.col, laser.direction, robot)
            if not path:
                continue
            start = self.cell_center(emitter.row, emitter.col)
            end = self.cell_center(*path[-1])
            pygame.draw.line(self.surface, layout.LASER_COLOR, start, end, 2)

    def _draw_robot(self) -> None:
        pygame = ensure_pygame()
        robot = self.game.robot
        cx, cy = self.cell_center(robot.row, robot.col)
        reach = int(self.cell_size * 0.35)
        d_row, d_col = robot.orientation.vector
        nose = (cx + d_col * reach, cy + d_row * reach)
        left = robot.orientation.turn_left().vector
        right = robot.orientation.turn_right().vector
        back = (cx - d_col * reach // 2, cy - d_row * reach // 2)
        wing_left = (back[0] + left[1] * reach, back[1] + left[0] * reach)
        wing_right = (back[0] + right[1] * reach, back[1] + right[0] * reach)
        color = layout.ROBOT_POWERED_DOWN_COLOR if robot.is_powered_down else layout.ROBOT_COLOR
        pygame.draw.polygon(self.surface, color, [nose, wing_left, wing_right])

    def _draw_text(
        self,
        row: int,
        col: int,
        text: str,
        *,
        color: Tuple[int, int, int] = layout.TEXT_COLOR,
        offset: int = 0,
    ) -> None:
        label = self.font.render(text, True, color)
        rect = label.get_rect()
        cx, cy = self.cell_center(row, col)
        rect.center = (cx, cy + offset)
        self.surface.blit(label, rect)


__all__ = ["RoboFactoryUI", "ensure_pygame"]
