"""Layout constants for the Robo Factory viewer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from ..config import TILE_SIZE

# Tile metrics
WALL_THICKNESS: int = 4
BOARD_OUTER_PADDING: int = 24
GRID_PADDING: int = 16

# Side panel metrics
UI_PANEL_WIDTH: int = 300
UI_PANEL_PADDING: int = 18
UI_PANEL_SPACING: int = 8

# Footer with status messages and key help
FOOTER_HEIGHT: int = 72

# Colors expressed as RGB tuples
BACKGROUND_COLOR: Tuple[int, int, int] = (12, 14, 26)
PANEL_BACKGROUND_COLOR: Tuple[int, int, int] = (32, 36, 60)
FLOOR_COLOR: Tuple[int, int, int] = (58, 62, 74)
GRID_LINE_COLOR: Tuple[int, int, int] = (40, 42, 52)
WALL_COLOR: Tuple[int, int, int] = (236, 196, 64)
TEXT_COLOR: Tuple[int, int, int] = (232, 236, 244)
MUTED_TEXT_COLOR: Tuple[int, int, int] = (168, 176, 196)
ACCENT_COLOR: Tuple[int, int, int] = (255, 94, 0)
LASER_COLOR: Tuple[int, int, int] = (240, 40, 40)
PUSHER_COLOR: Tuple[int, int, int] = (150, 110, 220)
ROBOT_COLOR: Tuple[int, int, int] = (90, 200, 255)
ROBOT_POWERED_DOWN_COLOR: Tuple[int, int, int] = (110, 120, 140)

FLOOR_DEVICE_COLORS: Dict[str, Tuple[int, int, int]] = {
    "none": FLOOR_COLOR,
    "hole": (8, 8, 10),
    "repair-station": (60, 150, 90),
    "checkpoint": (220, 170, 40),
    "conveyor": (70, 90, 140),
    "gear": (120, 100, 80),
}
FAST_CONVEYOR_COLOR: Tuple[int, int, int] = (50, 110, 190)


@dataclass(frozen=True)
class BoardGeometry:
    """Pixel rectangles for the major UI regions."""

    board: Tuple[int, int, int, int]
    panel: Tuple[int, int, int, int]
    footer: Tuple[int, int, int, int]
    window: Tuple[int, int]


def compute_geometry(rows: int, cols: int, cell_size: int = TILE_SIZE) -> BoardGeometry:
    """Compute the rectangles for a board of ``rows`` x ``cols`` cells."""

    board_width = cols * cell_size
    board_height = rows * cell_size

    board_x = BOARD_OUTER_PADDING
    board_y = BOARD_OUTER_PADDING

    panel_x = board_x + board_width + GRID_PADDING
    panel_height = max(board_height, 360)

    footer_width = board_width + GRID_PADDING + UI_PANEL_WIDTH
    footer_y = board_y + panel_height + GRID_PADDING

    window_width = board_x + footer_width + BOARD_OUTER_PADDING
    window_height = footer_y + FOOTER_HEIGHT + BOARD_OUTER_PADDING

    return BoardGeometry(
        board=(board_x, board_y, board_width, board_height),
        panel=(panel_x, board_y, UI_PANEL_WIDTH, panel_height),
        footer=(board_x, footer_y, footer_width, FOOTER_HEIGHT),
        window=(window_width, window_height),
    )
