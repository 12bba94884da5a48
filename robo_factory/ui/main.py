"""Interactive pygame viewer for Robo Factory levels."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Tuple

import pygame

from ..board import BoardLoader
from ..config import (
    DEFAULT_LEVEL,
    LEVEL_ENV_VAR,
    GameDirectories,
    GameSettings,
    configure_logging,
    resolve_directories,
)
from ..engine import RoboFactoryGame
from . import layout
from .toolkit import RoboFactoryUI


logger = logging.getLogger(__name__)


class RoboFactoryApp:
    """Window, level selection and main loop around :class:`RoboFactoryUI`."""

    def __init__(
        self,
        *,
        directories: Optional[GameDirectories] = None,
        level_name: Optional[str] = None,
        seed: Optional[int] = None,
    ) -> None:
        pygame.init()
        pygame.display.set_caption("Robo Factory")
        self.clock = pygame.time.Clock()
        default_font = pygame.font.get_default_font()
        self.font = pygame.font.Font(default_font, 18)
        self.small_font = pygame.font.Font(default_font, 14)

        self.directories = directories or resolve_directories()
        self.level_loader = BoardLoader(self.directories.level_root)
        self.level_names: List[str] = self.level_loader.available()
        if not self.level_names:
            raise RuntimeError("No levels available to load.")

        wanted = level_name or DEFAULT_LEVEL
        self.level_index = (
            self.level_names.index(wanted) if wanted in self.level_names else 0
        )
        self.seed = seed
        self.game: Optional[RoboFactoryGame] = None
        self.ui: Optional[RoboFactoryUI] = None
        self.geometry: Optional[layout.BoardGeometry] = None
        self.screen = None
        self.load_level(self.level_names[self.level_index])

    def load_level(self, name: str) -> None:
        level = self.level_loader.load(name)
        self.game = RoboFactoryGame(level, GameSettings(seed=self.seed))
        self.geometry = layout.compute_geometry(level.board.rows, level.board.cols)
        self.screen = pygame.display.set_mode(self.geometry.window)
        pygame.display.set_caption(f"Robo Factory - {level.name} ({level.difficulty})")
        self.ui = RoboFactoryUI(self.game, cell_size=layout.TILE_SIZE)
        self.game.notifier.add(self.ui)
        self.game.deal()
        logger.info("Loaded level %s", name)

    def cycle_level(self, direction: int) -> None:
        """Advance the level index and load the new level."""

        self.level_index = (self.level_index + direction) % len(self.level_names)
        self.load_level(self.level_names[self.level_index])

    def handle_event(self, event) -> None:
        if event.type == pygame.QUIT:
            raise SystemExit
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                raise SystemExit
            if event.key == pygame.K_TAB:
                self.cycle_level(1)
                return
        self.ui.process_events([event])

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def draw(self) -> None:
        self.screen.fill(layout.BACKGROUND_COLOR)
        board_rect = pygame.Rect(*self.geometry.board)
        self.screen.blit(self.ui.render(), board_rect.topleft)
        self._draw_panel(pygame.Rect(*self.geometry.panel))
        self._draw_footer(pygame.Rect(*self.geometry.footer))
        pygame.display.flip()

    def _blit_line(self, text: str, position: Tuple[int, int], font=None, color=None) -> int:
        font = font or self.font
        surface = font.render(text, True, color or layout.TEXT_COLOR)
        self.screen.blit(surface, position)
        return surface.get_height() + layout.UI_PANEL_SPACING

    def _draw_panel(self, panel_rect) -> None:
        pygame.draw.rect(self.screen, layout.PANEL_BACKGROUND_COLOR, panel_rect, border_radius=12)
        robot = self.game.robot
        board = self.game.board
        x = panel_rect.x + layout.UI_PANEL_PADDING
        y = panel_rect.y + layout.UI_PANEL_PADDING

        y += self._blit_line(f"Health {robot.health}/{robot.max_health}", (x, y))
        y += self._blit_line(f"Lives {robot.lives}", (x, y))
        y += self._blit_line(
            f"Checkpoints {robot.highest_visited_checkpoint_order}/{board.total_checkpoints}",
            (x, y),
        )
        y += self._blit_line(f"Status {robot.status.value.replace('_', ' ')}", (x, y))
        y += layout.UI_PANEL_SPACING

        y += self._blit_line("Hand", (x, y), color=layout.ACCENT_COLOR)
        pending = self.ui.pending_program
        for index, card in enumerate(self.game.hand, start=1):
            marker = f" [{pending.index(card.instance_id) + 1}]" if card.instance_id in pending else ""
            y += self._blit_line(f"{index}. {card.text}{marker}", (x, y), font=self.small_font)
        y += layout.UI_PANEL_SPACING
        self._blit_line(
            f"Deck {self.game.cards.deck_size}  Discard {self.game.cards.discard_size}",
            (x, y),
            font=self.small_font,
            color=layout.MUTED_TEXT_COLOR,
        )

    def _draw_footer(self, footer_rect) -> None:
        x = footer_rect.x
        y = footer_rect.y
        y += self._blit_line(self.ui.status_message, (x, y))
        self._blit_line(
            "1-7 pick card  Backspace undo  Return run  P power down  R restart  Tab next level  Esc quit",
            (x, y),
            font=self.small_font,
            color=layout.MUTED_TEXT_COLOR,
        )

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------
    def run(self) -> None:
        while True:
            for event in pygame.event.get():
                try:
                    self.handle_event(event)
                except SystemExit:
                    pygame.quit()
                    return
            self.draw()
            self.clock.tick(30)


def bootstrap_directories() -> GameDirectories:
    """Return resolved directories and print a short bootstrap message."""

    directories = resolve_directories()
    message = (
        "Robo Factory bootstrap\n"
        f"  levels: {directories.level_root}\n"
        f"Set {LEVEL_ENV_VAR} to point to a custom level directory if needed."
    )
    print(message)
    return directories


def run(level_name: Optional[str] = None, seed: Optional[int] = None) -> None:
    """Open the viewer on ``level_name`` and block until the window closes."""

    RoboFactoryApp(level_name=level_name, seed=seed).run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Robo Factory viewer")
    parser.add_argument(
        "--info",
        action="store_true",
        help="Print resolved resource directories and exit without launching the UI.",
    )
    parser.add_argument(
        "--list-levels", action="store_true", help="List bundled levels and exit."
    )
    parser.add_argument("--level", default=None, help="Level to open first.")
    parser.add_argument("--seed", type=int, default=None, help="Deck shuffle seed.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.list_levels:
        directories = resolve_directories()
        print("Available levels:")
        for name in BoardLoader(directories.level_root).available():
            print(f"  {name}")
        return 0

    directories = bootstrap_directories()
    if args.info:
        return 0

    app = RoboFactoryApp(directories=directories, level_name=args.level, seed=args.seed)
    app.run()
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation entry point
    raise SystemExit(main())
