"""Turn resolution: card actions followed by the board effect pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .board import Board, Level
from .cards import Card, CardSupply, CardType
from .config import PROGRAM_SIZE, GameSettings
from .errors import NoRespawnAnchor
from .events import FanoutNotifier, Notifier, RecordingNotifier
from .robot import Robot
from .tiles import MoveResult, Tile


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectResult:
    game_ended: bool = False
    any_moved: bool = False
    fell_in_hole: bool = False
    won: bool = False


@dataclass
class TurnResult:
    game_ended: bool = False
    won: bool = False
    steps_executed: int = 0
    discarded: List[str] = field(default_factory=list)


def _current_tile(board: Board, robot: Robot) -> Tile:
    tile = board.get_tile(robot.row, robot.col)
    if tile is None:
        raise RuntimeError(f"Robot is off the board at {robot.position}.")
    return tile


def _commit(robot: Robot, result: MoveResult) -> bool:
    if not result.moved:
        return False
    robot.set_position(result.row, result.col)
    return True


def resolve_board_effects(
    board: Board,
    robot: Robot,
    program_step: int,
    notifier: Optional[Notifier] = None,
) -> EffectResult:
    """Apply one round of board effects after the card of ``program_step``.

    Phases run in a fixed order and each one looks at the tile the robot
    occupies *now*: 2x conveyors, all conveyors, push panels, gears, lasers,
    station/checkpoint arrival, holes.
    """

    notifier = notifier or robot.notifier
    any_moved = False
    logger.debug("Resolving board effects for step %d", program_step)

    any_moved |= _commit(robot, _current_tile(board, robot).try_conveyor(board, only_speed_2x=True))
    any_moved |= _commit(robot, _current_tile(board, robot).try_conveyor(board))
    any_moved |= _commit(robot, _current_tile(board, robot).try_pusher(board, program_step))

    turn = _current_tile(board, robot).gear_turn()
    if turn is not None:
        logger.debug("On gear, turning %s", turn)
        robot.turn(turn)

    for emitter, laser in board.laser_emitters():
        position = robot.position
        path = board.trace_laser_path(emitter.row, emitter.col, laser.direction, position)
        if position != emitter.position and position not in path:
            continue
        logger.info(
            "Robot hit by laser from (%d,%d) firing %s",
            emitter.row,
            emitter.col,
            laser.direction.label,
        )
        life_lost = robot.take_damage()
        if robot.is_destroyed:
            logger.info("Robot destroyed by laser")
            notifier.game_over(False)
            return EffectResult(game_ended=True, any_moved=any_moved)
        if life_lost:
            try:
                robot.respawn()
            except NoRespawnAnchor:
                logger.error("Robot lost a life to a laser but has no station to return to")
            else:
                any_moved = True

    tile = _current_tile(board, robot)
    tile.try_repair_station(robot)
    if tile.try_checkpoint(robot, board):
        notifier.game_over(True)
        return EffectResult(game_ended=True, any_moved=any_moved, won=True)

    hole = _current_tile(board, robot).try_hole(robot)
    if hole.destroyed:
        notifier.game_over(False)
        return EffectResult(game_ended=True, any_moved=any_moved, fell_in_hole=True)
    return EffectResult(
        any_moved=any_moved or hole.respawned,
        fell_in_hole=hole.fell_in_hole,
    )


class ProgramExecutor:
    """Runs one full turn: ``PROGRAM_SIZE`` card/pipeline iterations."""

    def __init__(
        self,
        board: Board,
        robot: Robot,
        card_supply: CardSupply,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.board = board
        self.robot = robot
        self.card_supply = card_supply
        self.notifier = notifier or robot.notifier

    def execute_card(self, card: Card) -> bool:
        """Apply a card's action. Returns whether the robot changed cell."""

        robot = self.robot
        if card.type is CardType.TURN_LEFT:
            robot.turn("left")
            return False
        if card.type is CardType.TURN_RIGHT:
            robot.turn("right")
            return False
        if card.type is CardType.U_TURN:
            robot.u_turn()
            return False

        steps = -1 if card.type is CardType.BACK1 else 1
        move_count = 2 if card.type is CardType.MOVE2 else 1
        moved = False
        for move_step in range(move_count):
            target = robot.calculate_move_target(steps, self.board)
            if not target.allowed:
                logger.debug(
                    "Move failed: hit %s", "wall" if target.blocked_by_wall else "boundary"
                )
                break
            logger.debug(
                "Move step %d to (%d, %d)", move_step + 1, target.target_row, target.target_col
            )
            robot.set_position(target.target_row, target.target_col)
            moved = True
        return moved

    def run_program(self) -> TurnResult:
        robot = self.robot
        if robot.is_destroyed:
            raise RuntimeError("Cannot run a program on a destroyed robot.")

        program = robot.program
        robot.clear_program()
        powered_down = robot.is_powered_down
        if powered_down and program:
            logger.info("Robot is powered down, returning %d programmed cards", len(program))
            for card in program:
                self.card_supply.return_to_hand(card.instance_id)
            program = []

        logger.info("Starting program execution")
        used: List[Card] = []
        result = TurnResult()
        for index in range(PROGRAM_SIZE):
            step = index + 1
            card = program[index] if index < len(program) else None
            if card is None:
                logger.debug("Step %d: no card, board effects only", step)
            else:
                logger.debug("Step %d: executing %s", step, card.text)
                used.append(card)
                self.execute_card(card)

            effects = resolve_board_effects(self.board, robot, step, self.notifier)
            result.steps_executed = step
            if effects.game_ended:
                result.game_ended = True
                result.won = effects.won
                logger.info("Game ended during board effects of step %d", step)
                break

        result.discarded = [card.instance_id for card in used]
        self.card_supply.discard(result.discarded)
        robot.end_of_turn_cleanup()
        self.notifier.program_execution_finished()
        if not result.game_ended:
            logger.info("Program finished")
            self.card_supply.replenish_hand()
        return result


Chooser = Callable[[Sequence[Card]], Iterable[str]]


def first_cards(hand: Sequence[Card]) -> List[str]:
    return [card.instance_id for card in hand[:PROGRAM_SIZE]]


class RoboFactoryGame:
    """High level session manager tying a level to a robot and a deck."""

    def __init__(
        self,
        level: Level,
        settings: Optional[GameSettings] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.level = level
        self.board = level.board
        self.settings = settings or GameSettings()
        self.recorder = RecordingNotifier()
        self.notifier = FanoutNotifier([self.recorder])
        if notifier is not None:
            self.notifier.add(notifier)
        self.reset()

    def reset(self) -> None:
        self.recorder.clear()
        self.robot = Robot(
            self.level.start_row,
            self.level.start_col,
            self.level.start_orientation,
            notifier=self.notifier,
            max_health=self.settings.max_health,
            lives=self.settings.starting_lives,
        )
        self.cards = CardSupply(
            seed=self.settings.seed,
            hand_size=self.settings.hand_size,
            notifier=self.notifier,
        )
        self.executor = ProgramExecutor(self.board, self.robot, self.cards, self.notifier)
        self.turns = 0
        self.is_over = False
        self.won = False
        self.history: List[TurnResult] = []

    def deal(self) -> List[Card]:
        return self.cards.init()

    @property
    def hand(self) -> List[Card]:
        return self.cards.hand

    def program(self, instance_ids: Iterable[str]) -> List[Card]:
        """Move the chosen hand cards into the robot's program slots."""

        ids = list(instance_ids)
        if self.is_over:
            raise RuntimeError("The game is over.")
        if self.robot.is_powered_down:
            raise RuntimeError("A powered down robot cannot be programmed.")
        if len(ids) > PROGRAM_SIZE:
            raise ValueError(f"A program holds at most {PROGRAM_SIZE} cards, got {len(ids)}.")
        for card in self.robot.program:
            self.cards.return_to_hand(card.instance_id)
        self.robot.clear_program()
        cards = self.cards.take_from_hand(ids)
        self.robot.set_program(cards)
        return cards

    def request_power_down(self) -> bool:
        return self.robot.request_power_down()

    def run_turn(self) -> TurnResult:
        if self.is_over:
            raise RuntimeError("The game is over.")
        result = self.executor.run_program()
        self.turns += 1
        self.history.append(result)
        if result.game_ended:
            self.is_over = True
            self.won = result.won
        return result

    def play(self, turns: int, chooser: Chooser = first_cards) -> Dict[str, object]:
        """Deal and run up to ``turns`` turns, programming via ``chooser``."""

        if not self.cards.hand_size and not self.cards.deck_size:
            self.deal()
        for _ in range(turns):
            if self.is_over:
                break
            if not self.robot.is_powered_down:
                self.program(chooser(self.hand))
            self.run_turn()
        return self.summary()

    def summary(self) -> Dict[str, object]:
        return {
            "metadata": self.level.metadata,
            "robot": self.robot.snapshot(),
            "turns": self.turns,
            "game_over": self.is_over,
            "won": self.won,
            "events": [
                {"event": name, **payload} for name, payload in self.recorder.events
            ],
        }
