import pytest

from robo_factory.board import Board, BoardLoader, layout_to_definition
from robo_factory.cards import CardSupply, CardType
from robo_factory.config import GameSettings
from robo_factory.engine import ProgramExecutor, RoboFactoryGame
from robo_factory.events import RecordingNotifier
from robo_factory.robot import Robot, RobotStatus
from robo_factory.tiles import Direction


def deck(*types, copies=4):
    return [{"type": card_type, "text": card_type} for card_type in types for _ in range(copies)]


def setup_executor(layout, cards, *, walls=(), wall_devices=(), row=0, col=0, **robot_kwargs):
    board = Board.from_definition(
        layout_to_definition(layout, walls=walls, wall_devices=wall_devices)
    )
    recorder = RecordingNotifier()
    robot = Robot(row, col, Direction.EAST, notifier=recorder, **robot_kwargs)
    supply = CardSupply(seed=7, deck_definition=cards, notifier=recorder)
    supply.init()
    return ProgramExecutor(board, robot, supply, recorder), recorder


def program(executor, *types):
    """Take the first hand card of each requested type and program the robot."""

    chosen = []
    for card_type in types:
        card = next(
            card
            for card in executor.card_supply.hand
            if card.type is CardType(card_type) and card.instance_id not in chosen
        )
        chosen.append(card.instance_id)
    cards = executor.card_supply.take_from_hand(chosen)
    executor.robot.set_program(cards)
    return cards


def test_move_two_stops_when_first_step_blocked():
    executor, _ = setup_executor(
        ["...."], deck("move2"), walls=[{"position": [0, 0], "sides": ["east"]}]
    )
    card = executor.card_supply.hand[0]

    assert executor.execute_card(card) is False
    assert executor.robot.position == (0, 0)


def test_move_two_stops_at_second_wall():
    executor, _ = setup_executor(
        ["...."], deck("move2"), walls=[{"position": [0, 2], "sides": ["west"]}]
    )

    assert executor.execute_card(executor.card_supply.hand[0]) is True
    assert executor.robot.position == (0, 1)


def test_back_up_keeps_orientation():
    executor, _ = setup_executor(["...."], deck("back1"), col=2)

    executor.execute_card(executor.card_supply.hand[0])

    assert executor.robot.position == (0, 1)
    assert executor.robot.orientation is Direction.EAST


def test_turn_cards():
    executor, _ = setup_executor(["...."], deck("turnL", "turnR", "uturn", copies=1))
    robot = executor.robot
    by_type = {card.type: card for card in executor.card_supply.hand}

    executor.execute_card(by_type[CardType.TURN_LEFT])
    assert robot.orientation is Direction.NORTH
    executor.execute_card(by_type[CardType.U_TURN])
    assert robot.orientation is Direction.SOUTH
    executor.execute_card(by_type[CardType.TURN_RIGHT])
    assert robot.orientation is Direction.WEST


def test_pipeline_runs_five_times_without_cards():
    executor, _ = setup_executor(
        ["...."],
        deck("turnR"),
        walls=[{"position": [0, 0], "sides": ["west"]}],
        wall_devices=[{"position": [0, 0], "type": "laser", "direction": "east"}],
        col=3,
    )

    result = executor.run_program()

    assert result.steps_executed == 5
    assert executor.robot.health == executor.robot.max_health - 5


def test_program_cards_run_in_order():
    # Seven cards, so the opening hand is the whole deck.
    cards = deck("move1", copies=2) + deck("turnR", "turnL", copies=1) + deck("uturn", copies=3)
    executor, recorder = setup_executor(["....."], cards)
    programmed = program(executor, "move1", "turnR", "turnL", "move1")

    result = executor.run_program()

    assert executor.robot.position == (0, 2)
    assert executor.robot.orientation is Direction.EAST
    assert result.discarded == [card.instance_id for card in programmed]
    assert executor.robot.program == []
    assert recorder.names().count("program_execution_finished") == 1


def test_used_cards_discarded_and_hand_replenished():
    executor, _ = setup_executor(["...."], deck("turnR", copies=20))
    program(executor, "turnR", "turnR", "turnR", "turnR")

    executor.run_program()

    supply = executor.card_supply
    assert supply.discard_size == 4
    assert supply.hand_size == supply.hand_limit
    assert supply.deck_size == 20 - 7 - 4


def test_game_end_stops_remaining_steps():
    executor, recorder = setup_executor([".1.."], deck("move1", copies=8))
    program(executor, "move1", "move1", "move1")

    result = executor.run_program()

    assert result.game_ended
    assert result.won
    assert result.steps_executed == 1
    assert executor.robot.position == (0, 1)
    assert len(result.discarded) == 1
    assert executor.card_supply.hand_size == executor.card_supply.hand_limit - 3
    assert recorder.names()[-1] == "program_execution_finished"


def test_powered_down_robot_skips_cards_but_not_board():
    executor, recorder = setup_executor([">...."], deck("move1", copies=8))
    robot = executor.robot
    robot.request_power_down()

    executor.run_program()
    assert robot.is_powered_down
    assert robot.position == (0, 1)

    program(executor, "move1", "move1")
    hand_before = executor.card_supply.hand_size
    executor.run_program()

    assert robot.position == (0, 1)
    assert executor.card_supply.hand_size == hand_before + 2
    assert executor.card_supply.discard_size == 0
    assert robot.status is RobotStatus.ACTIVE
    assert recorder.of("power_state_changed") == [
        {"status": "powered_down"},
        {"status": "active"},
    ]


def test_power_state_changes_before_finish_notification():
    executor, recorder = setup_executor(["...."], deck("turnR"))
    executor.robot.request_power_down()
    recorder.clear()

    executor.run_program()

    names = [name for name in recorder.names() if not name.startswith(("hand", "card"))]
    assert names[-2:] == ["power_state_changed", "program_execution_finished"]


def test_destroyed_robot_cannot_run():
    executor, _ = setup_executor(["...."], deck("turnR"), max_health=1, lives=1)
    executor.robot.take_damage()

    with pytest.raises(RuntimeError):
        executor.run_program()


# ----------------------------------------------------------------------
# Game session


def make_game(layout, **settings):
    level = BoardLoader.parse_level(
        {"name": "Test", "difficulty": "Easy", "layout": layout, "start": {"row": 0, "col": 0}}
    )
    return RoboFactoryGame(level, GameSettings(**settings))


def test_game_program_limits():
    game = make_game(["......"], seed=1)
    game.deal()
    ids = [card.instance_id for card in game.hand]

    with pytest.raises(ValueError):
        game.program(ids[:6])
    with pytest.raises(KeyError):
        game.program(["card-instance-999"])

    game.program(ids[:2])
    assert len(game.hand) == 5
    game.program(ids[2:5])
    assert len(game.hand) == 4
    assert [card.instance_id for card in game.robot.program] == ids[2:5]


def test_powered_down_game_rejects_programming():
    game = make_game(["......"], seed=1)
    game.deal()
    game.request_power_down()
    game.run_turn()

    with pytest.raises(RuntimeError):
        game.program([game.hand[0].instance_id])


def test_play_until_win():
    game = make_game(["}}1"], seed=3)

    summary = game.play(5, chooser=lambda hand: [])

    assert summary["game_over"]
    assert summary["won"]
    assert summary["turns"] == 1
    assert summary["robot"]["highest_checkpoint"] == 1
    assert {"event": "game_over", "won": True} in summary["events"]
    with pytest.raises(RuntimeError):
        game.run_turn()


def test_reset_restores_start():
    game = make_game(["}}1"], seed=3)
    game.play(1, chooser=lambda hand: [])

    game.reset()

    assert not game.is_over
    assert game.turns == 0
    assert game.robot.position == (0, 0)
    assert game.recorder.events == []
