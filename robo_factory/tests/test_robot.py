import pytest

from robo_factory.errors import NoRespawnAnchor
from robo_factory.events import RecordingNotifier
from robo_factory.robot import Robot, RobotStatus
from robo_factory.tiles import Direction


def make_robot(**kwargs):
    recorder = RecordingNotifier()
    robot = Robot(1, 1, Direction.EAST, notifier=recorder, **kwargs)
    return robot, recorder


def test_turns_emit_notifications():
    robot, recorder = make_robot()

    assert robot.turn("left") is Direction.NORTH
    assert robot.turn("right") is Direction.EAST
    assert robot.u_turn() is Direction.WEST
    assert recorder.names() == ["robot_turned"] * 3
    assert recorder.of("robot_turned")[-1] == {"row": 1, "col": 1, "orientation": "west"}


def test_invalid_turn_direction_raises():
    robot, recorder = make_robot()

    with pytest.raises(ValueError):
        robot.turn("sideways")
    assert robot.orientation is Direction.EAST
    assert recorder.events == []


def test_set_position_only_notifies_on_change():
    robot, recorder = make_robot()

    robot.set_position(1, 1)
    robot.set_position(2, 1)

    assert robot.position == (2, 1)
    assert recorder.of("robot_moved") == [{"row": 2, "col": 1, "orientation": "east"}]


def test_damage_to_zero_costs_a_life_and_restores_health():
    robot, recorder = make_robot(max_health=2, lives=3)

    assert robot.take_damage() is False
    assert robot.take_damage() is True

    assert robot.lives == 2
    assert robot.health == 2
    assert recorder.names() == [
        "health_changed",
        "health_changed",
        "lives_changed",
        "health_changed",
    ]


def test_last_life_destroys_robot():
    robot, recorder = make_robot(max_health=1, lives=1)

    robot.take_damage()

    assert robot.is_destroyed
    assert robot.status is RobotStatus.DESTROYED
    assert recorder.of("lives_changed") == [{"lives": 0}]
    with pytest.raises(RuntimeError):
        robot.take_damage()


def test_heal_is_silent_at_full_health():
    robot, recorder = make_robot()

    robot.heal()
    assert recorder.events == []

    robot.take_damage()
    robot.heal()
    assert robot.health == robot.max_health
    assert len(recorder.of("health_changed")) == 2


def test_respawn_needs_anchor():
    robot, _ = make_robot()

    with pytest.raises(NoRespawnAnchor):
        robot.respawn()

    robot.set_last_visited_station((0, 3))
    robot.respawn()
    assert robot.position == (0, 3)


def test_checkpoints_only_count_in_sequence():
    robot, recorder = make_robot()

    assert not robot.visit_flag((0, 0), 2)
    assert robot.visit_flag((0, 1), 1)
    assert not robot.visit_flag((0, 1), 1)
    assert robot.visit_flag((0, 0), 2)

    assert robot.highest_visited_checkpoint_order == 2
    assert recorder.of("flag_visited") == [
        {"flag_key": (0, 1), "highest_order": 1},
        {"flag_key": (0, 0), "highest_order": 2},
    ]


def test_power_down_cycle():
    robot, recorder = make_robot()

    robot.end_of_turn_cleanup()
    assert robot.status is RobotStatus.ACTIVE
    assert recorder.events == []

    robot.request_power_down()
    assert robot.power_down_intent
    robot.end_of_turn_cleanup()
    assert robot.is_powered_down
    assert not robot.power_down_intent

    robot.end_of_turn_cleanup()
    assert robot.status is RobotStatus.ACTIVE
    assert recorder.of("power_state_changed") == [
        {"status": "powered_down"},
        {"status": "active"},
    ]


def test_program_holds_at_most_five_cards():
    robot, _ = make_robot()

    with pytest.raises(ValueError):
        robot.set_program([object()] * 6)


def test_snapshot_reports_state():
    robot, _ = make_robot(max_health=4)
    robot.set_last_visited_station((2, 2))

    snapshot = robot.snapshot()

    assert snapshot["row"] == 1
    assert snapshot["orientation"] == "east"
    assert snapshot["max_health"] == 4
    assert snapshot["last_visited_station"] == [2, 2]
    assert snapshot["status"] == "active"


def test_power_down_request_refused_while_powered_down():
    robot, recorder = make_robot()
    assert robot.request_power_down()
    robot.end_of_turn_cleanup()

    assert not robot.request_power_down()
    assert not robot.power_down_intent
    robot.end_of_turn_cleanup()

    assert robot.status is RobotStatus.ACTIVE
    assert [event["status"] for event in recorder.of("power_state_changed")] == [
        "powered_down",
        "active",
    ]
