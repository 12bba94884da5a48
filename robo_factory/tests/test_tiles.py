import pytest

from robo_factory.board import Board, layout_to_definition
from robo_factory.errors import BoardDefinitionError
from robo_factory.tiles import (
    Checkpoint,
    Conveyor,
    Direction,
    Gear,
    Laser,
    NO_MOVE,
    Pusher,
    Rotation,
    Tile,
    coerce_side,
)


def test_direction_turns_and_reverse():
    assert Direction.NORTH.turn_right() is Direction.EAST
    assert Direction.NORTH.turn_left() is Direction.WEST
    assert Direction.EAST.reverse() is Direction.WEST
    assert Direction.from_name("South") is Direction.SOUTH
    with pytest.raises(ValueError):
        Direction.from_name("up")


def test_coerce_side_rejects_unknown_sides():
    assert coerce_side("north") is Direction.NORTH
    with pytest.raises(ValueError, match="Invalid wall side"):
        coerce_side("up")
    with pytest.raises(ValueError):
        coerce_side(3)


def test_tile_normalises_wall_names():
    tile = Tile(0, 0, walls=frozenset({"north", Direction.EAST}))

    assert tile.walls == {Direction.NORTH, Direction.EAST}
    assert tile.has_wall("east")
    assert not tile.has_wall(Direction.SOUTH)


def test_tile_rejects_bad_wall_side():
    with pytest.raises(BoardDefinitionError):
        Tile(0, 0, walls=frozenset({"diagonal"}))


def test_laser_needs_wall_on_opposite_side():
    with pytest.raises(BoardDefinitionError, match="west wall"):
        Tile(2, 3, wall_devices=(Laser(Direction.EAST),))

    tile = Tile(2, 3, walls=frozenset({"west"}), wall_devices=(Laser(Direction.EAST),))
    assert tile.lasers() == (Laser(Direction.EAST),)
    assert tile.pusher() is None


@pytest.mark.parametrize("steps", [(), (0,), (6,), (1, 7)])
def test_pusher_steps_validated(steps):
    with pytest.raises(BoardDefinitionError):
        Pusher(Direction.EAST, frozenset(steps))


def test_pusher_active_steps():
    pusher = Pusher(Direction.EAST, frozenset({2, 4}))

    assert pusher.active_on(2)
    assert not pusher.active_on(3)


@pytest.mark.parametrize("speed", [0, 3, True])
def test_conveyor_speed_validated(speed):
    with pytest.raises(BoardDefinitionError):
        Conveyor(Direction.NORTH, speed)


@pytest.mark.parametrize("order", [0, -1, "2", None])
def test_checkpoint_order_validated(order):
    with pytest.raises(BoardDefinitionError):
        Checkpoint(order)


def test_gear_turn_direction():
    assert Tile(0, 0, floor_device=Gear(Rotation.CW)).gear_turn() == "right"
    assert Tile(0, 0, floor_device=Gear(Rotation.CCW)).gear_turn() == "left"
    assert Tile(0, 0).gear_turn() is None


def test_try_conveyor_reports_without_moving():
    board = Board.from_definition(layout_to_definition(["R>}."]))

    slow = board.get_tile(0, 1)
    fast = board.get_tile(0, 2)

    assert slow.try_conveyor(board, only_speed_2x=True) is NO_MOVE
    result = slow.try_conveyor(board)
    assert (result.moved, result.row, result.col) == (True, 0, 2)
    assert fast.try_conveyor(board, only_speed_2x=True).col == 3


def test_conveyor_into_wall_does_not_move():
    board = Board.from_definition(
        layout_to_definition(["R>."], walls=[{"position": [0, 2], "sides": ["west"]}])
    )

    assert board.get_tile(0, 1).try_conveyor(board) is NO_MOVE


def test_conveyor_off_the_edge_does_not_move():
    board = Board.from_definition(layout_to_definition(["R>"]))

    assert board.get_tile(0, 1).try_conveyor(board) is NO_MOVE


def test_tile_keeps_every_laser():
    tile = Tile(
        1,
        1,
        walls=frozenset({"west", "north"}),
        wall_devices=(Laser(Direction.EAST), Laser(Direction.SOUTH)),
    )

    assert tile.lasers() == (Laser(Direction.EAST), Laser(Direction.SOUTH))


def test_second_push_panel_rejected():
    with pytest.raises(BoardDefinitionError, match="more than one push panel"):
        Tile(
            0,
            0,
            walls=frozenset({"west", "north"}),
            wall_devices=(
                Pusher(Direction.EAST, frozenset({1})),
                Pusher(Direction.SOUTH, frozenset({2})),
            ),
        )
