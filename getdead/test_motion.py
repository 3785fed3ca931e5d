import math
import random

import pytest

from getdead.geometry import (
    Board,
    Direction,
    Position,
    circles_overlap,
    clamp_to_board,
    distance,
    parse_directions,
)
from getdead.motion import DIAGONAL_FACTOR, resolve_move, resolve_step
from getdead.obstacles import Obstacle

BOARD = Board(800, 600)
UP, DOWN, LEFT, RIGHT = Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT


def test_geometry_helpers():
    assert distance(Position(0, 0), Position(3, 4)) == 5
    assert clamp_to_board(Position(-5, 900), BOARD) == Position(20, 580)
    assert clamp_to_board(Position(400, 300), BOARD) == Position(400, 300)
    assert circles_overlap(Position(0, 0), 15, Position(29, 0), 15)
    assert not circles_overlap(Position(0, 0), 15, Position(30, 0), 15)


def test_parse_directions_drops_unknown_names():
    assert parse_directions(["Up", " left ", "sideways", 7, None]) == {UP, LEFT}
    assert parse_directions(None) == frozenset()


@pytest.mark.parametrize("direction, expected", [
    (UP, (400, 295)),
    (DOWN, (400, 305)),
    (LEFT, (395, 300)),
    (RIGHT, (405, 300)),
])
def test_single_direction_moves_full_speed(direction, expected):
    assert resolve_move(Position(400, 300), {direction}, BOARD, []) == Position(*expected)


def test_two_directions_use_diagonal_speed():
    moved = resolve_move(Position(400, 300), {UP, RIGHT}, BOARD, [])
    assert moved.x == pytest.approx(400 + 5 * DIAGONAL_FACTOR)
    assert moved.y == pytest.approx(300 - 5 * DIAGONAL_FACTOR)


def test_three_directions_are_not_renormalized():
    moved = resolve_move(Position(400, 300), {UP, DOWN, LEFT}, BOARD, [])
    assert moved.y == pytest.approx(300)
    assert moved.x == pytest.approx(400 - 5 * DIAGONAL_FACTOR)


def test_all_four_directions_cancel():
    moved = resolve_move(Position(400, 300), {UP, DOWN, LEFT, RIGHT}, BOARD, [])
    assert moved.x == pytest.approx(400)
    assert moved.y == pytest.approx(300)


def test_empty_direction_set_is_rejected():
    assert resolve_move(Position(400, 300), set(), BOARD, []) is None


def test_moves_clamp_to_margin():
    assert resolve_move(Position(22, 300), {LEFT}, BOARD, []) == Position(20, 300)
    assert resolve_move(Position(778, 578), {RIGHT, DOWN}, BOARD, []) == Position(780, 580)


def test_random_walk_stays_in_bounds():
    rng = random.Random(3)
    pos = Position(400, 300)
    options = [UP, DOWN, LEFT, RIGHT]
    for _ in range(2000):
        held = set(rng.sample(options, rng.randint(1, 2)))
        pos = resolve_move(pos, held, BOARD, []) or pos
        assert 20 <= pos.x <= 780
        assert 20 <= pos.y <= 580


def test_obstacle_overlap_rejects_whole_move():
    obstacles = [Obstacle(Position(400, 265), "🌳")]
    # (400, 295) would sit 30 units from the obstacle centre
    assert resolve_move(Position(400, 300), {UP}, BOARD, obstacles) is None
    # Sideways is still fine: no sliding, but no false positives either
    assert resolve_move(Position(400, 300), {LEFT}, BOARD, obstacles) == Position(395, 300)


def test_separation_of_exactly_35_is_not_blocked():
    obstacles = [Obstacle(Position(440, 300), "📦")]
    assert resolve_move(Position(400, 300), {RIGHT}, BOARD, obstacles) == Position(405, 300)


def test_resolve_step_shares_the_contract():
    assert resolve_step(Position(400, 300), 3, -4, BOARD, []) == Position(403, 296)
    assert resolve_step(Position(25, 300), -10, 0, BOARD, []) == Position(20, 300)
    blocked = [Obstacle(Position(420, 300), "🗿")]
    assert resolve_step(Position(400, 300), 5, 0, BOARD, blocked) is None
    assert math.isclose(
        distance(Position(400, 300), resolve_step(Position(400, 300), 3, 4, BOARD, [])), 5)
