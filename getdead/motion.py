# getdead/motion.py
from typing import Iterable, Optional, Sequence

from .geometry import DIRECTION_ORDER, MARGIN, Board, Direction, Position, clamp, clamp_to_board
from .obstacles import Obstacle, hits_obstacle

BASE_SPEED = 5
# Applied per axis whenever more than one direction is held, even 3 or 4 of them
DIAGONAL_FACTOR = 0.70710678


def resolve_move(position: Position, directions: Iterable[Direction], board: Board,
                 obstacles: Sequence[Obstacle], speed: float = BASE_SPEED) -> Optional[Position]:
    """Resolve a held-direction move into a new position.

    Returns None when the move is rejected: nothing was requested, or the
    clamped destination overlaps an obstacle. There is no sliding.
    """
    held = set(directions)
    if not held:
        return None
    step = speed if len(held) == 1 else speed * DIAGONAL_FACTOR

    x, y = position.x, position.y
    for direction in DIRECTION_ORDER:
        if direction not in held:
            continue
        dx, dy = direction.vector
        x = clamp(x + dx * step, MARGIN, board.width - MARGIN)
        y = clamp(y + dy * step, MARGIN, board.height - MARGIN)

    candidate = clamp_to_board(Position(x, y), board)
    if hits_obstacle(candidate, obstacles):
        return None
    return candidate


def resolve_step(position: Position, dx: float, dy: float, board: Board,
                 obstacles: Sequence[Obstacle]) -> Optional[Position]:
    """Same contract as resolve_move for a free displacement vector"""
    candidate = clamp_to_board(Position(position.x + dx, position.y + dy), board)
    if hits_obstacle(candidate, obstacles):
        return None
    return candidate
