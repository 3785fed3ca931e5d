# getdead/obstacles.py
import random
from dataclasses import dataclass
from typing import List, Sequence

from .geometry import (
    DIRECTION_ORDER,
    MARGIN,
    Board,
    Position,
    circles_overlap,
    clamp_to_board,
    distance,
)

OBSTACLE_RADIUS = 20
ENTITY_RADIUS = 15
OBSTACLE_GLYPHS = ["🪨", "🌳", "🏠", "🚗", "📦", "🪑", "🗿", "🛡️"]

DEFAULT_COUNT = 10
MAX_ATTEMPTS = 100
PLAYER_CLEARANCE = 100
CORRIDOR_HALF_WIDTH = 40
CORRIDOR_REACH = 100
CORRIDOR_INSET = 100
UNBLOCK_RADIUS = 80
PROBE_SPEED = 5


@dataclass(frozen=True)
class Obstacle:
    position: Position
    glyph: str

    def to_dict(self):
        return {"x": round(self.position.x, 2), "y": round(self.position.y, 2), "glyph": self.glyph}


def hits_obstacle(pos: Position, obstacles: Sequence[Obstacle]) -> bool:
    """True if an entity centred at pos would overlap any obstacle"""
    for obstacle in obstacles:
        if circles_overlap(pos, ENTITY_RADIUS, obstacle.position, OBSTACLE_RADIUS):
            return True
    return False


def _too_close_to_entities(x: float, y: float, positions: Sequence[Position]) -> bool:
    candidate = Position(x, y)
    return any(distance(p, candidate) < PLAYER_CLEARANCE for p in positions)


def _blocks_corridor(x: float, y: float, board: Board, positions: Sequence[Position]) -> bool:
    """Check the three reserved lanes: left, right and the centre band.
    Each lane only counts for entities whose y is within reach of the candidate.
    """
    left_lane = CORRIDOR_INSET
    right_lane = board.width - CORRIDOR_INSET
    centre_y = board.height / 2
    for p in positions:
        if abs(y - p.y) >= CORRIDOR_REACH:
            continue
        if p.x < board.width / 4 and abs(x - left_lane) < CORRIDOR_HALF_WIDTH:
            return True
        if p.x > board.width * 3 / 4 and abs(x - right_lane) < CORRIDOR_HALF_WIDTH:
            return True
        if board.width * 3 / 8 < x < board.width * 5 / 8 and abs(y - centre_y) < CORRIDOR_HALF_WIDTH:
            return True
    return False


def generate_obstacles(board: Board, positions: Sequence[Position], count: int = DEFAULT_COUNT,
                       rng=random) -> List[Obstacle]:
    """Scatter up to `count` obstacles around the given entity positions.

    Each obstacle gets MAX_ATTEMPTS tries; one that never finds a legal spot is
    dropped, so the result may be shorter than `count`. The path-guarantee pass
    runs before returning.
    """
    obstacles = []
    for _ in range(count):
        for _attempt in range(MAX_ATTEMPTS):
            x = rng.uniform(MARGIN, board.width - MARGIN)
            y = rng.uniform(MARGIN, board.height - MARGIN)
            if _too_close_to_entities(x, y, positions):
                continue
            if _blocks_corridor(x, y, board, positions):
                continue
            obstacles.append(Obstacle(Position(x, y), rng.choice(OBSTACLE_GLYPHS)))
            break
    return ensure_movement_paths(board, positions, obstacles)


def _has_clear_direction(pos: Position, board: Board, obstacles: Sequence[Obstacle]) -> bool:
    for direction in DIRECTION_ORDER:
        dx, dy = direction.vector
        probe = clamp_to_board(Position(pos.x + dx * PROBE_SPEED, pos.y + dy * PROBE_SPEED), board)
        if not hits_obstacle(probe, obstacles):
            return True
    return False


def ensure_movement_paths(board: Board, positions: Sequence[Position],
                          obstacles: Sequence[Obstacle]) -> List[Obstacle]:
    """Clear obstacles around any entity that cannot take a single step"""
    remaining = list(obstacles)
    for pos in positions:
        if _has_clear_direction(pos, board, remaining):
            continue
        print(f"[OBST] entity at ({pos.x:.0f}, {pos.y:.0f}) is boxed in, clearing nearby obstacles")
        remaining = [o for o in remaining if distance(pos, o.position) > UNBLOCK_RADIUS]
    return remaining
