# getdead/geometry.py
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, FrozenSet, Tuple

MARGIN = 20


@dataclass(frozen=True)
class Board:
    """Fixed rectangular play area in logical units"""
    width: float = 800
    height: float = 600

    def to_dict(self):
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def to_dict(self):
        return {"x": round(self.x, 2), "y": round(self.y, 2)}


ORIGIN = Position(0.0, 0.0)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def vector(self) -> Tuple[int, int]:
        return _VECTORS[self]


_VECTORS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

# Canonical application order for multi-direction moves
DIRECTION_ORDER = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


def parse_directions(names: Iterable) -> FrozenSet[Direction]:
    """Normalize untrusted direction names, silently dropping unknown ones"""
    result = set()
    for name in names or ():
        if not isinstance(name, str):
            continue
        try:
            result.add(Direction(name.strip().lower()))
        except ValueError:
            continue
    return frozenset(result)


def distance(a: Position, b: Position) -> float:
    """Euclidean distance between two points"""
    return math.sqrt((b.x - a.x) ** 2 + (b.y - a.y) ** 2)


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def clamp_to_board(pos: Position, board: Board, margin: float = MARGIN) -> Position:
    """Clamp each axis into [margin, extent - margin]"""
    return Position(
        clamp(pos.x, margin, board.width - margin),
        clamp(pos.y, margin, board.height - margin),
    )


def circles_overlap(p1: Position, r1: float, p2: Position, r2: float) -> bool:
    return distance(p1, p2) < r1 + r2
