# getdead/bot.py
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .geometry import DIRECTION_ORDER, ORIGIN, Board, Position, distance
from .game_room import Role
from .motion import BASE_SPEED

Vector = Tuple[float, float]


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    NIGHTMARE = "nightmare"


@dataclass(frozen=True)
class DifficultyProfile:
    speed_multiplier: float
    reaction_ms: float
    # Not consulted by any behaviour yet; kept so tiers can be tuned later
    pathfinding_accuracy: float


SPEED_MULTIPLIERS = {
    Difficulty.EASY: {Role.CHASER: 1.1, Role.CHASED: 1.15},
    Difficulty.MEDIUM: {Role.CHASER: 1.12, Role.CHASED: 1.17},
    Difficulty.HARD: {Role.CHASER: 1.2, Role.CHASED: 1.15},
    Difficulty.NIGHTMARE: {Role.CHASER: 3.0, Role.CHASED: 2.5},
}

REACTION_MS = {
    Difficulty.EASY: 100,
    Difficulty.MEDIUM: 50,
    Difficulty.HARD: 10,
    Difficulty.NIGHTMARE: 16,
}

PATHFINDING_ACCURACY = {
    Difficulty.EASY: 0.7,
    Difficulty.MEDIUM: 0.85,
    Difficulty.HARD: 0.95,
    Difficulty.NIGHTMARE: 1.0,
}


def profile_for(difficulty: Difficulty, role: Role) -> DifficultyProfile:
    difficulty = Difficulty(difficulty)
    return DifficultyProfile(
        speed_multiplier=SPEED_MULTIPLIERS[difficulty][Role(role)],
        reaction_ms=REACTION_MS[difficulty],
        pathfinding_accuracy=PATHFINDING_ACCURACY[difficulty],
    )


class BotState(str, Enum):
    IDLE = "idle"
    PURSUE = "pursue"
    FLEE = "flee"
    CORNER_ESCAPE = "corner_escape"
    EXPLORE_MOMENTUM = "explore_momentum"
    EXPLORE_TARGET = "explore_target"
    EXPLORE_RANDOM = "explore_random"


class BotController:
    """Scripted opponent for solo rounds.

    Holds all of its own scratch state (targets, momentum, stuck and escape
    counters). `update` only proposes a step vector; the room resolves it
    through the same motion rules as a human move.
    """

    CATCH_SLACK = 5
    FLEE_RADIUS = 150
    CORNER_ZONE = 60
    CORNER_ESCAPE_TICKS = 30
    CORNER_ESCAPE_MOMENTUM = 10
    STUCK_DISTANCE = 2
    STUCK_RESET = 10
    STUCK_MOMENTUM_LIMIT = 5
    TARGET_REACHED = 20
    TARGET_MIN_DISTANCE = 50
    TARGET_MIN_SCORE = -1
    SELF_DISTANCE_WEIGHT = 0.2
    PERSISTENCE_RANGE = (30, 50)
    MOMENTUM_RANGE = (5, 15)

    def __init__(self, difficulty: Difficulty, role: Role, board: Optional[Board] = None, rng=None):
        self.difficulty = Difficulty(difficulty)
        self.role = Role(role)
        self.board = board or Board()
        self.profile = profile_for(self.difficulty, self.role)
        self.speed = BASE_SPEED * self.profile.speed_multiplier
        self.rng = rng or random.Random()

        self.state = BotState.IDLE
        self.last_move_time = 0.0
        self.target: Optional[Position] = None
        self.target_persistence = 0.0
        self._fresh_target = False
        self.momentum: Optional[Vector] = None
        self.momentum_ticks = 0.0
        self.stuck_count = 0
        self.last_position = ORIGIN
        self.escaping = False
        self.escape_ticks = 0

        # Priority order for the chased role; first matching rule wins.
        self._chased_rules = (
            (BotState.CORNER_ESCAPE, self._is_escaping),
            (BotState.FLEE, self._opponent_close),
            (BotState.EXPLORE_MOMENTUM, self._has_momentum),
            (BotState.EXPLORE_TARGET, self._target_still_valid),
        )
        self._handlers = {
            BotState.PURSUE: self._pursue,
            BotState.FLEE: self._flee,
            BotState.CORNER_ESCAPE: self._corner_escape,
            BotState.EXPLORE_MOMENTUM: self._follow_momentum,
            BotState.EXPLORE_TARGET: self._follow_target,
            BotState.EXPLORE_RANDOM: self._random_step,
        }

    # -- public ---------------------------------------------------------

    def ready(self, now_ms: float) -> bool:
        return now_ms - self.last_move_time >= self.profile.reaction_ms

    def update(self, position: Position, opponent: Position, now_ms: Optional[float] = None) -> Optional[Vector]:
        """Reconsider behaviour if the reaction interval has elapsed.

        Returns the proposed (dx, dy) step, or None when throttled or idle.
        """
        if now_ms is None:
            now_ms = time.monotonic() * 1000
        if not self.ready(now_ms):
            return None
        self.last_move_time = now_ms

        if self.role is Role.CHASER:
            self.state = BotState.PURSUE
        else:
            self.state = self._select_chased_state(position, opponent)
        return self._handlers[self.state](position, opponent)

    # -- state selection ------------------------------------------------

    def _select_chased_state(self, position: Position, opponent: Position) -> BotState:
        self._sample_stuck(position)
        if self.in_corner(position) and not self.escaping:
            self.escaping = True
            self.escape_ticks = self.CORNER_ESCAPE_TICKS
            self.target = None
            self.target_persistence = 0

        if not self.escaping and not self._opponent_close(position, opponent) and self.stuck_count > self.STUCK_RESET:
            self._clear_exploration()
            self.stuck_count = 0

        for state, applies in self._chased_rules:
            if applies(position, opponent):
                return state

        self._pick_target(position, opponent)
        return BotState.EXPLORE_TARGET if self.target is not None else BotState.EXPLORE_RANDOM

    def _sample_stuck(self, position: Position):
        if distance(position, self.last_position) < self.STUCK_DISTANCE:
            self.stuck_count += 1
        else:
            self.stuck_count = 0
        self.last_position = position

    def in_corner(self, position: Position) -> bool:
        zone = self.CORNER_ZONE
        near_x = position.x < zone or position.x > self.board.width - zone
        near_y = position.y < zone or position.y > self.board.height - zone
        return near_x and near_y

    def _is_escaping(self, position, opponent) -> bool:
        return self.escaping

    def _opponent_close(self, position, opponent) -> bool:
        return distance(position, opponent) < self.FLEE_RADIUS

    def _has_momentum(self, position, opponent) -> bool:
        return self.momentum is not None and self.momentum_ticks > 0 and self.stuck_count < self.STUCK_MOMENTUM_LIMIT

    def _target_still_valid(self, position, opponent) -> bool:
        return (
            self.target is not None
            and self.target_persistence > 0
            and distance(position, self.target) > self.TARGET_REACHED
        )

    # -- behaviours -----------------------------------------------------

    def _pursue(self, position: Position, opponent: Position) -> Optional[Vector]:
        dist = distance(position, opponent)
        if dist < self.CATCH_SLACK:
            return None
        return self._scaled((opponent.x - position.x) / dist, (opponent.y - position.y) / dist)

    def _flee(self, position: Position, opponent: Position) -> Optional[Vector]:
        self._clear_exploration()
        dist = distance(position, opponent)
        if dist == 0:
            return self._random_step(position, opponent)
        return self._scaled((position.x - opponent.x) / dist, (position.y - opponent.y) / dist)

    def _corner_escape(self, position: Position, opponent: Position) -> Optional[Vector]:
        self.escape_ticks -= 1
        if self.escape_ticks <= 0:
            self.escaping = False
            return None
        centre = Position(self.board.width / 2, self.board.height / 2)
        dist = distance(position, centre)
        if dist == 0:
            return None
        unit = ((centre.x - position.x) / dist, (centre.y - position.y) / dist)
        self.momentum = unit
        self.momentum_ticks = self.CORNER_ESCAPE_MOMENTUM
        return self._scaled(*unit)

    def _follow_momentum(self, position: Position, opponent: Position) -> Optional[Vector]:
        self.momentum_ticks -= 1
        return self._scaled(*self.momentum)

    def _follow_target(self, position: Position, opponent: Position) -> Optional[Vector]:
        if self._fresh_target:
            self._fresh_target = False
        else:
            self.target_persistence -= 1
        return self._step_toward(position, self.target)

    def _random_step(self, position: Position, opponent: Position) -> Optional[Vector]:
        dx, dy = self.rng.choice(DIRECTION_ORDER).vector
        return self._scaled(dx, dy)

    # -- helpers --------------------------------------------------------

    def _scaled(self, ux: float, uy: float) -> Vector:
        return (ux * self.speed, uy * self.speed)

    def _step_toward(self, position: Position, target: Position) -> Optional[Vector]:
        dist = distance(position, target)
        if dist <= self.STUCK_DISTANCE:
            return None
        unit = ((target.x - position.x) / dist, (target.y - position.y) / dist)
        self.momentum = unit
        self.momentum_ticks = self.rng.uniform(*self.MOMENTUM_RANGE)
        return self._scaled(*unit)

    def _clear_exploration(self):
        self.target = None
        self.target_persistence = 0
        self.momentum = None
        self.momentum_ticks = 0

    def exploration_targets(self):
        """Twelve fixed waypoints: inset corners, edge midpoints, quarter points"""
        w, h = self.board.width, self.board.height
        return [
            Position(100, 100),
            Position(w - 100, 100),
            Position(100, h - 100),
            Position(w - 100, h - 100),
            Position(w / 2, 100),
            Position(w / 2, h - 100),
            Position(100, h / 2),
            Position(w - 100, h / 2),
            Position(w / 4, h / 4),
            Position(3 * w / 4, h / 4),
            Position(w / 4, 3 * h / 4),
            Position(3 * w / 4, 3 * h / 4),
        ]

    def _pick_target(self, position: Position, opponent: Position):
        best = None
        best_score = self.TARGET_MIN_SCORE
        for candidate in self.exploration_targets():
            to_self = distance(candidate, position)
            score = distance(candidate, opponent) - to_self * self.SELF_DISTANCE_WEIGHT
            if score > best_score and to_self > self.TARGET_MIN_DISTANCE:
                best_score = score
                best = candidate
        if best is not None:
            self.target = best
            self.target_persistence = self.rng.uniform(*self.PERSISTENCE_RANGE)
            self._fresh_target = True

