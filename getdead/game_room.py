# getdead/game_room.py
import random
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .geometry import ORIGIN, Board, Direction, Position, circles_overlap
from .motion import resolve_move, resolve_step
from .obstacles import Obstacle, generate_obstacles


class Role(str, Enum):
    CHASER = "chaser"
    CHASED = "chased"


class Phase(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class StartFailure(str, Enum):
    NEED_PLAYERS = "needPlayers"
    NEED_CHASER = "needChaser"


@dataclass
class StartResult:
    ok: bool
    reason: Optional[StartFailure] = None

    def __bool__(self):
        return self.ok


@dataclass
class Entity:
    id: str
    name: str
    emoji: Optional[str] = None
    role: Role = Role.CHASED
    position: Position = ORIGIN
    is_alive: bool = True
    is_caught: bool = False

    @property
    def can_move(self) -> bool:
        return self.is_alive and not self.is_caught

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "role": self.role.value,
            "position": self.position.to_dict(),
            "isAlive": self.is_alive,
            "isCaught": self.is_caught,
        }


class GameRoom:
    """Authoritative state for one chase room.

    Every public operation is total: bad ids, wrong phases and blocked moves
    return False (or a failed StartResult) and leave the room untouched.
    """

    MIN_PLAYERS = 2
    ENTITY_RADIUS = 15
    CHASER_START_X = 50
    CHASED_START_INSET = 100
    CHASED_START_TOP = 100
    CHASED_START_SPACING = 80

    def __init__(self, room_id: str, board: Optional[Board] = None, rng=None):
        self.room_id = room_id
        self.board = board or Board()
        self.entities: Dict[str, Entity] = {}
        self.phase = Phase.WAITING
        self.obstacles: List[Obstacle] = []
        self.obstacles_enabled = True
        self.rng = rng or random.Random()

    def __len__(self):
        return len(self.entities)

    def is_empty(self):
        """Check if room has no players"""
        return len(self.entities) == 0

    def get(self, entity_id: str) -> Optional[Entity]:
        return self.entities.get(entity_id)

    @property
    def chaser(self) -> Optional[Entity]:
        for entity in self.entities.values():
            if entity.role is Role.CHASER:
                return entity
        return None

    def chased(self) -> List[Entity]:
        return [e for e in self.entities.values() if e.role is Role.CHASED]

    # -- membership -----------------------------------------------------

    def join(self, name: str, entity_id: Optional[str] = None, emoji: Optional[str] = None) -> Entity:
        """Add a chased entity parked at the origin until the next start"""
        if entity_id is None:
            entity_id = uuid.uuid4().hex[:8]
        entity = Entity(id=entity_id, name=name, emoji=emoji)
        self.entities[entity_id] = entity
        return entity

    def leave(self, entity_id: str) -> bool:
        if self.entities.pop(entity_id, None) is None:
            return False
        self._check_round_over()
        return True

    def set_chaser(self, entity_id: str) -> bool:
        """Make entity_id the only chaser in the room"""
        target = self.entities.get(entity_id)
        if target is None:
            return False
        for entity in self.entities.values():
            entity.role = Role.CHASED
        target.role = Role.CHASER
        return True

    def set_emoji(self, entity_id: str, emoji: str) -> bool:
        entity = self.entities.get(entity_id)
        if entity is None:
            return False
        entity.emoji = emoji
        return True

    def set_obstacles_enabled(self, enabled: bool):
        self.obstacles_enabled = bool(enabled)
        if self.obstacles_enabled and not self.obstacles:
            self._generate_obstacles()

    def active_obstacles(self) -> List[Obstacle]:
        return self.obstacles if self.obstacles_enabled else []

    def _generate_obstacles(self):
        positions = [e.position for e in self.entities.values()]
        self.obstacles = generate_obstacles(self.board, positions, rng=self.rng)

    # -- round lifecycle ------------------------------------------------

    def start(self) -> StartResult:
        """Lay out the round and switch to playing"""
        if len(self.entities) < self.MIN_PLAYERS:
            return StartResult(False, StartFailure.NEED_PLAYERS)
        chaser = self.chaser
        if chaser is None:
            return StartResult(False, StartFailure.NEED_CHASER)

        chaser.position = Position(self.CHASER_START_X, self.board.height / 2)
        for index, entity in enumerate(self.chased()):
            entity.position = Position(
                self.board.width - self.CHASED_START_INSET,
                self.CHASED_START_TOP + index * self.CHASED_START_SPACING,
            )
        for entity in self.entities.values():
            entity.is_alive = True
            entity.is_caught = False

        # generate_obstacles finishes with the path-guarantee pass
        if self.obstacles_enabled:
            self._generate_obstacles()
        else:
            self.obstacles = []

        self.phase = Phase.PLAYING
        return StartResult(True)

    def reset(self):
        """Back to the lobby; obstacles are rebuilt on the next start"""
        for entity in self.entities.values():
            entity.is_alive = True
            entity.is_caught = False
            entity.position = ORIGIN
        self.phase = Phase.WAITING
        self.obstacles = []

    # -- movement -------------------------------------------------------

    def _mover(self, entity_id: str) -> Optional[Entity]:
        if self.phase is not Phase.PLAYING:
            return None
        entity = self.entities.get(entity_id)
        if entity is None or not entity.can_move:
            return None
        return entity

    def apply_move(self, entity_id: str, directions: Iterable[Direction]) -> bool:
        """Move an entity by a set of held directions"""
        entity = self._mover(entity_id)
        if entity is None:
            return False
        new_pos = resolve_move(entity.position, directions, self.board, self.active_obstacles())
        if new_pos is None:
            return False
        entity.position = new_pos
        self._check_captures()
        return True

    def apply_step(self, entity_id: str, dx: float, dy: float) -> bool:
        """Move an entity by a free vector (used by the solo opponent)"""
        entity = self._mover(entity_id)
        if entity is None:
            return False
        new_pos = resolve_step(entity.position, dx, dy, self.board, self.active_obstacles())
        if new_pos is None:
            return False
        entity.position = new_pos
        self._check_captures()
        return True

    def _check_captures(self):
        """Only the chaser catches and only the chased get caught"""
        chaser = self.chaser
        if chaser is None or not chaser.can_move:
            return
        for entity in self.chased():
            if not entity.can_move:
                continue
            if circles_overlap(chaser.position, self.ENTITY_RADIUS, entity.position, self.ENTITY_RADIUS):
                entity.is_caught = True
                entity.is_alive = False
        self._check_round_over()

    def _check_round_over(self):
        """A round ends once no chased entity can move or the chaser is gone"""
        if self.phase is not Phase.PLAYING:
            return
        if self.chaser is None or not any(e.can_move for e in self.chased()):
            self.phase = Phase.FINISHED

    # -- snapshot -------------------------------------------------------

    def snapshot(self):
        """Serializable view of the room for clients"""
        return {
            "roomId": self.room_id,
            "phase": self.phase.value,
            "board": self.board.to_dict(),
            "obstacles": [o.to_dict() for o in self.obstacles],
            "obstaclesEnabled": self.obstacles_enabled,
            "entities": [e.to_dict() for e in self.entities.values()],
        }
