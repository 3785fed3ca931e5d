# getdead/solo.py
import asyncio
import time
from typing import Callable, Iterable, Optional

from .bot import BotController, Difficulty
from .game_room import Entity, GameRoom, Phase, Role, StartResult
from .geometry import Board, parse_directions


class SoloGame:
    """One participant against a scripted opponent, with no transport.

    The room stays the only writer of positions: the bot proposes a step and
    the room resolves it the same way it resolves the player's moves.
    """

    PLAYER_ID = "player"
    BOT_ID = "bot"
    BOT_NAME = "Bot"
    BOT_EMOJI = {Role.CHASER: "🤖", Role.CHASED: "👾"}
    FPS = 60
    MOVE_INTERVAL_MS = 50  # 20 Hz, the same cadence as networked clients

    def __init__(self, name: str, role: Role = Role.CHASER, difficulty: Difficulty = Difficulty.EASY,
                 obstacles_enabled: bool = True, emoji: Optional[str] = None,
                 board: Optional[Board] = None, rng=None):
        self.player_role = Role(role)
        self.bot_role = Role.CHASED if self.player_role is Role.CHASER else Role.CHASER
        self.room = GameRoom("solo", board=board, rng=rng)
        self.room.obstacles_enabled = obstacles_enabled
        self.room.join(name, entity_id=self.PLAYER_ID, emoji=emoji)
        self.room.join(self.BOT_NAME, entity_id=self.BOT_ID, emoji=self.BOT_EMOJI[self.bot_role])
        chaser_id = self.PLAYER_ID if self.player_role is Role.CHASER else self.BOT_ID
        self.room.set_chaser(chaser_id)
        self.bot = BotController(difficulty, self.bot_role, board=self.room.board, rng=rng)
        self.running = False
        self.last_move_ms: Optional[float] = None

    @property
    def player(self) -> Entity:
        return self.room.get(self.PLAYER_ID)

    @property
    def opponent(self) -> Entity:
        return self.room.get(self.BOT_ID)

    @property
    def outcome(self) -> Optional[str]:
        """'won' or 'lost' once the round is over"""
        if self.room.phase is not Phase.FINISHED:
            return None
        return "won" if self.player_role is Role.CHASER else "lost"

    def start(self) -> StartResult:
        result = self.room.start()
        self.running = bool(result)
        return result

    def move(self, directions: Iterable, now_ms: Optional[float] = None) -> bool:
        """Apply a held-direction move for the human player, at most 20 times a second"""
        if now_ms is None:
            now_ms = time.monotonic() * 1000
        if self.last_move_ms is not None and now_ms - self.last_move_ms < self.MOVE_INTERVAL_MS:
            return False
        if not self.room.apply_move(self.PLAYER_ID, parse_directions(directions)):
            return False
        self.last_move_ms = now_ms
        return True

    def tick(self, now_ms: Optional[float] = None) -> bool:
        """Advance the opponent by one frame; True if it moved"""
        if self.room.phase is not Phase.PLAYING:
            return False
        step = self.bot.update(self.opponent.position, self.player.position, now_ms)
        if step is None:
            return False
        return self.room.apply_step(self.BOT_ID, *step)

    def stop(self):
        self.running = False

    async def run(self, render: Optional[Callable[[dict], None]] = None, fps: Optional[float] = None):
        """Fixed-rate cooperative loop until the round ends or stop() is called"""
        interval = 1.0 / (fps or self.FPS)
        if not self.running and self.room.phase is Phase.PLAYING:
            self.running = True
        try:
            while self.running and self.room.phase is Phase.PLAYING:
                self.tick()
                if render:
                    render(self.room.snapshot())
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            pass
        finally:
            self.running = False
        if render:
            render(self.room.snapshot())
