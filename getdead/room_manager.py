# getdead/room_manager.py
import asyncio
import time
import uuid
from typing import Dict, Optional

import websockets

from . import protocol
from .game_room import Entity, GameRoom, StartResult
from .geometry import Board, parse_directions


class RoomManager:
    """Directory of live rooms plus the socket bookkeeping around them.

    One instance is created by the server entry point and handed to every
    connection handler; rooms never see sockets.
    """

    def __init__(self, board: Optional[Board] = None):
        self.board = board or Board()
        self.rooms: Dict[str, GameRoom] = {}
        self.player_to_room: Dict[str, str] = {}  # player_id -> room_id
        self.sockets: Dict[str, Dict[str, object]] = {}  # room_id -> {player_id: websocket}
        self.created_at: Dict[str, float] = {}

    @staticmethod
    def player_id(websocket) -> str:
        return str(id(websocket))

    # -- directory ------------------------------------------------------

    def create_room(self, room_id: Optional[str] = None) -> GameRoom:
        if room_id is None:
            room_id = uuid.uuid4().hex[:6].upper()
        room = GameRoom(room_id, board=self.board)
        self.rooms[room_id] = room
        self.sockets[room_id] = {}
        self.created_at[room_id] = time.time()
        print(f"[ROOM] created room {room_id}")
        return room

    def get_room(self, room_id: str) -> Optional[GameRoom]:
        return self.rooms.get(room_id)

    def evict_room(self, room_id: str):
        """Drop a room and forget anyone still mapped to it"""
        if room_id not in self.rooms:
            return
        for player_id in [p for p, r in self.player_to_room.items() if r == room_id]:
            del self.player_to_room[player_id]
        del self.rooms[room_id]
        self.sockets.pop(room_id, None)
        self.created_at.pop(room_id, None)
        print(f"[ROOM] cleaned up room {room_id}")

    def get_room_for_player(self, websocket) -> Optional[GameRoom]:
        """Get the room that a player is in"""
        room_id = self.player_to_room.get(self.player_id(websocket))
        if room_id is None:
            return None
        return self.rooms.get(room_id)

    # -- operations -----------------------------------------------------

    async def join(self, websocket, room_id: Optional[str], name: str, emoji: Optional[str] = None) -> Optional[Entity]:
        """Add the socket's player to room_id, creating the room on first join"""
        if room_id is not None and not isinstance(room_id, str):
            print(f"[SVR] dropping join with non-string room id {room_id!r}")
            return None
        name = name.strip() if isinstance(name, str) else ""
        if not isinstance(emoji, str):
            emoji = None
        if not name:
            await self._send(websocket, protocol.message(protocol.ERROR, message="A player name is required."))
            return None

        if self.player_id(websocket) in self.player_to_room:
            await self.leave(websocket)

        room_id = (room_id or "").strip() or None
        room = self.get_room(room_id) if room_id else None
        if room is None:
            room = self.create_room(room_id)

        player_id = self.player_id(websocket)
        entity = room.join(name, entity_id=player_id, emoji=emoji)
        self.player_to_room[player_id] = room.room_id
        self.sockets[room.room_id][player_id] = websocket
        print(f"[ROOM] {name} ({player_id}) joined room {room.room_id}, {len(room)} players")

        await self._send(websocket, protocol.message(
            protocol.JOINED_ROOM, player=entity.to_dict(), room=room.snapshot()))
        await self._broadcast(room, protocol.message(protocol.ROOM_UPDATED, room=room.snapshot()))
        return entity

    async def leave(self, websocket):
        """Remove a player from their room, evicting the room once empty"""
        player_id = self.player_id(websocket)
        room_id = self.player_to_room.pop(player_id, None)
        if room_id is None:
            return
        room = self.rooms.get(room_id)
        if room is None:
            return

        room.leave(player_id)
        self.sockets[room_id].pop(player_id, None)
        print(f"[ROOM] player {player_id} left room {room_id}, {len(room)} players")

        if room.is_empty():
            self.evict_room(room_id)
        else:
            await self._broadcast(room, protocol.message(protocol.ROOM_UPDATED, room=room.snapshot()))

    async def set_chaser(self, websocket, target_id: Optional[str] = None) -> bool:
        room = self.get_room_for_player(websocket)
        if room is None or (target_id is not None and not isinstance(target_id, str)):
            return False
        if not room.set_chaser(target_id or self.player_id(websocket)):
            return False
        await self._broadcast(room, protocol.message(protocol.ROOM_UPDATED, room=room.snapshot()))
        return True

    async def set_emoji(self, websocket, emoji: str) -> bool:
        room = self.get_room_for_player(websocket)
        if room is None or not isinstance(emoji, str) or not emoji:
            return False
        player_id = self.player_id(websocket)
        if not room.set_emoji(player_id, emoji):
            return False
        await self._broadcast(room, protocol.message(
            protocol.PLAYER_EMOJI_UPDATED, player_id=player_id, emoji=emoji))
        return True

    async def set_obstacles(self, websocket, enabled: bool):
        room = self.get_room_for_player(websocket)
        if room is None or not isinstance(enabled, bool):
            return
        room.set_obstacles_enabled(enabled)
        print(f"[ROOM] obstacles {'enabled' if room.obstacles_enabled else 'disabled'} in room {room.room_id}")
        await self._broadcast(room, protocol.message(
            protocol.OBSTACLES_UPDATED,
            enabled=room.obstacles_enabled,
            obstacles=[o.to_dict() for o in room.obstacles],
        ))
        await self._broadcast(room, protocol.message(protocol.ROOM_UPDATED, room=room.snapshot()))

    async def start(self, websocket) -> StartResult:
        room = self.get_room_for_player(websocket)
        if room is None:
            return StartResult(False)
        result = room.start()
        if result:
            print(f"[ROOM] game started in room {room.room_id} with {len(room.obstacles)} obstacles")
            await self._broadcast(room, protocol.message(protocol.GAME_STARTED, room=room.snapshot()))
        else:
            await self._send(websocket, protocol.message(protocol.START_FAILED, reason=result.reason.value))
        return result

    async def move(self, websocket, directions) -> bool:
        room = self.get_room_for_player(websocket)
        if room is None:
            return False
        if not room.apply_move(self.player_id(websocket), parse_directions(directions)):
            return False
        await self._broadcast(room, protocol.message(protocol.GAME_UPDATED, room=room.snapshot()))
        return True

    async def reset(self, websocket):
        room = self.get_room_for_player(websocket)
        if room is None:
            return
        room.reset()
        print(f"[ROOM] new round requested in room {room.room_id}")
        await self._broadcast(room, protocol.message(protocol.NEW_ROUND))
        await self._broadcast(room, protocol.message(protocol.ROOM_UPDATED, room=room.snapshot()))

    async def handle_player_input(self, websocket, raw: str):
        """Decode one frame and dispatch it. Bad frames are dropped."""
        try:
            data = protocol.decode(raw)
        except ValueError as e:
            print(f"[SVR] dropping malformed frame: {e}")
            return

        msg_type = data["type"]
        if msg_type == protocol.JOIN:
            await self.join(websocket, data.get("room"), data.get("name"), data.get("emoji"))
            return
        if self.get_room_for_player(websocket) is None:
            await self._send(websocket, protocol.message(protocol.ERROR, message="Join a room first."))
            return

        if msg_type == protocol.MOVE:
            directions = data.get("directions")
            if isinstance(directions, str):
                directions = [directions]
            await self.move(websocket, directions if isinstance(directions, list) else [])
        elif msg_type == protocol.SET_CHASER:
            await self.set_chaser(websocket, data.get("player_id"))
        elif msg_type == protocol.SET_EMOJI:
            await self.set_emoji(websocket, data.get("emoji"))
        elif msg_type == protocol.SET_OBSTACLES:
            await self.set_obstacles(websocket, data.get("enabled", True))
        elif msg_type == protocol.START:
            await self.start(websocket)
        elif msg_type == protocol.RESET:
            await self.reset(websocket)
        else:
            print(f"[SVR] unknown message type '{msg_type}'")

    # -- transport ------------------------------------------------------

    async def _send(self, websocket, payload: str):
        try:
            await websocket.send(payload)
        except websockets.ConnectionClosed:
            pass

    async def _broadcast(self, room: GameRoom, payload: str):
        """Send a frame to every socket in the room"""
        clients = list(self.sockets.get(room.room_id, {}).values())
        if clients:
            await asyncio.gather(*(self._send(ws, payload) for ws in clients))

    def get_room_stats(self) -> Dict:
        """Get statistics about all rooms"""
        room_details = []
        for room_id, room in self.rooms.items():
            room_details.append({
                "room_id": room_id,
                "players": len(room),
                "phase": room.phase.value,
                "obstacles": len(room.obstacles),
                "created_at": self.created_at.get(room_id),
            })
        return {
            "total_rooms": len(self.rooms),
            "active_rooms": sum(1 for r in self.rooms.values() if not r.is_empty()),
            "total_players": sum(len(r) for r in self.rooms.values()),
            "rooms": room_details,
        }
