# Tests for the room directory and its socket dispatch
import asyncio
import json

from getdead import protocol
from getdead.game_room import Phase, Role
from getdead.main import handle_client
from getdead.room_manager import RoomManager


class MockWebSocket:
    def __init__(self, id_val):
        self._id = id_val
        self.sent = []

    def __hash__(self):
        return self._id

    def __eq__(self, other):
        return isinstance(other, MockWebSocket) and self._id == other._id

    async def send(self, payload):
        self.sent.append(json.loads(payload))

    def types(self):
        return [m["type"] for m in self.sent]

    def last(self, msg_type):
        for m in reversed(self.sent):
            if m["type"] == msg_type:
                return m
        return None


def frame(msg_type, **payload):
    return protocol.encode({"type": msg_type, **payload})


def test_first_join_creates_room_and_last_leave_evicts_it():
    async def scenario():
        manager = RoomManager()
        ws1, ws2 = MockWebSocket(1), MockWebSocket(2)

        await manager.handle_player_input(ws1, frame("join", room="ABC123", name="Alice"))
        await manager.handle_player_input(ws2, frame("join", room="ABC123", name="Bob"))

        assert list(manager.rooms) == ["ABC123"]
        assert len(manager.get_room("ABC123")) == 2
        joined = ws1.last(protocol.JOINED_ROOM)
        assert joined["player"]["name"] == "Alice"
        assert joined["room"]["roomId"] == "ABC123"
        # Alice hears about Bob's arrival
        assert len(ws1.last(protocol.ROOM_UPDATED)["room"]["entities"]) == 2

        await manager.leave(ws1)
        assert manager.get_room("ABC123") is not None
        assert len(ws2.last(protocol.ROOM_UPDATED)["room"]["entities"]) == 1

        await manager.leave(ws2)
        assert manager.get_room("ABC123") is None
        assert manager.player_to_room == {}

    asyncio.run(scenario())


def test_rooms_are_isolated():
    async def scenario():
        manager = RoomManager()
        a1, a2, b1 = MockWebSocket(1), MockWebSocket(2), MockWebSocket(3)
        await manager.join(a1, "ROOMA", "Alice")
        await manager.join(a2, "ROOMA", "Bob")
        await manager.join(b1, "ROOMB", "Carol")

        await manager.set_chaser(a1)
        await manager.start(a1)

        assert manager.get_room("ROOMA").phase is Phase.PLAYING
        assert manager.get_room("ROOMB").phase is Phase.WAITING
        assert protocol.GAME_STARTED not in b1.types()

        stats = manager.get_room_stats()
        assert stats["total_rooms"] == 2
        assert stats["total_players"] == 3

    asyncio.run(scenario())


def test_start_failures_report_reason_to_requester():
    async def scenario():
        manager = RoomManager()
        ws1, ws2 = MockWebSocket(1), MockWebSocket(2)
        await manager.join(ws1, "ABC123", "Alice")

        await manager.handle_player_input(ws1, frame("start"))
        assert ws1.last(protocol.START_FAILED)["reason"] == "needPlayers"

        await manager.join(ws2, "ABC123", "Bob")
        await manager.handle_player_input(ws1, frame("start"))
        assert ws1.last(protocol.START_FAILED)["reason"] == "needChaser"
        assert protocol.START_FAILED not in ws2.types()

    asyncio.run(scenario())


def test_full_round_over_the_wire():
    async def scenario():
        manager = RoomManager()
        alice, bob = MockWebSocket(1), MockWebSocket(2)
        await manager.join(alice, "ABC123", "Alice")
        await manager.join(bob, "ABC123", "Bob")
        room = manager.get_room("ABC123")
        room.obstacles_enabled = False

        await manager.handle_player_input(alice, frame("set_chaser"))
        assert room.get(manager.player_id(alice)).role is Role.CHASER
        await manager.handle_player_input(alice, frame("start"))
        assert bob.last(protocol.GAME_STARTED)["room"]["phase"] == "playing"

        bob_entity = room.get(manager.player_id(bob))
        alice_entity = room.get(manager.player_id(alice))
        # Walk Bob down onto Alice's row, then Alice right into Bob
        for _ in range(40):
            await manager.handle_player_input(bob, frame("move", directions=["down"]))
        assert bob_entity.position.y == 300
        for _ in range(200):
            if room.phase is Phase.FINISHED:
                break
            await manager.handle_player_input(alice, frame("move", directions=["right"]))

        assert bob_entity.is_caught
        assert room.phase is Phase.FINISHED
        assert bob.last(protocol.GAME_UPDATED)["room"]["phase"] == "finished"

        # Moves after the round ends produce nothing
        before = len(alice.sent)
        await manager.handle_player_input(alice, frame("move", directions=["left"]))
        assert len(alice.sent) == before
        assert alice_entity.position.x > 50

        await manager.handle_player_input(bob, frame("reset"))
        assert protocol.NEW_ROUND in alice.types()
        assert room.phase is Phase.WAITING
        assert not bob_entity.is_caught

    asyncio.run(scenario())


def test_set_chaser_for_another_player_and_emoji_updates():
    async def scenario():
        manager = RoomManager()
        ws1, ws2 = MockWebSocket(1), MockWebSocket(2)
        await manager.join(ws1, "ABC123", "Alice")
        await manager.join(ws2, "ABC123", "Bob")
        room = manager.get_room("ABC123")

        await manager.handle_player_input(ws1, frame("set_chaser", player_id=manager.player_id(ws2)))
        assert room.chaser.name == "Bob"
        assert await manager.set_chaser(ws1, "nobody") is False
        assert room.chaser.name == "Bob"

        await manager.handle_player_input(ws1, frame("set_emoji", emoji="🔪"))
        update = ws2.last(protocol.PLAYER_EMOJI_UPDATED)
        assert update == {"type": "player_emoji_updated", "player_id": manager.player_id(ws1), "emoji": "🔪"}

    asyncio.run(scenario())


def test_obstacle_toggle_broadcasts_layout():
    async def scenario():
        manager = RoomManager()
        ws1 = MockWebSocket(1)
        await manager.join(ws1, "ABC123", "Alice")

        await manager.handle_player_input(ws1, frame("set_obstacles", enabled=False))
        assert ws1.last(protocol.OBSTACLES_UPDATED) == {"type": "obstacles_updated", "enabled": False, "obstacles": []}

        await manager.handle_player_input(ws1, frame("set_obstacles", enabled=True))
        update = ws1.last(protocol.OBSTACLES_UPDATED)
        assert update["enabled"] is True
        assert 0 < len(update["obstacles"]) <= 10

    asyncio.run(scenario())


def test_bad_frames_are_ignored():
    async def scenario():
        manager = RoomManager()
        ws1 = MockWebSocket(1)

        await manager.handle_player_input(ws1, "not json")
        await manager.handle_player_input(ws1, frame("start"))
        assert ws1.last(protocol.ERROR)["message"] == "Join a room first."

        await manager.handle_player_input(ws1, frame("join", room="ABC123", name="  "))
        await manager.handle_player_input(ws1, frame("join", room=123, name="Alice"))
        await manager.handle_player_input(ws1, frame("join", room="ABC123", name=42))
        assert ws1.last(protocol.ERROR)["message"] == "A player name is required."
        assert manager.rooms == {}

        await manager.handle_player_input(ws1, frame("join", room="ABC123", name="Alice"))
        await manager.handle_player_input(ws1, frame("teleport", x=1, y=1))
        await manager.handle_player_input(ws1, frame("move", directions="sideways"))
        room = manager.get_room("ABC123")
        assert room.phase is Phase.WAITING

        before = room.snapshot()
        await manager.handle_player_input(ws1, frame("set_chaser", player_id=["x"]))
        await manager.handle_player_input(ws1, frame("set_obstacles", enabled="false"))
        await manager.handle_player_input(ws1, frame("set_emoji", emoji=7))
        assert room.snapshot() == before
        assert ws1.last(protocol.OBSTACLES_UPDATED) is None

    asyncio.run(scenario())


def test_join_without_room_id_creates_fresh_room():
    async def scenario():
        manager = RoomManager()
        ws1 = MockWebSocket(1)
        entity = await manager.join(ws1, None, "Alice")
        room = manager.get_room_for_player(ws1)
        assert room is not None
        assert len(room.room_id) == 6
        assert room.get(entity.id) is entity

    asyncio.run(scenario())


class BrokenSocket(MockWebSocket):
    """Delivers its frames, then fails with a non-websocket error"""

    def __init__(self, id_val, frames):
        super().__init__(id_val)
        self.frames = list(frames)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.frames:
            return self.frames.pop(0)
        raise RuntimeError("transport exploded")


def test_unexpected_transport_error_is_logged_and_cleaned_up(capsys):
    async def scenario():
        manager = RoomManager()
        ws1 = BrokenSocket(1, [frame("join", room="ABC123", name="Alice")])
        await handle_client(ws1, manager=manager)
        assert ws1.last(protocol.JOINED_ROOM) is not None
        assert manager.get_room("ABC123") is None
        assert manager.player_to_room == {}

    asyncio.run(scenario())
    assert "Unexpected error in handle_client: transport exploded" in capsys.readouterr().out
