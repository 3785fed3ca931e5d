# getdead/protocol.py
import json

# Client -> server
JOIN = "join"
SET_CHASER = "set_chaser"
SET_EMOJI = "set_emoji"
SET_OBSTACLES = "set_obstacles"
START = "start"
MOVE = "move"
RESET = "reset"

# Server -> client
JOINED_ROOM = "joined_room"
ROOM_UPDATED = "room_updated"
GAME_STARTED = "game_started"
START_FAILED = "start_failed"
GAME_UPDATED = "game_updated"
NEW_ROUND = "new_round"
OBSTACLES_UPDATED = "obstacles_updated"
PLAYER_EMOJI_UPDATED = "player_emoji_updated"
ERROR = "error"
RATE_LIMIT = "rate_limit"


def encode(msg: dict) -> str:
    """Convert a Python dict to a JSON string."""
    return json.dumps(msg, ensure_ascii=False)


def decode(text: str) -> dict:
    """Convert a JSON string back to a Python dict.

    Raises ValueError for anything that is not a JSON object with a type.
    """
    data = json.loads(text)
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ValueError("message must be an object with a 'type' field")
    return data


def message(msg_type: str, **payload) -> str:
    """Build and encode a typed frame"""
    return encode({"type": msg_type, **payload})
