# getdead/main.py - Room-based Get Dead multiplayer server
import argparse
import asyncio
import functools
import os

import websockets

from . import protocol
from .room_manager import RoomManager


async def handle_client(websocket, path=None, manager: RoomManager = None, rate: float = 30.0, burst: float = 10.0):
    """Handle a new client connection.
    Every frame is dispatched to the room manager in arrival order, so each
    room only ever sees one mutation at a time.
    Compatible with websockets versions that pass either (websocket) or (websocket, path).
    """
    print("Client connected")

    try:
        tokens = burst
        last_refill = asyncio.get_event_loop().time()
        warn_cooldown = 0.0

        async for message in websocket:
            try:
                # Refill token bucket
                now = asyncio.get_event_loop().time()
                elapsed = now - last_refill
                last_refill = now
                tokens = min(burst, tokens + elapsed * rate)
                if tokens >= 1.0:
                    tokens -= 1.0
                    await manager.handle_player_input(websocket, message)
                else:
                    # Drop excess input and occasionally warn
                    if now >= warn_cooldown:
                        print("[RateLimit] Dropping input from client due to rate limit")
                        await websocket.send(protocol.message(
                            protocol.RATE_LIMIT, message="Too many inputs; slowing down."))
                        warn_cooldown = now + 1.0  # warn at most once per second
            except websockets.ConnectionClosed:
                raise
            except Exception as e:
                print(f"Error handling player input: {e}")

    except websockets.ConnectionClosedOK:
        print("Client disconnected normally")
    except websockets.ConnectionClosedError as e:
        print(f"Client disconnected with error: {e}")
    except Exception as e:
        print(f"Unexpected error in handle_client: {e}")
    finally:
        # Remove player from their room
        await manager.leave(websocket)
        print("Client connection cleaned up")


async def status_reporter(manager: RoomManager, interval: float = 30.0):
    """Periodically report server status"""
    try:
        while True:
            await asyncio.sleep(interval)
            stats = manager.get_room_stats()
            if stats['total_players'] > 0:
                print("=== SERVER STATUS ===")
                print(f"Active Rooms: {stats['active_rooms']}")
                print(f"Total Players: {stats['total_players']}")
                for room in stats['rooms']:
                    print(f"  Room {room['room_id']}: {room['players']} players, {room['phase']}")
                print("====================")
    except asyncio.CancelledError:
        pass


async def main(host: str = "0.0.0.0", port: int = 3000, rate: float = 30.0, burst: float = 10.0,
               status_interval: float = 30.0):
    """Main server function"""
    print("💀 Get Dead Multiplayer Server")
    print("==============================")

    manager = RoomManager()
    handler = functools.partial(handle_client, manager=manager, rate=rate, burst=burst)
    status_task = asyncio.create_task(status_reporter(manager, status_interval))

    try:
        async with websockets.serve(handler, host, port):
            print(f"\n✅ Server running on ws://localhost:{port}")
            print("Rooms are created on first join and removed when the last player leaves")
            print("Press Ctrl+C to stop the server\n")

            # Keep the server running
            await asyncio.Event().wait()
    finally:
        status_task.cancel()
        print("✅ Server stopped successfully")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Get Dead chase game server")
    parser.add_argument("--host", default=os.getenv("GETDEAD_SERVER_HOST", "0.0.0.0"), help="Interface to bind")
    parser.add_argument("--port", type=int, default=int(os.getenv("GETDEAD_SERVER_PORT", "3000")),
                        help="Port to bind the game server on")
    parser.add_argument("--rate", type=float, default=float(os.getenv("GETDEAD_INPUT_RPS", "30")),
                        help="Sustained input messages per second per client")
    parser.add_argument("--burst", type=float, default=float(os.getenv("GETDEAD_INPUT_BURST", "10")),
                        help="Input burst allowance per client")
    parser.add_argument("--status-interval", type=float, default=float(os.getenv("GETDEAD_STATUS_SECS", "30")),
                        help="Seconds between status reports")
    return parser.parse_args(argv)


def run():
    args = parse_args()
    try:
        asyncio.run(main(host=args.host, port=args.port, rate=args.rate, burst=args.burst,
                         status_interval=args.status_interval))
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    run()
