import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Set

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from jevah.utils.mongodb_utils import serialize_document

logger = logging.getLogger(__name__)


def user_room(user_id) -> str:
    return f"user:{user_id}"


def media_room(media_id) -> str:
    return f"media:{media_id}"


def stream_room(stream_id) -> str:
    return f"stream:{stream_id}"


class ConnectionManager:
    """
    In-process registry of open sockets and the rooms they joined.

    Only valid for a single worker; events emitted in one process are not
    seen by sockets connected to another.
    """

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.memberships: Dict[WebSocket, Set[str]] = defaultdict(set)
        self.online: Dict[str, int] = defaultdict(int)

    def join(self, websocket: WebSocket, room: str) -> None:
        self.rooms[room].add(websocket)
        self.memberships[websocket].add(room)

    def leave(self, websocket: WebSocket, room: str) -> None:
        self.rooms.get(room, set()).discard(websocket)
        self.memberships.get(websocket, set()).discard(room)
        if room in self.rooms and not self.rooms[room]:
            del self.rooms[room]

    def connect(self, websocket: WebSocket, user_id: str) -> None:
        self.join(websocket, user_room(user_id))
        self.online[user_id] += 1
        logger.info(f"Socket connected: user={user_id} connections={self.online[user_id]}")

    def disconnect(self, websocket: WebSocket, user_id: str) -> None:
        for room in list(self.memberships.get(websocket, set())):
            self.leave(websocket, room)
        self.memberships.pop(websocket, None)
        self.online[user_id] -= 1
        if self.online[user_id] <= 0:
            del self.online[user_id]
        logger.info(f"Socket disconnected: user={user_id}")

    def is_online(self, user_id) -> bool:
        return str(user_id) in self.online

    def online_users(self):
        return list(self.online.keys())

    def room_size(self, room: str) -> int:
        return len(self.rooms.get(room, ()))

    async def emit(self, room: str, event: str, data: Any, exclude: WebSocket = None) -> int:
        """Send an event to every socket in a room; returns the number of deliveries."""
        message = {
            "event": event,
            "data": jsonable_encoder(serialize_document(data)),
            "timestamp": datetime.utcnow().isoformat(),
        }
        delivered = 0
        for websocket in list(self.rooms.get(room, ())):
            if websocket is exclude:
                continue
            try:
                await websocket.send_json(message)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, ConnectionError) as e:
                logger.warning(f"Dropping socket from {room}: {e}")
                self.leave(websocket, room)
        return delivered

    async def emit_to_user(self, user_id, event: str, data: Any) -> int:
        return await self.emit(user_room(user_id), event, data)


manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    return manager
