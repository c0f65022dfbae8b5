import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from jevah.auth.dependencies import get_current_user, resolve_user_from_token
from jevah.db.mongo import get_database
from jevah.realtime.manager import ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])

WS_CLOSE_UNAUTHORIZED = 4401

ALLOWED_ROOM_PREFIXES = ("media:", "stream:", "content:")


async def _handle_event(
    websocket: WebSocket,
    manager: ConnectionManager,
    user: dict,
    payload: Dict[str, Any],
) -> None:
    event = payload.get("event")
    data = payload.get("data") or {}
    user_id = str(user["_id"])
    author = {
        "id": user_id,
        "firstName": user.get("firstName"),
        "lastName": user.get("lastName"),
        "avatar": user.get("avatar"),
    }

    if event in ("join", "leave"):
        room = str(data.get("room") or "")
        if not room.startswith(ALLOWED_ROOM_PREFIXES):
            await websocket.send_json({"event": "error", "data": {"message": "Invalid room"}})
            return
        if event == "join":
            manager.join(websocket, room)
            await manager.emit(room, "user-joined", {"room": room, "user": author}, exclude=websocket)
        else:
            manager.leave(websocket, room)
            await manager.emit(room, "user-left", {"room": room, "user": author})
        return

    if event == "stream-chat":
        room = f"stream:{data.get('streamId')}"
        content = str(data.get("message") or "").strip()
        if not content:
            return
        await manager.emit(room, "stream-chat", {"streamId": data.get("streamId"), "message": content[:500], "user": author})
        return

    if event == "typing":
        recipient = data.get("recipientId")
        if recipient:
            await manager.emit_to_user(recipient, "typing", {"from": user_id, "isTyping": bool(data.get("isTyping", True))})
        return

    if event == "ping":
        await websocket.send_json({"event": "pong", "data": {}})
        return

    await websocket.send_json({"event": "error", "data": {"message": f"Unknown event: {event}"}})


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    db=Depends(get_database),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    token = websocket.query_params.get("token")
    user = await resolve_user_from_token(token, db)
    if user is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    await websocket.accept()
    user_id = str(user["_id"])
    manager.connect(websocket, user_id)
    try:
        while True:
            try:
                payload = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"message": "Invalid JSON"}})
                continue
            if not isinstance(payload, dict):
                await websocket.send_json({"event": "error", "data": {"message": "Invalid message"}})
                continue
            await _handle_event(websocket, manager, user, payload)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket, user_id)


@router.get("/api/realtime/online")
async def online_users(
    current_user: dict = Depends(get_current_user),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    return {"success": True, "onlineUsers": manager.online_users()}
