# backend/modules/kds/routes/kds_realtime_routes.py

"""
Real-time KDS channel.

Displays connect to ``/ws/kds/{room}`` (``kitchen`` by default) and
receive ``new-order``, ``order-status-update`` and ``order-ready`` events.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import json
import logging

from ..services.kds_websocket_manager import KITCHEN_ROOM, kds_websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["KDS Real-time"])


@router.websocket("/ws/kds")
async def kitchen_websocket(websocket: WebSocket):
    await room_websocket(websocket, KITCHEN_ROOM)


@router.websocket("/ws/kds/{room}")
async def room_websocket(websocket: WebSocket, room: str):
    """Join a room and stay subscribed until the client goes away"""
    await kds_websocket_manager.connect(websocket, room)
    try:
        await websocket.send_json({"event": "joined", "data": {"room": room}})

        while True:
            message = await websocket.receive_text()
            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_json({"event": "pong"})

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected from room {room}")
    finally:
        await kds_websocket_manager.disconnect(websocket, room)
