# backend/modules/kds/services/kds_websocket_manager.py

"""
WebSocket manager for real-time kitchen display updates.

Delivery is fire-and-forget: nothing is persisted or replayed, so a display
that joins after an event was published never sees it. Broadcasts to the
same room are serialized, which keeps events in publish order on every
connection.
"""

from fastapi import WebSocket
from typing import Any, Dict, List
import json
import asyncio
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

KITCHEN_ROOM = "kitchen"

NEW_ORDER_EVENT = "new-order"
ORDER_STATUS_EVENT = "order-status-update"
ORDER_READY_EVENT = "order-ready"


class KDSWebSocketManager:
    """Manages WebSocket connections grouped into named rooms"""

    def __init__(self):
        # Room name to connected sockets, in join order
        self.active_connections: Dict[str, List[WebSocket]] = {}
        # Guards the registry
        self.lock = asyncio.Lock()
        # One per room; held for the whole of a broadcast
        self.room_locks: Dict[str, asyncio.Lock] = {}

    async def connect(self, websocket: WebSocket, room: str = KITCHEN_ROOM):
        """Accept a WebSocket and join it to a room"""
        await websocket.accept()
        await self.join(websocket, room)

    async def join(self, websocket: WebSocket, room: str = KITCHEN_ROOM):
        async with self.lock:
            self.active_connections.setdefault(room, []).append(websocket)

        logger.info(
            f"WebSocket joined room {room}. "
            f"Total connections: {self.get_connection_count(room)}"
        )

    async def disconnect(self, websocket: WebSocket, room: str = KITCHEN_ROOM):
        """Remove a WebSocket from a room"""
        async with self.lock:
            self._remove(websocket, room)

    def _remove(self, websocket: WebSocket, room: str):
        connections = self.active_connections.get(room)
        if not connections or websocket not in connections:
            return
        connections.remove(websocket)
        if not connections:
            del self.active_connections[room]
        logger.info(f"WebSocket left room {room}")

    def _room_lock(self, room: str) -> asyncio.Lock:
        lock = self.room_locks.get(room)
        if lock is None:
            lock = self.room_locks[room] = asyncio.Lock()
        return lock

    async def broadcast(self, topic: str, event: str, data: Dict[str, Any]) -> int:
        """
        Send ``{"event", "data", "timestamp"}`` to every socket in ``topic``.

        Never raises; sockets that fail to receive are dropped. Returns the
        number of sockets the message reached.
        """
        message_text = json.dumps(
            {
                "event": event,
                "data": data,
                "timestamp": datetime.utcnow().isoformat(),
            },
            default=str,
        )

        async with self._room_lock(topic):
            async with self.lock:
                connections = list(self.active_connections.get(topic, []))

            delivered = 0
            dead_connections = []
            for websocket in connections:
                try:
                    await websocket.send_text(message_text)
                    delivered += 1
                except Exception as e:
                    logger.error(f"Error broadcasting {event} to room {topic}: {str(e)}")
                    dead_connections.append(websocket)

            if dead_connections:
                async with self.lock:
                    for websocket in dead_connections:
                        self._remove(websocket, topic)

        logger.debug(f"Broadcast {event} to {delivered} sockets in room {topic}")
        return delivered

    def get_connection_count(self, room: str) -> int:
        """Get number of active connections in a room"""
        return len(self.active_connections.get(room, []))

    def get_all_connection_counts(self) -> Dict[str, int]:
        return {
            room: len(connections)
            for room, connections in self.active_connections.items()
        }

    async def close_all_connections(self):
        """Close all WebSocket connections"""
        async with self.lock:
            sockets = [ws for conns in self.active_connections.values() for ws in conns]
            self.active_connections.clear()

        if sockets:
            await asyncio.gather(*(ws.close() for ws in sockets), return_exceptions=True)
        logger.info("All WebSocket connections closed")


# Global instance
kds_websocket_manager = KDSWebSocketManager()


def get_kds_manager() -> KDSWebSocketManager:
    return kds_websocket_manager
