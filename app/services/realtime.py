"""
In-process realtime channels.

Each authenticated user has a channel (``user_{id}``) with zero or more open
WebSocket connections; events are pushed to every connection on it.
"""
import logging
from collections import defaultdict
from typing import Any, Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def channel_name(user_id: int) -> str:
    return f"user_{user_id}"


class RealtimeHub:
    def __init__(self):
        self._connections: Dict[int, Set[WebSocket]] = defaultdict(set)

    async def connect(self, user_id: int, websocket: WebSocket):
        await websocket.accept()
        self._connections[user_id].add(websocket)
        logger.info(f"Realtime connection opened on {channel_name(user_id)}")

    def disconnect(self, user_id: int, websocket: WebSocket):
        sockets = self._connections.get(user_id)
        if not sockets:
            return
        sockets.discard(websocket)
        if not sockets:
            self._connections.pop(user_id, None)
        logger.info(f"Realtime connection closed on {channel_name(user_id)}")

    def connection_count(self, user_id: int) -> int:
        return len(self._connections.get(user_id, ()))

    async def emit(self, user_id: int, event: str, data: Dict[str, Any]) -> int:
        """Send ``event`` to every connection of ``user_id``; returns how many got it."""
        delivered = 0
        for websocket in list(self._connections.get(user_id, ())):
            try:
                await websocket.send_json({"event": event, "data": data})
                delivered += 1
            except Exception:
                logger.warning(f"Dropping dead connection on {channel_name(user_id)}")
                self.disconnect(user_id, websocket)
        return delivered


realtime_hub = RealtimeHub()
