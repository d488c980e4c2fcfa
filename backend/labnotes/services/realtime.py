"""
Calendar change notifications over WebSocket.

Connected clients receive {"type": "calendar_event.<change>", "event": {...}}
for events they can see. Delivery is best effort: a client that missed
messages while disconnected re-fetches the calendar on reconnect.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from fastapi import WebSocket, WebSocketDisconnect

from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Client:
    user_id: int
    is_admin: bool


class CalendarBroadcaster:
    def __init__(self):
        self._clients: dict[WebSocket, _Client] = {}
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket, user_id: int, is_admin: bool = False) -> None:
        await websocket.accept()
        async with self._lock:
            self._clients[websocket] = _Client(user_id=user_id, is_admin=is_admin)
        logger.info(f"[WS] Calendar client connected | user: {user_id} | clients: {len(self._clients)}")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            client = self._clients.pop(websocket, None)
        if client is not None:
            logger.info(f"[WS] Calendar client disconnected | user: {client.user_id}")

    async def broadcast(
        self,
        change: str,
        event: dict[str, Any],
        audience: Optional[Iterable[int]] = None,
    ) -> int:
        """
        Send a change to every connected client allowed to see it.

        Args:
            change: "created", "updated" or "deleted"
            event: serialized calendar event
            audience: user ids allowed to see the event; None means everyone. Admins always receive it.

        Returns:
            Number of clients the message was delivered to.
        """
        message = {"type": f"calendar_event.{change}", "event": event}
        allowed = set(audience) if audience is not None else None

        async with self._lock:
            targets = [
                (ws, client)
                for ws, client in self._clients.items()
                if allowed is None or client.is_admin or client.user_id in allowed
            ]

        delivered = 0
        stale = []
        for ws, client in targets:
            try:
                await ws.send_json(message)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.warning(f"[WS] Dropping calendar client for user {client.user_id}: {e}")
                stale.append(ws)

        if stale:
            async with self._lock:
                for ws in stale:
                    self._clients.pop(ws, None)
        return delivered
