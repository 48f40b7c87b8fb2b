"""
Real-time notifier.

A publish/subscribe broadcaster over WebSockets. Controllers only publish;
connected clients only listen. Publishing never waits on delivery.
"""

import asyncio
import logging
from typing import Any, Dict, Set

from fastapi import WebSocket

from chatboard.metrics import record_realtime_event

logger = logging.getLogger(__name__)

MESSAGE_UPDATE = "messageUpdate"


class Notifier:
    """Broadcasts named events to every connected WebSocket subscriber."""

    def __init__(self) -> None:
        self._subscribers: Set[WebSocket] = set()
        self._pending: Set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._subscribers.add(websocket)
        logger.info(f"Realtime subscriber connected, total={len(self._subscribers)}")

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._subscribers:
            self._subscribers.discard(websocket)
            logger.info(f"Realtime subscriber disconnected, total={len(self._subscribers)}")

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        """
        Publish an event to all subscribers without waiting for delivery.

        Sends are scheduled on the running event loop; a subscriber whose
        send fails is dropped. With no running loop nothing is delivered.
        """
        record_realtime_event(event)
        if not self._subscribers:
            logger.debug(f"No realtime subscribers for {event}")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, {event} not delivered")
            return

        message = {"event": event, "data": payload}
        for websocket in list(self._subscribers):
            task = loop.create_task(self._send(websocket, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _send(self, websocket: WebSocket, message: Dict[str, Any]) -> None:
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.warning(f"Dropping realtime subscriber after failed send: {e}")
            self.disconnect(websocket)

    async def serve(self, websocket: WebSocket) -> None:
        """Hold a subscriber connection open until the client goes away."""
        await self.connect(websocket)
        try:
            while True:
                # Inbound text and binary frames are ignored; the channel is server -> client only
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            self.disconnect(websocket)
