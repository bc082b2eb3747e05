import asyncio
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel

from constants import OUTBOX_MAX_SIZE
from logging_config import get_logger

logger = get_logger(__name__)


class Connection:
    """One live WebSocket session.

    room_id and role are written only by the matching backend. Outbound
    messages go through an in-memory outbox so callers never await a peer;
    pump() is the single writer onto the socket.
    """

    def __init__(self, websocket: Any = None, outbox_max_size: int = OUTBOX_MAX_SIZE):
        self.websocket = websocket
        self.session_id: Optional[str] = None
        self.room_id: Optional[str] = None
        self.role: Optional[str] = None
        self.connected_at = datetime.now()
        self._outbox: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=outbox_max_size)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closed = False

    def __repr__(self):
        return f"<Connection {self.session_id} room={self.room_id} role={self.role}>"

    # --- room bookkeeping ---

    def set_room(self, room_id: str, role: str):
        self.room_id = room_id
        self.role = role

    def clear_room(self):
        self.room_id = None
        self.role = None

    def get_room(self) -> Optional[Tuple[str, str]]:
        if self.room_id is None:
            return None
        return self.room_id, self.role

    # --- liveness ---

    @property
    def is_open(self) -> bool:
        return not self._closed

    def mark_closed(self):
        self._closed = True

    # --- outbound ---

    def send(self, message):
        """Queue a message for delivery. A no-op once the connection is closed."""
        if self._closed:
            logger.debug(f"Dropping message for closed connection {self.session_id}")
            return
        if isinstance(message, BaseModel):
            message = message.model_dump(by_alias=True, exclude_none=True)

        loop = self._loop
        if loop is not None and not loop.is_closed() and not self._on_loop(loop):
            try:
                loop.call_soon_threadsafe(self._put, message)
            except RuntimeError as e:
                logger.debug(f"Dropping message for connection {self.session_id}: {e}")
            return
        self._put(message)

    def _put(self, message):
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.debug(f"Outbox full for connection {self.session_id}, dropping {message.get('type')}")

    @staticmethod
    def _on_loop(loop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    async def pump(self):
        """Flush the outbox onto the WebSocket in order until the socket fails."""
        self._loop = asyncio.get_running_loop()
        while True:
            message = await self._outbox.get()
            try:
                await self.websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Send failed for connection {self.session_id}, marking closed: {e}")
                self._closed = True
                return
