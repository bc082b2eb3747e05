import threading
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from constants import (
    GUARD_RECEIVER_SLOT, ROOM_ID_LENGTH, QUEUE_WAITING_MESSAGE, MATCHED_MESSAGE,
    LEFT_QUEUE_MESSAGE, PARTNER_DISCONNECTED_MESSAGE, ALREADY_IN_ROOM_MESSAGE,
)
from message_types import (
    JOIN_ROOM, CHAT_MESSAGE, TERMINATE_ROOM, LEAVE_QUEUE, JOIN_QUEUE, SENDER, RECEIVER,
)
from models import ConnectionState, Room, WaitingEntry, opposite_role
from schemas.messages import (
    JoinRoomMessage, ChatMessageIn, TerminateRoomMessage, LeaveQueueMessage, JoinQueueMessage,
    QueueStatusMessage, MatchedMessage, ChatRelayMessage, ParticipantLeftMessage,
    LeftQueueMessage, ErrorMessage,
)
from logging_config import get_logger

logger = get_logger(__name__)


class MatchingBackend:
    """Owns the waiting queue and the room table.

    Every public handler runs to completion under one lock, and none of them
    await: sends only enqueue onto the target connection's outbox.
    """

    def __init__(self, guard_receiver_slot: bool = GUARD_RECEIVER_SLOT, room_id_length: int = ROOM_ID_LENGTH):
        self.queue: List[WaitingEntry] = []
        self.rooms: Dict[str, Room] = {}
        self.connections = set()
        self.guard_receiver_slot = guard_receiver_slot
        self.room_id_length = room_id_length
        self._lock = threading.RLock()
        self._handlers = {
            JOIN_ROOM: (JoinRoomMessage, lambda c, m: self.on_join_room(c, m.room_id, m.role)),
            CHAT_MESSAGE: (ChatMessageIn, lambda c, m: self.on_chat_message(c, m.room_id, m.text)),
            TERMINATE_ROOM: (TerminateRoomMessage, lambda c, m: self.on_terminate_room(c, m.room_id)),
            LEAVE_QUEUE: (LeaveQueueMessage, lambda c, m: self.on_leave_queue(c)),
            JOIN_QUEUE: (JoinQueueMessage, lambda c, m: self.on_join_queue(c)),
        }
        logger.info(f"Initializing MatchingBackend (guard_receiver_slot={guard_receiver_slot})")

    def generate_room_id(self) -> str:
        return uuid.uuid4().hex[:self.room_id_length]

    # --- queue helpers (caller holds the lock) ---

    def _queue_index(self, connection) -> int:
        return next((i for i, entry in enumerate(self.queue) if entry.connection is connection), -1)

    def _enqueue(self, connection):
        index = self._queue_index(connection)
        if index == -1:
            self.queue.append(WaitingEntry(connection=connection, session_id=connection.session_id))
            position = len(self.queue)
            logger.info(f"User {connection.session_id} added to waiting queue. Queue length: {position}")
        else:
            position = index + 1
            logger.debug(f"User {connection.session_id} already queued at position {position}")
        connection.send(QueueStatusMessage(message=QUEUE_WAITING_MESSAGE, position=position))

    def _dequeue(self, connection) -> bool:
        index = self._queue_index(connection)
        if index == -1:
            return False
        del self.queue[index]
        logger.info(f"User {connection.session_id} removed from waiting queue. Queue length: {len(self.queue)}")
        return True

    # --- room helpers (caller holds the lock) ---

    def _resolve_room(self, connection, room_id_hint: Optional[str]) -> Optional[Room]:
        room_id = connection.room_id or room_id_hint
        if not room_id:
            return None
        return self.rooms.get(room_id)

    def _delete_room(self, room: Room):
        for occupant in room.occupants():
            if occupant.room_id == room.room_id:
                occupant.clear_room()
        self.rooms.pop(room.room_id, None)
        logger.info(f"Room {room.room_id} has been terminated and cleaned up")

    def _leave_current_room(self, connection, keep_room_id: Optional[str] = None):
        """Vacate whatever slot the connection holds, dropping the room if that empties it."""
        cached = connection.get_room()
        if cached is None:
            return
        room = self.rooms.get(cached[0])
        connection.clear_room()
        if room is None:
            return
        room.vacate(connection)
        if room.is_empty and room.room_id != keep_room_id:
            self.rooms.pop(room.room_id, None)
            logger.info(f"Room {room.room_id} is empty, deleting")

    # --- events ---

    def on_connect(self, connection):
        with self._lock:
            connection.session_id = str(uuid.uuid4())
            self.connections.add(connection)
            logger.info(f"User {connection.session_id} connected")
            self._enqueue(connection)
            self.run_matching_pass()

    def run_matching_pass(self):
        with self._lock:
            while len(self.queue) >= 2:
                sender = self.queue.pop(0).connection
                receiver = self.queue.pop(0).connection

                room_id = self.generate_room_id()
                self.rooms[room_id] = Room(room_id=room_id, sender=sender, receiver=receiver)
                sender.set_room(room_id, SENDER)
                receiver.set_room(room_id, RECEIVER)

                for connection, role in ((sender, SENDER), (receiver, RECEIVER)):
                    connection.send(MatchedMessage(room_id=room_id, role=role, message=MATCHED_MESSAGE))

                logger.info(f"Users matched in room: {room_id} ({sender.session_id} / {receiver.session_id})")

    def on_join_room(self, connection, room_id: str, role: str):
        with self._lock:
            self._dequeue(connection)

            room = self.rooms.get(room_id)
            if room is None:
                room = Room(room_id=room_id)
                self.rooms[room_id] = room
                logger.info(f"Room {room_id} created by manual join")

            occupant = room.occupant(role)
            guarded = role == SENDER or self.guard_receiver_slot
            if guarded and occupant is not None:
                logger.info(f"Manual join rejected for {connection.session_id}: room {room_id} already has a {role}")
                connection.send(ErrorMessage(message=f"Room already has a {role}"))
                return

            self._leave_current_room(connection, keep_room_id=room_id)
            occupant = room.occupant(role)
            if occupant is not None and occupant is not connection:
                # displaced receiver keeps no back-reference to a room that no longer holds it
                occupant.clear_room()
                logger.info(f"Receiver {occupant.session_id} replaced in room {room_id}")

            room.assign(role, connection)
            connection.set_room(room_id, role)
            logger.info(f"User {connection.session_id} manually joined room {room_id} as {role}")

    def on_chat_message(self, connection, room_id_hint: Optional[str], text: str):
        with self._lock:
            room = self._resolve_room(connection, room_id_hint)
            if room is None:
                logger.debug(f"Dropping chat from {connection.session_id}: no such room")
                return
            role = room.role_of(connection)
            peer = room.occupant(opposite_role(role)) if role else None
            if peer is None:
                logger.debug(f"Dropping chat from {connection.session_id}: not routable in room {room.room_id}")
                return
            peer.send(ChatRelayMessage(text=text, from_role=role))

    def on_terminate_room(self, connection, room_id_hint: Optional[str]):
        with self._lock:
            room = self._resolve_room(connection, room_id_hint)
            role = room.role_of(connection) if room else None
            if role is None:
                logger.debug(f"Ignoring terminate from {connection.session_id}: not an occupant")
                return
            peer = room.occupant(opposite_role(role))
            if peer is not None:
                peer.send(ParticipantLeftMessage(role=role))
            self._delete_room(room)

    def on_leave_queue(self, connection):
        with self._lock:
            self._dequeue(connection)
            connection.send(LeftQueueMessage(message=LEFT_QUEUE_MESSAGE))

    def on_join_queue(self, connection):
        with self._lock:
            if connection.room_id is not None:
                connection.send(ErrorMessage(message=ALREADY_IN_ROOM_MESSAGE))
                return
            self._enqueue(connection)
            self.run_matching_pass()

    def on_close(self, connection):
        with self._lock:
            self.connections.discard(connection)
            self._dequeue(connection)

            cached = connection.get_room()
            connection.clear_room()
            room = self.rooms.get(cached[0]) if cached else None
            role = room.role_of(connection) if room else None
            if role is None:
                logger.info(f"Connection {connection.session_id} closed")
                return

            peer = room.occupant(opposite_role(role))
            self._delete_room(room)

            if peer is not None and peer.is_open:
                peer.send(ParticipantLeftMessage(role=role, message=PARTNER_DISCONNECTED_MESSAGE))
                self._enqueue(peer)
                logger.info(f"User {peer.session_id} put back in queue after partner disconnected")
                self.run_matching_pass()
            logger.info(f"Connection {connection.session_id} closed")

    def dispatch(self, connection, payload: Any):
        """Route one parsed inbound frame to its handler by `type`."""
        if not isinstance(payload, dict):
            logger.warning(f"Dropping non-object payload from {connection.session_id}")
            return
        message_type = payload.get("type")
        handler = self._handlers.get(message_type)
        if handler is None:
            logger.info(f"Unknown message type from {connection.session_id}: {message_type}")
            return
        model, handle = handler
        try:
            message = model.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Dropping invalid {message_type} from {connection.session_id}: {e.error_count()} errors")
            return
        handle(connection, message)

    # --- read-only views ---

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    def state_of(self, connection) -> ConnectionState:
        with self._lock:
            if not connection.is_open:
                return ConnectionState.CLOSED
            if self._queue_index(connection) != -1:
                return ConnectionState.QUEUED
            room = self.rooms.get(connection.room_id) if connection.room_id else None
            if room is None:
                return ConnectionState.UNASSIGNED
            return ConnectionState.PAIRED if room.is_full else ConnectionState.MANUALLY_JOINED

    def room_details(self, room_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            room = self.rooms.get(room_id)
            if room is None:
                return None
            return {
                "room_id": room.room_id,
                "created_at": room.created_at.isoformat(),
                "has_sender": room.sender is not None,
                "has_receiver": room.receiver is not None,
                "is_full": room.is_full,
            }

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "queue_length": len(self.queue),
                "active_rooms": len(self.rooms),
                "paired_rooms": sum(1 for room in self.rooms.values() if room.is_full),
                "connections": len(self.connections),
            }


matching_backend = MatchingBackend()
