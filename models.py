from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from message_types import RECEIVER, SENDER

Role = Literal["sender", "receiver"]


def opposite_role(role: str) -> str:
    return RECEIVER if role == SENDER else SENDER


class ConnectionState(str, Enum):
    UNASSIGNED = "unassigned"
    QUEUED = "queued"
    MANUALLY_JOINED = "manually_joined"
    PAIRED = "paired"
    CLOSED = "closed"


@dataclass
class WaitingEntry:
    connection: Any  # connection.Connection
    session_id: str
    enqueued_at: datetime = field(default_factory=datetime.now)


@dataclass
class Room:
    """Pairing record with one slot per role.

    The room holds the only references to its occupants; connections keep
    just the room id and role as a lookup cache.
    """

    room_id: str
    sender: Optional[Any] = None
    receiver: Optional[Any] = None
    created_at: datetime = field(default_factory=datetime.now)

    def occupant(self, role: str):
        return self.sender if role == SENDER else self.receiver

    def assign(self, role: str, connection) -> None:
        if role == SENDER:
            self.sender = connection
        else:
            self.receiver = connection

    def role_of(self, connection) -> Optional[str]:
        if connection is None:
            return None
        if self.sender is connection:
            return SENDER
        if self.receiver is connection:
            return RECEIVER
        return None

    def vacate(self, connection) -> Optional[str]:
        role = self.role_of(connection)
        if role is not None:
            self.assign(role, None)
        return role

    def occupants(self):
        return [c for c in (self.sender, self.receiver) if c is not None]

    @property
    def is_full(self) -> bool:
        return self.sender is not None and self.receiver is not None

    @property
    def is_empty(self) -> bool:
        return self.sender is None and self.receiver is None
