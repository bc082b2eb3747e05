import pytest
from pydantic import BaseModel

from backend import MatchingBackend, matching_backend
from connection import Connection


class RecordingConnection(Connection):
    """Connection double that keeps every outbound message in a list."""

    def __init__(self, name=""):
        super().__init__(websocket=None)
        self.name = name
        self.sent = []

    def __repr__(self):
        return f"<RecordingConnection {self.name}>"

    def send(self, message):
        if not self.is_open:
            return
        if isinstance(message, BaseModel):
            message = message.model_dump(by_alias=True, exclude_none=True)
        self.sent.append(message)

    def take(self):
        sent, self.sent = self.sent, []
        return sent


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def backend():
    return MatchingBackend(guard_receiver_slot=False)


@pytest.fixture
def connect(backend):
    def _connect(name=""):
        connection = RecordingConnection(name)
        backend.on_connect(connection)
        return connection
    return _connect


@pytest.fixture
def close(backend):
    def _close(connection):
        connection.mark_closed()
        backend.on_close(connection)
    return _close


@pytest.fixture
def reset_matching_backend():
    matching_backend.queue.clear()
    matching_backend.rooms.clear()
    matching_backend.connections.clear()
    yield matching_backend
    matching_backend.queue.clear()
    matching_backend.rooms.clear()
    matching_backend.connections.clear()
