from pydantic import BaseModel


class QueueStatusResponse(BaseModel):
    queue_length: int

class HealthResponse(BaseModel):
    status: str
    queue_length: int
    active_rooms: int
    paired_rooms: int
    connections: int

class RoomDetailsResponse(BaseModel):
    room_id: str
    created_at: str
    has_sender: bool
    has_receiver: bool
    is_full: bool
