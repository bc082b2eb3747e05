from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional

from models import Role


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- inbound ---

class JoinRoomMessage(WireModel):
    type: Literal["joinRoom"] = "joinRoom"
    room_id: str = Field(alias="roomId", min_length=1)
    role: Role

class ChatMessageIn(WireModel):
    type: Literal["chatMessage"] = "chatMessage"
    room_id: Optional[str] = Field(None, alias="roomId")
    text: str

    @field_validator("text", mode="before")
    @classmethod
    def stringify_number(cls, value):
        # clients may send bare numbers as chat text
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

class TerminateRoomMessage(WireModel):
    type: Literal["terminateRoom"] = "terminateRoom"
    room_id: Optional[str] = Field(None, alias="roomId")

class LeaveQueueMessage(WireModel):
    type: Literal["leaveQueue"] = "leaveQueue"

class JoinQueueMessage(WireModel):
    type: Literal["joinQueue"] = "joinQueue"


# --- outbound ---

class QueueStatusMessage(WireModel):
    type: Literal["queueStatus"] = "queueStatus"
    message: str
    position: int

class MatchedMessage(WireModel):
    type: Literal["matched"] = "matched"
    room_id: str = Field(alias="roomId")
    role: Role
    message: str

class ChatRelayMessage(WireModel):
    type: Literal["chatMessage"] = "chatMessage"
    text: str
    from_role: Role = Field(alias="from")

class ParticipantLeftMessage(WireModel):
    type: Literal["participantLeft"] = "participantLeft"
    role: Role
    message: Optional[str] = None

class LeftQueueMessage(WireModel):
    type: Literal["leftQueue"] = "leftQueue"
    message: str

class ErrorMessage(WireModel):
    type: Literal["error"] = "error"
    message: str
