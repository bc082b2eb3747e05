from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import QueueStatusResponse, RoomDetailsResponse
from backend import matching_backend
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/queue", response_model=QueueStatusResponse)
async def get_queue_status():
    return QueueStatusResponse(queue_length=matching_backend.queue_length)


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get occupancy of a room.

    Returns:
    - room_id: Room identifier
    - created_at: Room creation timestamp
    - has_sender / has_receiver: Whether each role slot is occupied
    - is_full: Whether both slots are occupied
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    details = matching_backend.room_details(room_id)
    if details is None:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(**details)
