from fastapi import APIRouter, Depends
import logging
from typing import List
from dependencies import get_room_service
from exceptions import RoomServiceError
from models.schemas import CreateRoomRequest, CreateRoomResponse, Participant, RoomStatus, SuccessResponse
from room_service import RoomSessionService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/rooms", response_model=CreateRoomResponse)
async def create_room(request: CreateRoomRequest, service: RoomSessionService = Depends(get_room_service)):
    """
    Create a new room with the caller as host
    """
    try:
        logger.info(f"Creating room for host: {request.hostName}")
        return await service.create_room(request.hostName)

    except RoomServiceError:
        raise
    except Exception as e:
        logger.error(f"Error creating room: {str(e)}")
        raise RoomServiceError(f"Failed to create room: {str(e)}") from e


@router.get("/rooms", response_model=List[RoomStatus])
async def list_rooms(service: RoomSessionService = Depends(get_room_service)):
    """
    List all active rooms
    """
    return service.list_rooms()


@router.get("/rooms/{room_id}", response_model=RoomStatus)
async def get_room_status(room_id: str, service: RoomSessionService = Depends(get_room_service)):
    """
    Get a status snapshot of a room
    """
    return service.get_room_status(room_id)


@router.get("/rooms/{room_id}/waiting", response_model=List[Participant])
async def get_waiting_list(room_id: str, service: RoomSessionService = Depends(get_room_service)):
    """
    Get users waiting for host approval
    """
    return service.get_waiting_list(room_id)


@router.get("/rooms/{room_id}/participants", response_model=List[Participant])
async def get_participants(room_id: str, service: RoomSessionService = Depends(get_room_service)):
    return service.get_participants(room_id)


@router.post("/rooms/{room_id}/end", response_model=SuccessResponse)
async def end_room(room_id: str, service: RoomSessionService = Depends(get_room_service)):
    """
    End a room; waiting and admitted users are dropped
    """
    await service.end_room(room_id)
    return SuccessResponse()
