# routes/participant_management.py
from fastapi import APIRouter, Depends
import logging
from dependencies import get_room_service
from exceptions import RoomServiceError, UserNotFound
from models.schemas import (
    ApproveUserResponse,
    JoinRoomRequest,
    JoinRoomResponse,
    MediaStateResponse,
    MediaStateUpdate,
    ParticipantLookupResponse,
    SuccessResponse,
    UserStatus,
    UserStatusResponse,
)
from room_service import RoomSessionService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/rooms/{room_id}/join", response_model=JoinRoomResponse)
async def join_room(
    room_id: str,
    request: JoinRoomRequest,
    service: RoomSessionService = Depends(get_room_service),
):
    """
    Join a room; regular users land in the waiting room
    """
    try:
        logger.info(f"User {request.userName} joining room {room_id}")
        return await service.join_room(room_id, request.userName, request.isHost)

    except RoomServiceError:
        raise
    except Exception as e:
        logger.error(f"Error joining room: {str(e)}")
        raise RoomServiceError(f"Failed to join room: {str(e)}") from e


@router.post("/rooms/{room_id}/approve/{user_id}", response_model=ApproveUserResponse)
async def approve_user(room_id: str, user_id: str, service: RoomSessionService = Depends(get_room_service)):
    """
    Move a user from the waiting room into the room
    """
    user = await service.approve_user(room_id, user_id)
    return ApproveUserResponse(user=user)


@router.get(
    "/rooms/{room_id}/user/{user_id}/status",
    response_model=UserStatusResponse,
    response_model_exclude_none=True,
)
async def check_user_status(room_id: str, user_id: str, service: RoomSessionService = Depends(get_room_service)):
    """
    Approval status polled by clients in the waiting room
    """
    user_status, user, token = service.check_user_status(room_id, user_id)

    if user_status == UserStatus.APPROVED:
        return UserStatusResponse(isApproved=True, isInRoom=True, user=user, userToken=token)
    if user_status == UserStatus.WAITING:
        return UserStatusResponse(isApproved=False, isInRoom=False, isWaiting=True, user=user)

    raise UserNotFound(f"User '{user_id}' not found in room")


@router.get("/rooms/{room_id}/participant/{user_id}", response_model=ParticipantLookupResponse,
            response_model_exclude_none=True)
async def find_participant(room_id: str, user_id: str, service: RoomSessionService = Depends(get_room_service)):
    return service.find_participant(room_id, user_id)


@router.patch("/rooms/{room_id}/participants/{user_id}/media", response_model=MediaStateResponse)
async def update_media_state(
    room_id: str,
    user_id: str,
    request: MediaStateUpdate,
    service: RoomSessionService = Depends(get_room_service),
):
    """
    Record a client-reported mute / video toggle
    """
    user = service.update_media_state(room_id, user_id, request.isMuted, request.isVideoOn)
    return MediaStateResponse(user=user)


@router.post("/rooms/{room_id}/leave/{user_id}", response_model=SuccessResponse)
async def leave_room(room_id: str, user_id: str, service: RoomSessionService = Depends(get_room_service)):
    """
    Remove a user from the room or waiting room; repeated calls succeed
    """
    await service.leave_room(room_id, user_id)
    return SuccessResponse()
