# models/schemas.py
from datetime import datetime
from enum import Enum
from pydantic import BaseModel
from typing import Optional


# Where a user stands in a room, as seen by status polling
class UserStatus(str, Enum):
    APPROVED = "approved"
    WAITING = "waiting"
    NOT_FOUND = "not_found"


# Participant model, stored in the registry and returned as-is to clients
class Participant(BaseModel):
    id: str
    name: str
    isHost: bool = False
    isMuted: bool = False
    isVideoOn: bool = True
    isApproved: Optional[bool] = None
    approvedAt: Optional[datetime] = None


# Room-related models
class CreateRoomRequest(BaseModel):
    hostName: str


class CreateRoomResponse(BaseModel):
    roomId: str
    hostToken: str
    hostIdentity: str
    validFrom: datetime
    validUntil: datetime
    wsUrl: str


class RoomStatus(BaseModel):
    id: str
    hostName: str
    participantCount: int
    waitingCount: int
    isActive: bool
    validFrom: datetime
    validUntil: datetime


class SuccessResponse(BaseModel):
    success: bool = True


# Participant-related models
class JoinRoomRequest(BaseModel):
    userName: str
    isHost: bool = False


class JoinRoomResponse(BaseModel):
    userToken: str
    userIdentity: str
    isInWaitingRoom: bool
    roomValidUntil: datetime
    wsUrl: str


class ApproveUserResponse(BaseModel):
    success: bool = True
    message: str = "User approved successfully"
    user: Participant


class UserStatusResponse(BaseModel):
    isApproved: bool
    isInRoom: bool
    isWaiting: Optional[bool] = None
    user: Optional[Participant] = None
    # Room-join token for an admitted user, replaces the waiting-room token
    userToken: Optional[str] = None


class ParticipantLookupResponse(BaseModel):
    found: bool
    user: Optional[Participant] = None
    location: Optional[str] = None
    message: Optional[str] = None


class MediaStateUpdate(BaseModel):
    isMuted: Optional[bool] = None
    isVideoOn: Optional[bool] = None


class MediaStateResponse(BaseModel):
    success: bool = True
    user: Participant
