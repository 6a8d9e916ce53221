from datetime import datetime, timedelta, timezone
import logging

from exceptions import RoomInactive, UserNotFound, UserNotWaiting
from identity_provider import SCOPE_ADMIN, SCOPE_VOIP
from models.schemas import (
    CreateRoomResponse,
    JoinRoomResponse,
    Participant,
    ParticipantLookupResponse,
    UserStatus,
)
from room_registry import PARTICIPANTS, Room, RoomRegistry

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class RoomSessionService:
    """
    Room lifecycle operations against a RoomRegistry.

    External calls (identity issuance, media server) never run while a room
    lock is held. Mutations either complete with every membership invariant
    intact or leave the registry untouched.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        identity_provider,
        media_rooms=None,
        room_ttl: timedelta = timedelta(hours=24),
        ws_url: str = "",
    ):
        self.registry = registry
        self.identity_provider = identity_provider
        self.media_rooms = media_rooms
        self.room_ttl = room_ttl
        self.ws_url = ws_url

    async def create_room(self, host_name: str) -> CreateRoomResponse:
        room_id = self.registry.new_room_id()
        credential = await self.identity_provider.issue(room_id, host_name, [SCOPE_VOIP, SCOPE_ADMIN])

        if self.media_rooms is not None:
            await self.media_rooms.create_room(room_id, host_name)

        host = Participant(id=credential.identity, name=host_name, isHost=True)
        room = Room(room_id, host, self.room_ttl)
        self.registry.put(room)
        logger.info(f"Room {room_id} created by {host_name} ({host.id})")

        return CreateRoomResponse(
            roomId=room_id,
            hostToken=credential.token,
            hostIdentity=credential.identity,
            validFrom=room.created_at,
            validUntil=room.valid_until,
            wsUrl=self.ws_url,
        )

    def _ensure_joinable(self, room: Room):
        if not room.is_active:
            raise RoomInactive()
        if room.is_expired():
            raise RoomInactive("Room is not active or has expired")

    async def join_room(self, room_id: str, user_name: str, is_host: bool = False) -> JoinRoomResponse:
        # Fail fast before asking the identity provider for anything
        with self.registry.locked(room_id) as room:
            self._ensure_joinable(room)

        # Waiting users get a token that cannot join the media room
        scopes = [SCOPE_VOIP] if is_host else []
        credential = await self.identity_provider.issue(room_id, user_name, scopes)
        user = Participant(id=credential.identity, name=user_name)

        with self.registry.locked(room_id) as room:
            self._ensure_joinable(room)
            if is_host:
                # No check that the caller owns the host identity
                logger.warning(f"{user_name} joined room {room_id} as host, bypassing the waiting room")
                room.admit(user)
            else:
                room.enqueue(user)
            valid_until = room.valid_until

        logger.info(f"{user_name} ({user.id}) joined room {room_id}, waiting={not is_host}")
        return JoinRoomResponse(
            userToken=credential.token,
            userIdentity=credential.identity,
            isInWaitingRoom=not is_host,
            roomValidUntil=valid_until,
            wsUrl=self.ws_url,
        )

    def get_room_status(self, room_id: str):
        with self.registry.locked(room_id) as room:
            return room.summary()

    def list_rooms(self):
        statuses = []
        for room in self.registry.list():
            with room.lock:
                # Ended between the listing and taking the lock
                if not room.is_active:
                    continue
                statuses.append(room.summary())
        return statuses

    def _ensure_waiting(self, room: Room, user_id: str) -> Participant:
        if not room.is_active:
            raise RoomInactive()
        participant = room.waiting_list.get(user_id)
        if participant is None:
            raise UserNotWaiting(f"User '{user_id}' not found in waiting room")
        return participant

    async def approve_user(self, room_id: str, user_id: str) -> Participant:
        with self.registry.locked(room_id) as room:
            name = self._ensure_waiting(room, user_id).name

        # The room-join token is issued before the move; a lost race discards it
        token = await self.identity_provider.issue_token(user_id, room_id, [SCOPE_VOIP], display_name=name)

        with self.registry.locked(room_id) as room:
            self._ensure_waiting(room, user_id)
            participant = room.promote(user_id, _now(), token=token)
            approved = participant.model_copy()

        logger.info(f"User {user_id} approved into room {room_id}")
        return approved

    def check_user_status(self, room_id: str, user_id: str):
        """Return (status, participant copy, room-join token issued on approval)"""
        with self.registry.locked(room_id) as room:
            location, participant = room.locate(user_id)
            if participant is None:
                return UserStatus.NOT_FOUND, None, None
            if location == PARTICIPANTS:
                return UserStatus.APPROVED, participant.model_copy(), room.admission_tokens.get(user_id)
            return UserStatus.WAITING, participant.model_copy(), None

    def get_waiting_list(self, room_id: str):
        with self.registry.locked(room_id) as room:
            return [p.model_copy() for p in room.waiting_list.values()]

    def get_participants(self, room_id: str):
        with self.registry.locked(room_id) as room:
            return [p.model_copy() for p in room.participants.values()]

    def find_participant(self, room_id: str, user_id: str) -> ParticipantLookupResponse:
        with self.registry.locked(room_id) as room:
            location, participant = room.locate(user_id)
            if participant is None:
                return ParticipantLookupResponse(found=False, message="User not found in room")
            return ParticipantLookupResponse(found=True, user=participant.model_copy(), location=location)

    def update_media_state(self, room_id: str, user_id: str, is_muted=None, is_video_on=None) -> Participant:
        with self.registry.locked(room_id) as room:
            if not room.is_active:
                raise RoomInactive()
            _, participant = room.locate(user_id)
            if participant is None:
                raise UserNotFound(f"User '{user_id}' not found in room")
            if is_muted is not None:
                participant.isMuted = is_muted
            if is_video_on is not None:
                participant.isVideoOn = is_video_on
            return participant.model_copy()

    async def leave_room(self, room_id: str, user_id: str):
        with self.registry.locked(room_id) as room:
            if not room.is_active:
                raise RoomInactive()
            if user_id == room.host_id:
                # The creator stays a participant until the room is ended
                logger.info(f"Host {user_id} left room {room_id}, entry kept until the room ends")
                return
            removed_from = room.discard(user_id)

        if removed_from is None:
            logger.info(f"Leave for {user_id} in room {room_id}: user already gone")
            return
        logger.info(f"User {user_id} left room {room_id} (was in {removed_from})")

        if removed_from == PARTICIPANTS and self.media_rooms is not None:
            try:
                await self.media_rooms.remove_participant(room_id, user_id)
            except Exception as e:
                logger.warning(f"Could not remove {user_id} from media room {room_id}: {e}")

    async def end_room(self, room_id: str):
        with self.registry.locked(room_id) as room:
            room.is_active = False
            self.registry.remove(room_id)
            waiting = len(room.waiting_list)

        logger.info(f"Room {room_id} ended, {waiting} waiting user(s) dropped")

        if self.media_rooms is not None:
            try:
                await self.media_rooms.delete_room(room_id)
            except Exception as e:
                logger.warning(f"Could not delete media room {room_id}: {e}")
