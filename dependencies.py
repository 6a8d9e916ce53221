from datetime import timedelta
from functools import lru_cache

from config import settings
from config.livekit_config import livekit_credentials, livekit_manager
from identity_provider import LiveKitIdentityProvider
from media_rooms import LiveKitRoomGateway
from room_registry import RoomRegistry
from room_service import RoomSessionService


@lru_cache()
def get_room_service() -> RoomSessionService:
    """Build the process-wide service on first use"""
    ws_url, api_key, api_secret = livekit_credentials()
    identity_provider = LiveKitIdentityProvider(
        api_key=api_key,
        api_secret=api_secret,
        token_ttl=timedelta(hours=settings.TOKEN_TTL_HOURS),
    )
    media_rooms = None
    if settings.LIVEKIT_SYNC_ROOMS:
        media_rooms = LiveKitRoomGateway(livekit_manager, max_participants=settings.MAX_PARTICIPANTS)

    return RoomSessionService(
        registry=RoomRegistry(),
        identity_provider=identity_provider,
        media_rooms=media_rooms,
        room_ttl=timedelta(hours=settings.ROOM_TTL_HOURS),
        ws_url=ws_url,
    )
