import json
import logging
from livekit import api

from config.livekit_config import livekit_manager
from exceptions import MediaServerError

logger = logging.getLogger(__name__)


class LiveKitRoomGateway:
    """Mirrors room lifecycle changes to the LiveKit room service"""

    def __init__(self, manager=livekit_manager, max_participants: int = 100):
        self.manager = manager
        self.max_participants = max_participants

    async def create_room(self, room_id: str, host_name: str):
        try:
            lk_api = await self.manager.get_client()
            room_opts = api.CreateRoomRequest(
                name=room_id,
                max_participants=self.max_participants,
                metadata=json.dumps({"hostName": host_name}),
            )
            room = await lk_api.room.create_room(room_opts)
            logger.info(f"Created LiveKit room {room_id} with SID: {room.sid}")
        except Exception as e:
            logger.error(f"Error creating LiveKit room {room_id}: {e}")
            raise MediaServerError(f"Failed to create media room: {e}") from e

    async def remove_participant(self, room_id: str, identity: str):
        lk_api = await self.manager.get_client()
        remove_request = api.RoomParticipantIdentity(room=room_id, identity=identity)
        await lk_api.room.remove_participant(remove_request)
        logger.info(f"Removed {identity} from LiveKit room {room_id}")

    async def delete_room(self, room_id: str):
        lk_api = await self.manager.get_client()
        await lk_api.room.delete_room(api.DeleteRoomRequest(room=room_id))
        logger.info(f"Deleted LiveKit room {room_id}")
