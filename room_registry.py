from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
import threading
import uuid

from exceptions import RoomNotFound
from models.schemas import Participant, RoomStatus

PARTICIPANTS = "participants"
WAITING = "waiting"


class Room:
    """
    A meeting room and its membership.

    ``participants`` and ``waiting_list`` are disjoint: a user is held by at
    most one of them. The collection helpers below must only be called while
    holding ``lock`` (see ``RoomRegistry.locked``).
    """

    def __init__(self, room_id: str, host: Participant, ttl: timedelta, created_at: Optional[datetime] = None):
        self.id = room_id
        self.host_id = host.id
        self.host_name = host.name
        self.is_active = True
        self.created_at = created_at or datetime.now(timezone.utc)
        self.valid_until = self.created_at + ttl
        self.participants: Dict[str, Participant] = {host.id: host}
        self.waiting_list: Dict[str, Participant] = {}
        # Room-join tokens handed out on approval, keyed by user
        self.admission_tokens: Dict[str, str] = {}
        self.lock = threading.Lock()

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) > self.valid_until

    def admit(self, participant: Participant):
        self.participants[participant.id] = participant

    def enqueue(self, participant: Participant):
        self.waiting_list[participant.id] = participant

    def promote(self, user_id: str, approved_at: datetime, token: Optional[str] = None) -> Optional[Participant]:
        # Delete first; nothing is inserted if the user was not waiting
        participant = self.waiting_list.pop(user_id, None)
        if participant is None:
            return None
        participant.isApproved = True
        participant.approvedAt = approved_at
        self.participants[user_id] = participant
        if token:
            self.admission_tokens[user_id] = token
        return participant

    def discard(self, user_id: str) -> Optional[str]:
        """Remove a user from whichever collection holds it, returning that collection"""
        self.admission_tokens.pop(user_id, None)
        if self.participants.pop(user_id, None) is not None:
            return PARTICIPANTS
        if self.waiting_list.pop(user_id, None) is not None:
            return WAITING
        return None

    def locate(self, user_id: str):
        if user_id in self.participants:
            return PARTICIPANTS, self.participants[user_id]
        if user_id in self.waiting_list:
            return WAITING, self.waiting_list[user_id]
        return None, None

    def summary(self) -> RoomStatus:
        return RoomStatus(
            id=self.id,
            hostName=self.host_name,
            participantCount=len(self.participants),
            waitingCount=len(self.waiting_list),
            isActive=self.is_active,
            validFrom=self.created_at,
            validUntil=self.valid_until,
        )


class RoomRegistry:
    """Thread-safe in-memory store of all rooms, owned by the process"""

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._issued_ids = set()
        self._lock = threading.Lock()

    def new_room_id(self) -> str:
        with self._lock:
            while True:
                room_id = uuid.uuid4().hex
                if room_id not in self._issued_ids:
                    self._issued_ids.add(room_id)
                    return room_id

    def put(self, room: Room):
        with self._lock:
            self._issued_ids.add(room.id)
            self._rooms[room.id] = room

    def get(self, room_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound(f"Room '{room_id}' not found")
        return room

    def remove(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.pop(room_id, None)

    def list(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    @contextmanager
    def locked(self, room_id: str):
        """Yield the room with exclusive access to its collections"""
        room = self.get(room_id)
        with room.lock:
            # The room may have been ended while we waited for the lock
            with self._lock:
                current = self._rooms.get(room_id)
            if current is not room:
                raise RoomNotFound(f"Room '{room_id}' not found")
            yield room
