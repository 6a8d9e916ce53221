"""Client side of the polling protocol.

The server never pushes; a client learns about approval, removal or the end
of a room only by polling on a fixed cadence. ``WaitingRoomPoller`` drives a
waiting user until it is admitted or has nothing left to wait for;
``WaitingListPoller`` refreshes a host's list of admittable users.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Protocol

import httpx

from config import settings
from models.schemas import UserStatus

logger = logging.getLogger(__name__)


class WaitOutcome(str, Enum):
    APPROVED = "approved"
    ROOM_ENDED = "room_ended"
    REMOVED = "removed"
    CANCELLED = "cancelled"


class RoomGone(Exception):
    """The room is unknown to the server (never existed or already ended)"""


class CallSession(Protocol):
    """Media transport for a room, driven by the client once admitted"""

    async def start(self, room_id: str, media: Any) -> Any: ...

    async def join(self, room_id: str, media: Any, token: Optional[str] = None) -> Any: ...

    async def leave(self) -> None: ...

    async def end(self) -> None: ...


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        return response.json().get("error")
    except ValueError:
        return None


class RoomApiClient:
    """Thin async wrapper over the room HTTP API"""

    def __init__(self, client: httpx.AsyncClient, prefix: str = "/api"):
        self.client = client
        self.prefix = prefix

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, f"{self.prefix}{path}", **kwargs)
        if response.status_code == 404 and _error_code(response) == "room_not_found":
            raise RoomGone(path)
        response.raise_for_status()
        return response

    async def create_room(self, host_name: str) -> dict:
        response = await self._request("POST", "/rooms", json={"hostName": host_name})
        return response.json()

    async def join_room(self, room_id: str, user_name: str, is_host: bool = False) -> dict:
        response = await self._request("POST", f"/rooms/{room_id}/join",
                                       json={"userName": user_name, "isHost": is_host})
        return response.json()

    async def get_room(self, room_id: str) -> dict:
        response = await self._request("GET", f"/rooms/{room_id}")
        return response.json()

    async def approve_user(self, room_id: str, user_id: str) -> dict:
        response = await self._request("POST", f"/rooms/{room_id}/approve/{user_id}")
        return response.json()

    async def get_waiting_list(self, room_id: str) -> List[dict]:
        response = await self._request("GET", f"/rooms/{room_id}/waiting")
        return response.json()

    async def fetch_user_status(self, room_id: str, user_id: str):
        """Return the user status and the response body (empty when not found)"""
        path = f"/rooms/{room_id}/user/{user_id}/status"
        response = await self.client.get(f"{self.prefix}{path}")
        if response.status_code == 404:
            # Both "user gone" and "room gone" need the follow-up room check
            return UserStatus.NOT_FOUND, {}
        response.raise_for_status()
        body = response.json()
        if body.get("isApproved") and body.get("isInRoom"):
            return UserStatus.APPROVED, body
        if body.get("isWaiting"):
            return UserStatus.WAITING, body
        return UserStatus.NOT_FOUND, body

    async def check_user_status(self, room_id: str, user_id: str) -> UserStatus:
        user_status, _ = await self.fetch_user_status(room_id, user_id)
        return user_status

    async def leave_room(self, room_id: str, user_id: str) -> dict:
        response = await self._request("POST", f"/rooms/{room_id}/leave/{user_id}")
        return response.json()

    async def end_room(self, room_id: str) -> dict:
        response = await self._request("POST", f"/rooms/{room_id}/end")
        return response.json()


class WaitingRoomPoller:
    def __init__(self, api: RoomApiClient, room_id: str, user_id: str,
                 interval: float = settings.POLL_INTERVAL_SECONDS):
        self.api = api
        self.room_id = room_id
        self.user_id = user_id
        self.interval = interval
        # Room-join token handed out with the approval
        self.user_token = None
        self._stopped = asyncio.Event()

    def stop(self):
        self._stopped.set()

    async def poll_once(self) -> Optional[WaitOutcome]:
        """One polling step; None means keep waiting"""
        user_status, body = await self.api.fetch_user_status(self.room_id, self.user_id)
        if user_status == UserStatus.APPROVED:
            self.user_token = body.get("userToken")
            return WaitOutcome.APPROVED
        if user_status == UserStatus.WAITING:
            return None

        try:
            room = await self.api.get_room(self.room_id)
        except RoomGone:
            return WaitOutcome.ROOM_ENDED
        if not room.get("isActive"):
            return WaitOutcome.ROOM_ENDED
        return WaitOutcome.REMOVED

    async def run(self) -> WaitOutcome:
        while not self._stopped.is_set():
            try:
                outcome = await self.poll_once()
            except httpx.HTTPError as e:
                logger.error(f"Error polling user status for {self.user_id}: {e}")
                outcome = None

            if outcome is not None:
                logger.info(f"Waiting room for {self.user_id} in {self.room_id} resolved: {outcome.value}")
                return outcome

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        return WaitOutcome.CANCELLED


class WaitingListPoller:
    def __init__(self, api: RoomApiClient, room_id: str,
                 on_update: Callable[[List[dict]], Optional[Awaitable[None]]],
                 interval: float = settings.POLL_INTERVAL_SECONDS):
        self.api = api
        self.room_id = room_id
        self.on_update = on_update
        self.interval = interval
        self._stopped = asyncio.Event()

    def stop(self):
        self._stopped.set()

    async def run(self):
        while not self._stopped.is_set():
            try:
                waiting = await self.api.get_waiting_list(self.room_id)
            except RoomGone:
                logger.info(f"Room {self.room_id} is gone, waiting list polling stopped")
                return
            except httpx.HTTPError as e:
                logger.error(f"Error fetching waiting list: {e}")
            else:
                result = self.on_update(waiting)
                if asyncio.iscoroutine(result):
                    await result

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass


async def admit_and_join(api: RoomApiClient, call: CallSession, room_id: str, user_id: str,
                         media: Any = None, interval: float = settings.POLL_INTERVAL_SECONDS):
    """
    Wait in the waiting room, then join the call once approved.

    Returns the outcome and the call handle (None unless approved).
    """
    poller = WaitingRoomPoller(api, room_id, user_id, interval=interval)
    outcome = await poller.run()
    if outcome != WaitOutcome.APPROVED:
        return outcome, None
    return outcome, await call.join(room_id, media, token=poller.user_token)
