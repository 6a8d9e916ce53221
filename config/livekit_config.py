import os
from livekit import api
import logging

from config import settings

logger = logging.getLogger(__name__)

REQUIRED_VARS = ["LIVEKIT_API_KEY", "LIVEKIT_API_SECRET", "LIVEKIT_URL"]


def _setting(var: str) -> str:
    # Environment wins over values captured from .env at import time
    return os.getenv(var) or getattr(settings, var)


def validate_environment():
    """Validate that all required environment variables are set"""
    missing = [var for var in REQUIRED_VARS if not _setting(var)]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")


def livekit_configured() -> bool:
    return all(_setting(var) for var in REQUIRED_VARS)


def livekit_credentials():
    """Return (url, api_key, api_secret) read at call time"""
    return _setting("LIVEKIT_URL"), _setting("LIVEKIT_API_KEY"), _setting("LIVEKIT_API_SECRET")


class LiveKitManager:
    """Singleton LiveKit server client managed at the app level"""

    _instance = None
    _client = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def get_client(self):
        if self._client is None:
            url, api_key, api_secret = livekit_credentials()
            self._client = api.LiveKitAPI(url=url, api_key=api_key, api_secret=api_secret)
        return self._client

    async def close_client(self):
        if self._client:
            await self._client.aclose()
            self._client = None


# Global manager instance
livekit_manager = LiveKitManager()
