import os
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

APP_NAME = "Waiting Room Meeting API"
APP_VERSION = "1.0.0"

# LiveKit credentials (validated at startup)
LIVEKIT_URL = os.getenv("LIVEKIT_URL", "")
LIVEKIT_API_KEY = os.getenv("LIVEKIT_API_KEY", "")
LIVEKIT_API_SECRET = os.getenv("LIVEKIT_API_SECRET", "")

# Mirror room creation / removal / deletion to the LiveKit room service
LIVEKIT_SYNC_ROOMS = os.getenv("LIVEKIT_SYNC_ROOMS", "true").lower() == "true"

TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", 24))
ROOM_TTL_HOURS = int(os.getenv("ROOM_TTL_HOURS", 24))
MAX_PARTICIPANTS = int(os.getenv("MAX_PARTICIPANTS", 100))

# Client polling cadence for waiting-room and waiting-list refresh
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", 2.0))

ENVIRONMENT = os.getenv("RAILWAY_ENVIRONMENT_NAME", "development")
IS_PRODUCTION = ENVIRONMENT == "production"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))


def get_allowed_origins():
    """Get allowed origins based on environment"""
    default_origins = [
        "http://localhost:3000",
        "http://localhost:4200",
        "http://localhost:5173",  # Vite dev server
    ]

    env_origins = os.getenv("ALLOWED_ORIGINS", "").split(",")
    env_origins = [origin.strip() for origin in env_origins if origin.strip()]

    # If production origins are set, use them; otherwise use defaults
    return env_origins or default_origins
