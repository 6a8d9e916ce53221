# main.py

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import uvicorn

from config import settings
from config.livekit_config import validate_environment, livekit_configured, livekit_manager
from dependencies import get_room_service
from exceptions import RoomServiceError
from room_service import RoomSessionService

# Import route modules
from routes.room_management import router as room_router
from routes.participant_management import router as participant_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle app startup and shutdown"""
    logger.info(f"Starting up {settings.APP_NAME}")
    try:
        validate_environment()
        logger.info("Environment validation passed")
    except Exception as e:
        logger.error(f"Environment validation failed: {e}")
        raise

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    try:
        await livekit_manager.close_client()
        logger.info("LiveKit client closed successfully")
    except Exception as e:
        logger.warning(f"Error closing LiveKit client: {e}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Ephemeral meeting rooms with a host-moderated waiting room",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url=None if settings.IS_PRODUCTION else "/docs",
    redoc_url=None if settings.IS_PRODUCTION else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(room_router, prefix="/api", tags=["Room Management"])
app.include_router(participant_router, prefix="/api", tags=["Participant Management"])

ENDPOINTS = {
    "create_room": "/api/rooms",
    "list_rooms": "/api/rooms",
    "room_status": "/api/rooms/{room_id}",
    "join_room": "/api/rooms/{room_id}/join",
    "approve_user": "/api/rooms/{room_id}/approve/{user_id}",
    "user_status": "/api/rooms/{room_id}/user/{user_id}/status",
    "waiting_list": "/api/rooms/{room_id}/waiting",
    "participants": "/api/rooms/{room_id}/participants",
    "leave_room": "/api/rooms/{room_id}/leave/{user_id}",
    "end_room": "/api/rooms/{room_id}/end",
    "health": "/health",
}


@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "status": "running",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "endpoints": ENDPOINTS,
    }


@app.get("/health")
async def health_check(service: RoomSessionService = Depends(get_room_service)):
    return {
        "status": "healthy",
        "livekit_configured": livekit_configured(),
        "active_rooms": len(service.registry),
        "environment": settings.ENVIRONMENT,
    }


@app.exception_handler(RoomServiceError)
async def room_service_error_handler(request: Request, exc: RoomServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.exception_handler(404)
async def not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={
            "error": "endpoint_not_found",
            "message": "The requested endpoint does not exist",
            "available_endpoints": sorted(set(ENDPOINTS.values())),
        }
    )


@app.exception_handler(500)
async def internal_server_error_handler(request, exc):
    logger.error(f"Internal server error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=False,
        log_level="info",
        access_log=True,
        # Rooms live in process memory
        workers=1,
    )
