"""Error taxonomy for the room session service.

Every error carries the HTTP status it is reported with and a stable ``code``
clients can branch on. ``NotFoundError`` and ``InvalidStateError`` are
client-correctable; ``UpstreamError`` means an external collaborator failed
and the caller decides whether to retry.
"""


class RoomServiceError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(RoomServiceError):
    status_code = 404
    code = "not_found"


class RoomNotFound(NotFoundError):
    code = "room_not_found"
    default_message = "Room not found"


class UserNotFound(NotFoundError):
    code = "user_not_found"
    default_message = "User not found"


class InvalidStateError(RoomServiceError):
    status_code = 400
    code = "invalid_state"


class RoomInactive(InvalidStateError):
    code = "room_inactive"
    default_message = "Room is not active"


class UserNotWaiting(InvalidStateError):
    # Reported as 404, the user is absent from the waiting room
    status_code = 404
    code = "user_not_waiting"
    default_message = "User not found in waiting room"


class UpstreamError(RoomServiceError):
    code = "upstream_error"


class IdentityProviderError(UpstreamError):
    status_code = 500
    code = "identity_provider_error"
    default_message = "Failed to issue user identity"


class MediaServerError(UpstreamError):
    status_code = 502
    code = "media_server_error"
    default_message = "Media server request failed"
