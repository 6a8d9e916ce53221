from dataclasses import dataclass
from datetime import timedelta
from livekit import api
import jwt as jwt_lib
import logging
import uuid

from exceptions import IdentityProviderError

logger = logging.getLogger(__name__)

# Scope names understood by issue_token
SCOPE_VOIP = "voip"
SCOPE_ADMIN = "admin"


@dataclass(frozen=True)
class IssuedCredential:
    identity: str
    token: str


class LiveKitIdentityProvider:
    """
    Issues opaque user handles and LiveKit access tokens.

    A handle is only meaningful to the calling transport; the room registry
    uses it as a plain key. Tokens are bound to a single room.
    """

    def __init__(self, api_key: str, api_secret: str, token_ttl: timedelta = timedelta(hours=24)):
        self.api_key = api_key
        self.api_secret = api_secret
        self.token_ttl = token_ttl

    async def create_identity(self) -> str:
        return f"user-{uuid.uuid4().hex}"

    async def issue_token(self, identity: str, room_id: str, scopes, display_name: str = None) -> str:
        try:
            token = api.AccessToken(self.api_key, self.api_secret)
            token.with_identity(identity)
            if display_name:
                token.with_name(display_name)

            # Without the voip scope the token identifies the user but cannot enter the room
            media = SCOPE_VOIP in scopes
            grants = api.VideoGrants(
                room=room_id,
                room_join=media,
                can_publish=media,
                can_subscribe=media,
                can_publish_data=media,
            )
            if SCOPE_ADMIN in scopes:
                grants.room_admin = True
            token.with_grants(grants)
            token.with_ttl(self.token_ttl)

            jwt_token = token.to_jwt()
        except Exception as e:
            logger.error(f"Error generating token for {identity}: {e}")
            raise IdentityProviderError(f"Failed to generate access token: {e}") from e

        if logger.isEnabledFor(logging.DEBUG):
            try:
                decoded = jwt_lib.decode(jwt_token, options={"verify_signature": False})
                logger.debug(f"Token payload: {decoded}")
            except jwt_lib.PyJWTError as e:
                logger.warning(f"Could not decode token for debugging: {e}")

        return jwt_token

    async def issue(self, room_id: str, display_name: str, scopes) -> IssuedCredential:
        """Create a fresh identity and a token for it in one step"""
        try:
            identity = await self.create_identity()
        except Exception as e:
            logger.error(f"Error creating identity: {e}")
            raise IdentityProviderError(f"Failed to create identity: {e}") from e

        token = await self.issue_token(identity, room_id, scopes, display_name=display_name)
        return IssuedCredential(identity=identity, token=token)
