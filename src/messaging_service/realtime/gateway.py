from __future__ import annotations

import logging

from messaging_service.application.dto.identity import Identity
from messaging_service.application.exceptions import AuthError, StoreError
from messaging_service.application.ports.auth import IdentityProvider
from messaging_service.realtime.presence import PresenceRegistry
from messaging_service.realtime.rooms import RoomMembershipManager
from messaging_service.realtime.state import Connection

logger = logging.getLogger(__name__)


class ConnectionGateway:
    """Admits authenticated connections and tears them down on close."""

    def __init__(
        self,
        identity_provider: IdentityProvider,
        presence: PresenceRegistry,
        rooms: RoomMembershipManager,
    ) -> None:
        self._identity_provider = identity_provider
        self._presence = presence
        self._rooms = rooms

    async def authenticate(self, token: str | None) -> Identity:
        """Resolve a bearer credential. Raises AuthError; never creates state."""
        if not token:
            raise AuthError("No token provided")
        try:
            return await self._identity_provider.resolve(token)
        except StoreError as exc:
            raise AuthError("Profile lookup failed") from exc

    async def open(self, conn: Connection) -> None:
        identity = conn.identity
        logger.info("User connected: %s (%s)", identity.display_name, identity.id)
        await self._presence.add_connection(identity.id, conn)

    async def close(self, conn: Connection) -> None:
        identity = conn.identity
        logger.info("User disconnected: %s (%s)", identity.display_name, identity.id)
        went_offline = await self._presence.remove_connection(identity.id, conn)
        if went_offline:
            await self._rooms.leave_all(identity.id)
