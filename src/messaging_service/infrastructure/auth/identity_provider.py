from __future__ import annotations

import logging

import jwt

from messaging_service.application.dto.identity import Identity
from messaging_service.application.exceptions import AuthError
from messaging_service.application.ports.auth import TokenVerifier
from messaging_service.application.uow import UoWFactory

logger = logging.getLogger(__name__)


class JwtIdentityProvider:
    """Resolve a bearer token to an Identity: JWT verification plus profile lookup."""

    def __init__(self, verifier: TokenVerifier, uow_factory: UoWFactory) -> None:
        self._verifier = verifier
        self._uow_factory = uow_factory

    async def resolve(self, token: str) -> Identity:
        try:
            verified = await self._verifier.verify(token)
        except (jwt.PyJWTError, KeyError, ValueError) as exc:
            logger.debug("Token rejected: %s", exc)
            raise AuthError("Invalid token") from exc

        async with self._uow_factory() as uow:
            profile = await uow.profiles.get_by_id(verified.subject_id)
        if profile is None:
            raise AuthError("User profile not found")

        try:
            return Identity.from_profile(profile)
        except ValueError as exc:
            raise AuthError("User profile has an unknown role") from exc
