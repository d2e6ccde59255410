from __future__ import annotations

from typing import Protocol

from messaging_service.application.dto.identity import Identity, VerifiedToken


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> VerifiedToken: ...


class IdentityProvider(Protocol):
    async def resolve(self, token: str) -> Identity:
        """Verify ``token`` and load the caller's profile. Raises AuthError."""
        ...
