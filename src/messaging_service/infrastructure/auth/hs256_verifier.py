from __future__ import annotations

from uuid import UUID

import jwt

from messaging_service.application.dto.identity import VerifiedToken


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> VerifiedToken:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        return VerifiedToken(subject_id=UUID(payload["sub"]), claims=payload)
