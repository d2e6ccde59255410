from __future__ import annotations

from uuid import UUID

import jwt
from jwt import PyJWKClient

from messaging_service.application.dto.identity import VerifiedToken


class JWKSVerifier:
    """Verify JWTs using a remote JWKS endpoint."""

    def __init__(self, jwks_url: str) -> None:
        self._jwks_url = jwks_url
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> VerifiedToken:
        signing_key = self._jwk_client.get_signing_key_from_jwt(token)
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
        )
        return VerifiedToken(subject_id=UUID(payload["sub"]), claims=payload)
