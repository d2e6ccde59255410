from __future__ import annotations

from fastapi import APIRouter

from messaging_service.api.deps import CurrentIdentity, RuntimeDep
from messaging_service.api.v1.schemas.message import UnreadCountResponse

router = APIRouter(prefix="/api/v1/chat", tags=["unread"])


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(identity: CurrentIdentity, runtime: RuntimeDep) -> UnreadCountResponse:
    """Fallback for clients that cannot hold a socket open."""
    return UnreadCountResponse(count=await runtime.unread.count(identity.id))
