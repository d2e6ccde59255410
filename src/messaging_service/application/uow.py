from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from messaging_service.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from messaging_service.application.repositories.message import MessageReader, MessageWriter
from messaging_service.application.repositories.profile import ProfileReader


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    profiles: ProfileReader

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


# Opens a fresh unit of work; store failures surface as StoreError on exit.
UoWFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
