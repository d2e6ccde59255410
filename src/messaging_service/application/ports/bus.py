from __future__ import annotations

from typing import Any, Protocol


class EventPublisher(Protocol):
    """Backplane used to share fan-out with other server processes.

    ``payload`` carries the event type, the publishing node id, the target
    (identity, room or everyone) and the event data.
    """

    async def publish(self, channel: str, payload: dict[str, Any]) -> None: ...
