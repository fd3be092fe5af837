from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Set


logger = logging.getLogger(__name__)

# Sentinel placed on the outbox to stop the writer loop
_CLOSE = object()


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class Session:
    """One live client connection.

    Owns the set of rooms it joined and a bounded outbox of envelopes that a
    writer task drains to the socket in order. ``emit`` never blocks.
    """

    id: str = field(default_factory=new_session_id)
    display_name: Optional[str] = None
    rooms: Set[str] = field(default_factory=set)
    outbox_size: int = 256
    closed: bool = False
    outbox: asyncio.Queue = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # One extra slot so close() can always enqueue the sentinel
        self.outbox = asyncio.Queue(maxsize=self.outbox_size + 1)

    @property
    def label(self) -> str:
        return self.display_name or self.id

    def emit(self, event: str, payload: Any) -> bool:
        if self.closed:
            return False
        if self.outbox.qsize() >= self.outbox_size:
            logger.warning("[ws] outbox full, dropping event=%s session=%s", event, self.id)
            return False
        self.outbox.put_nowait({"event": event, "payload": payload})
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.outbox.put_nowait(_CLOSE)

    async def next_envelope(self) -> Optional[dict]:
        """Wait for the next outbound envelope; None once the session closed."""
        item = await self.outbox.get()
        if item is _CLOSE:
            return None
        return item
