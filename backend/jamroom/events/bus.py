from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Set, Any, Coroutine, Any as AnyType


logger = logging.getLogger(__name__)

AsyncHandler = Callable[[Any], Coroutine[AnyType, AnyType, None]]

NOW_PLAYING_TOPIC = "track:now-playing"


class EventBus:
    """Simple in-process pub/sub event bus for a single process.

    - subscribe(topic, handler): register an async handler
    - unsubscribe(topic, handler): remove a handler
    - publish(topic, payload): run all handlers for that topic and wait for them
    """

    def __init__(self) -> None:
        self._topic_to_handlers: Dict[str, Set[AsyncHandler]] = {}

    def subscribe(self, topic: str, handler: AsyncHandler) -> None:
        handlers = self._topic_to_handlers.setdefault(topic, set())
        handlers.add(handler)

    def unsubscribe(self, topic: str, handler: AsyncHandler) -> None:
        handlers = self._topic_to_handlers.get(topic)
        if not handlers:
            return
        handlers.discard(handler)
        if not handlers:
            self._topic_to_handlers.pop(topic, None)

    async def publish(self, topic: str, payload: Any) -> int:
        # Snapshot to avoid mutation during iteration
        handlers = list(self._topic_to_handlers.get(topic, set()))
        if not handlers:
            return 0
        results = await asyncio.gather(*(h(payload) for h in handlers), return_exceptions=True)
        for handler, result in zip(handlers, results):
            if isinstance(result, BaseException):
                logger.error(
                    "[bus] handler %s failed topic=%s",
                    getattr(handler, "__name__", handler),
                    topic,
                    exc_info=result,
                )
        return len(handlers)
