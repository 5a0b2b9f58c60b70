# goal_scout/crawler/events.py
"""
Streaming progress events and the emitter that delivers them.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from goal_scout.crawler.models import utc_now
from goal_scout.logger import logger

__all__ = ("EventType", "CrawlEvent", "EventCallback", "EventEmitter", "maybe_await")


class EventType(str, Enum):
    URL_PROCESSING = "url-processing"
    URL_FETCH = "url-fetch"
    URL_EXTRACT = "url-extract"
    URL_LINKS = "url-links"
    URL_COMPLETE = "url-complete"
    AUTH_REQUIRED = "auth-required"
    PROGRESS = "progress"
    BATCH_COMPLETE = "batch-complete"
    SCRAPING_COMPLETE = "scraping-complete"
    ERROR = "error"


@dataclass(slots=True)
class CrawlEvent:
    type: EventType
    url: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "url": self.url, "data": self.data, "timestamp": self.timestamp}


EventCallback = Callable[[CrawlEvent], Union[None, Awaitable[None]]]


async def maybe_await(value: Any) -> Any:
    """Await *value* if a callback returned a coroutine."""
    if inspect.isawaitable(value):
        return await value
    return value


class EventEmitter:
    """Delivers events to one observer; observer failures are logged and dropped."""

    def __init__(self, callback: Optional[EventCallback] = None) -> None:
        self._callback = callback
        self.count = 0

    async def emit(self, type_: EventType, url: Optional[str] = None, **data: Any) -> None:
        self.count += 1
        event = CrawlEvent(type=type_, url=url, data=data)
        logger.debug("Event %s %s", type_.value, url or "")
        if self._callback is None:
            return
        try:
            await maybe_await(self._callback(event))
        except Exception as exc:
            logger.warning("Event observer failed on %s: %s", type_.value, exc)
