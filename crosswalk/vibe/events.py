# crosswalk/vibe/events.py
"""
Progress events for one Vibe chat turn, delivered as Server-Sent Events.

Ordering on the wire:
    status*, (tool_start, tool_end)*, status*, ..., done | error, deployment*

Exactly one of done/error is sent. Deployment progress may follow a done
(the preview builds after the answer is shown); nothing else may.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional

logger = logging.getLogger(__name__)

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


class EventType(str, Enum):
    STATUS = "status"
    TOOL_START = "tool_start"
    TOOL_END = "tool_end"
    DEPLOYMENT = "deployment"
    DONE = "done"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (EventType.DONE, EventType.ERROR)


def sse_format(event_type: EventType, data: Dict[str, Any]) -> str:
    payload = {"type": event_type.value, **data}
    return "data: " + json.dumps(payload, default=str) + "\n\n"


class BaseEmitter:
    def __init__(self):
        self.terminal: Optional[EventType] = None
        self.detached = False
        self.closed = False

    def _deliver(self, event_type: EventType, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def emit(self, event_type: EventType, **data: Any) -> bool:
        """Queue an event. Returns False if it was dropped."""
        event_type = EventType(event_type)

        if self.closed:
            logger.debug("[events] emitter closed, dropping %s", event_type.value)
            return False
        if self.terminal is not None:
            allowed = self.terminal is EventType.DONE and event_type is EventType.DEPLOYMENT
            if not allowed:
                logger.warning(
                    "[events] %s after terminal %s ignored", event_type.value, self.terminal.value
                )
                return False
        if event_type.terminal:
            self.terminal = event_type

        if self.detached:
            # Client went away; the turn keeps running but nobody is listening
            return False
        self._deliver(event_type, data)
        return True

    def status(self, message: str) -> bool:
        return self.emit(EventType.STATUS, message=message)

    def detach(self) -> None:
        self.detached = True

    def close(self) -> None:
        self.closed = True


class EventEmitter(BaseEmitter):
    """asyncio.Queue-backed emitter feeding a StreamingResponse."""

    _END = None

    def __init__(self):
        super().__init__()
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()

    def _deliver(self, event_type: EventType, data: Dict[str, Any]) -> None:
        self._queue.put_nowait(sse_format(event_type, data))

    def close(self) -> None:
        if not self.closed:
            super().close()
            self._queue.put_nowait(self._END)

    async def stream(self) -> AsyncIterator[str]:
        while True:
            chunk = await self._queue.get()
            if chunk is self._END:
                break
            yield chunk


class RecordingEmitter(BaseEmitter):
    """Keeps (type, data) pairs in memory."""

    def __init__(self):
        super().__init__()
        self.events: List[tuple] = []

    def _deliver(self, event_type: EventType, data: Dict[str, Any]) -> None:
        self.events.append((event_type.value, data))

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [data for kind, data in self.events if kind == event_type]

    @property
    def types(self) -> List[str]:
        return [kind for kind, _ in self.events]
