# crosswalk/vibe/locks.py
"""
Per-vibe turn serialization.

A vibe's branch and transcript have a single writer at a time: a chat turn,
or one of the routes that rewrite them (revert, delete, pull request).
Anything arriving while the vibe is busy is rejected with a 409.
Check-and-mark happens without an await in between, so no lock is needed
on a single event loop.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Set

from crosswalk.errors import ConflictError

logger = logging.getLogger(__name__)


class ConversationLocks:
    def __init__(self):
        self._busy: Set[str] = set()

    def is_busy(self, vibe_id: str) -> bool:
        return vibe_id in self._busy

    def acquire(self, vibe_id: str) -> None:
        if vibe_id in self._busy:
            logger.info("[vibe] rejected overlapping work on %s", vibe_id)
            raise ConflictError("A turn is already in progress for this vibe")
        self._busy.add(vibe_id)

    def release(self, vibe_id: str) -> None:
        self._busy.discard(vibe_id)

    @contextmanager
    def held(self, vibe_id: str) -> Iterator[None]:
        """Hold the vibe for a single non-chat operation."""
        self.acquire(vibe_id)
        try:
            yield
        finally:
            self.release(vibe_id)
