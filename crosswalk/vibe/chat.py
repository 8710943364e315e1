# crosswalk/vibe/chat.py
"""
Chat turn orchestration: persistence, the agent loop and the event stream.

A turn runs in its own asyncio task with its own DB session, so it finishes
(and persists) even if the client disconnects halfway through the stream.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Set

from sqlalchemy.orm import Session

from crosswalk.config import AgentLoopConfig
from crosswalk.errors import CompletionServiceError, ValidationError
from . import store
from .agent_loop import AgentLoop, TurnOutcome
from .completion import CompletionService
from .deployments import DeploymentStatusProvider
from .events import BaseEmitter, EventType
from .github import BranchComparison, GitHubGateway
from .models import Vibe
from .locks import ConversationLocks
from .tools import ToolDispatcher

logger = logging.getLogger(__name__)

FAILED_MESSAGE = "Failed to get AI response"


def vibe_snapshot(vibe: Vibe, comparison: BranchComparison) -> Dict[str, Any]:
    return {
        "id": vibe.id,
        "name": vibe.name,
        "branchName": vibe.branch_name,
        "createdAt": vibe.created_at.isoformat() if vibe.created_at else None,
        "hasChanges": comparison.ahead_by > 0,
        "changedFiles": list(comparison.changed_paths),
        "aheadBy": comparison.ahead_by,
    }


def validate_chat_text(text: Optional[str]) -> str:
    if not text or not text.strip():
        raise ValidationError("Message is required")
    return text


class VibeChatService:
    def __init__(
        self,
        gateway: GitHubGateway,
        completion: CompletionService,
        deployments: Optional[DeploymentStatusProvider],
        config: AgentLoopConfig,
        locks: ConversationLocks,
        session_factory: Callable[[], Session],
    ):
        self.gateway = gateway
        self.completion = completion
        self.deployments = deployments
        self.config = config
        self.locks = locks
        self.session_factory = session_factory
        self._tasks: Set[asyncio.Task] = set()

    def build_loop(self, vibe: Vibe, emitter: BaseEmitter) -> AgentLoop:
        return AgentLoop(
            completion=self.completion,
            dispatcher=ToolDispatcher(self.gateway, vibe.branch_name),
            deployments=self.deployments,
            config=self.config,
            emitter=emitter,
        )

    async def send_chat_message(
        self, db: Session, vibe: Vibe, user_text: str, emitter: BaseEmitter
    ) -> Optional[TurnOutcome]:
        """
        Run one turn on `vibe`. The caller holds the vibe's turn lock.

        Emits exactly one of done/error. Returns None when the turn failed.
        """
        user_text = validate_chat_text(user_text)

        history = [
            {"role": m.role, "content": m.content}
            for m in store.get_chat_history(db, vibe.id, limit=self.config.history_limit)
        ]
        store.append_message(db, vibe, "user", user_text)

        loop = self.build_loop(vibe, emitter)
        try:
            outcome = await loop.run_turn(history, user_text)
        except CompletionServiceError as exc:
            logger.error("[vibe] turn on %s failed: %s", vibe.id, exc)
            emitter.emit(EventType.ERROR, message=FAILED_MESSAGE)
            return None

        if outcome.final_text.strip():
            store.append_message(db, vibe, "assistant", outcome.final_text)

        comparison = await self.gateway.compare_branches(vibe.branch_name)
        emitter.emit(
            EventType.DONE,
            message=outcome.final_text,
            toolsUsed=outcome.tools_used,
            vibe=vibe_snapshot(vibe, comparison),
        )

        if outcome.wrote:
            await loop.poll_deployment(vibe.branch_name)
        return outcome

    async def _turn_task(self, vibe_id: str, user_id: str, user_text: str, emitter: BaseEmitter) -> None:
        db = self.session_factory()
        try:
            vibe = store.get_vibe(db, vibe_id, user_id)
            await self.send_chat_message(db, vibe, user_text, emitter)
        except Exception as exc:
            # Anything unexpected still ends the stream with a terminal event
            logger.exception("[vibe] turn on %s crashed: %s", vibe_id, exc)
            if emitter.terminal is None:
                emitter.emit(EventType.ERROR, message=FAILED_MESSAGE)
        finally:
            db.close()
            self.locks.release(vibe_id)
            emitter.close()

    def start_turn(self, vibe_id: str, user_id: str, user_text: str, emitter: BaseEmitter) -> asyncio.Task:
        """
        Claim the vibe's turn lock and run the turn in the background.

        Raises ConflictError (before anything is streamed) if a turn is
        already running on this vibe.
        """
        validate_chat_text(user_text)
        self.locks.acquire(vibe_id)
        task = asyncio.create_task(self._turn_task(vibe_id, user_id, user_text, emitter))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for in-flight turns. Called on shutdown."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
