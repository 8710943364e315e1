# crosswalk/vibe/agent_loop.py
"""
The Vibe agent loop.

One chat turn is a small state machine:

    AWAITING_MODEL -> MODEL_RETURNED -> TERMINAL_TEXT
                                     -> TOOLS_REQUESTED -> TOOLS_EXECUTING -> AWAITING_MODEL

Every tool call requested in one model response is executed (sequentially,
so commits to the branch never race) and all results go back to the model
in a single user turn, paired by tool_use_id. The loop stops when the model
answers without asking for tools, or after `max_iterations` tool rounds
(LOOP_BUDGET_EXHAUSTED, a soft stop).

Two post-passes hang off the main loop:
- repair: if the answer promises edits but nothing was written, push the
  model once more to actually call write_file (see repair.py)
- deployment polling: after a successful write, follow the preview build
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from crosswalk.config import AgentLoopConfig
from crosswalk.errors import CompletionServiceError, ExternalServiceError, UnknownToolError
from .completion import CompletionResponse, CompletionService
from .deployments import DeploymentState, DeploymentStatus, DeploymentStatusProvider
from .events import BaseEmitter, EventType
from .prompts import FORCED_CONTINUATION, REVIEWED_PLACEHOLDER, WROTE_PLACEHOLDER
from .repair import needs_repair
from .tools import (
    TOOL_SCHEMAS,
    ToolDispatcher,
    ToolInvocation,
    ToolResult,
    describe_end,
    describe_start,
)

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    MODEL_RETURNED = "model_returned"
    TOOLS_REQUESTED = "tools_requested"
    TOOLS_EXECUTING = "tools_executing"
    TERMINAL_TEXT = "terminal_text"
    LOOP_BUDGET_EXHAUSTED = "loop_budget_exhausted"


_DEPLOYMENT_MESSAGES = {
    DeploymentState.QUEUED: "Deployment queued...",
    DeploymentState.BUILDING: "Building preview...",
    DeploymentState.READY: "Preview ready!",
    DeploymentState.ERROR: "Build failed",
}


@dataclass
class TurnOutcome:
    final_text: str = ""
    tools_used: List[str] = field(default_factory=list)
    wrote: bool = False
    tool_calls: int = 0
    iterations: int = 0
    exhausted: bool = False
    repaired: bool = False
    states: List[LoopState] = field(default_factory=list)


def build_transcript(history: List[Dict[str, str]], user_text: str) -> List[Dict[str, Any]]:
    """
    Replay stored history plus the new user message.

    Empty turns are dropped (the completion service rejects them), and so are
    assistant turns before the first user turn, which appear when history was
    cut to the most recent N messages.
    """
    messages: List[Dict[str, Any]] = []
    for item in history:
        content = item.get("content") or ""
        if not content.strip():
            continue
        if not messages and item.get("role") != "user":
            continue
        messages.append({"role": item["role"], "content": content})
    messages.append({"role": "user", "content": user_text})
    return messages


class AgentLoop:
    def __init__(
        self,
        completion: CompletionService,
        dispatcher: ToolDispatcher,
        deployments: Optional[DeploymentStatusProvider],
        config: AgentLoopConfig,
        emitter: BaseEmitter,
    ):
        self.completion = completion
        self.dispatcher = dispatcher
        self.deployments = deployments
        self.config = config
        self.emitter = emitter
        self._outcome = TurnOutcome()

    # ------------------------------------------------------------------
    # State bookkeeping
    # ------------------------------------------------------------------

    def _enter(self, state: LoopState) -> None:
        self._outcome.states.append(state)

    async def _call_model(self, messages: List[Dict[str, Any]]) -> CompletionResponse:
        self._enter(LoopState.AWAITING_MODEL)
        response = await self.completion.complete(self.config.system_prompt, TOOL_SCHEMAS, messages)
        self._enter(LoopState.MODEL_RETURNED)
        return response

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def _run_tool(self, block: Dict[str, Any]) -> ToolResult:
        name = block.get("name") or ""
        arguments = block.get("input") or {}
        path = str(arguments.get("path") or "")

        try:
            invocation = ToolInvocation.parse(block.get("id", ""), name, arguments)
        except UnknownToolError as exc:
            logger.warning("[agent] rejected tool call %r: %s", name, exc)
            self.emitter.emit(EventType.TOOL_START, tool=name, path=path, message=f"Running {name}...")
            self.emitter.emit(EventType.TOOL_END, tool=name, success=False, message=f"Failed: {name}")
            return ToolResult(block.get("id", ""), None, f"Error executing {name}: {exc}", is_error=True)

        self.emitter.emit(
            EventType.TOOL_START, tool=name, path=path, message=describe_start(invocation)
        )
        try:
            result = await self.dispatcher.dispatch(invocation)
        except Exception as exc:
            # A failed tool call is the model's problem to react to, not the turn's
            logger.exception("[agent] tool %s failed: %s", name, exc)
            result = ToolResult(invocation.id, invocation.kind, f"Error executing {name}: {exc}", is_error=True)

        self._outcome.tool_calls += 1
        if result.wrote:
            self._outcome.wrote = True
        if not result.is_error:
            self._outcome.tools_used.append(
                f"[{name}] {result.content[: self.config.tool_summary_chars]}..."
            )

        self.emitter.emit(
            EventType.TOOL_END,
            tool=name,
            success=result.ok,
            message=describe_end(invocation, result),
        )
        return result

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def _run(self, messages: List[Dict[str, Any]]) -> Tuple[CompletionResponse, int, bool]:
        """
        Drive model and tools until a final answer or the iteration ceiling.

        Mutates `messages` with each assistant tool request and its results.
        Returns (last response, tool rounds used, budget exhausted).
        """
        response = await self._call_model(messages)
        rounds = 0

        while response.requests_tools and rounds < self.config.max_iterations:
            tool_uses = response.tool_uses
            if not tool_uses:
                logger.warning("[agent] stop_reason is tool_use but no tool blocks found")
                break

            rounds += 1
            self._enter(LoopState.TOOLS_REQUESTED)
            self._enter(LoopState.TOOLS_EXECUTING)
            results = [await self._run_tool(block) for block in tool_uses]

            messages.append({"role": "assistant", "content": response.content_blocks})
            messages.append({"role": "user", "content": [r.as_block() for r in results]})

            self.emitter.status("Processing...")
            response = await self._call_model(messages)

        exhausted = response.requests_tools and rounds >= self.config.max_iterations
        if exhausted:
            logger.warning("[agent] tool loop hit max iterations (%d)", self.config.max_iterations)
            self._enter(LoopState.LOOP_BUDGET_EXHAUSTED)
        else:
            self._enter(LoopState.TERMINAL_TEXT)
        return response, rounds, exhausted

    async def _repair(self, messages: List[Dict[str, Any]], response: CompletionResponse, text: str) -> str:
        """One forced continuation. Keeps the original text if it fails."""
        logger.info("[agent] reply promised changes without writing; forcing continuation")
        self.emitter.status("Completing changes...")

        continuation = list(messages)
        if response.content_blocks:
            continuation.append({"role": "assistant", "content": response.content_blocks})
        continuation.append({"role": "user", "content": FORCED_CONTINUATION})

        try:
            repaired, rounds, exhausted = await self._run(continuation)
        except CompletionServiceError as exc:
            logger.error("[agent] continuation failed: %s", exc)
            return text

        self._outcome.repaired = True
        self._outcome.iterations += rounds
        self._outcome.exhausted = self._outcome.exhausted or exhausted
        return repaired.text

    def _finalize_text(self, text: str) -> str:
        if text.strip():
            return text
        if self._outcome.wrote:
            return WROTE_PLACEHOLDER
        if self._outcome.tool_calls > 0:
            return REVIEWED_PLACEHOLDER
        return ""

    async def run_turn(self, history: List[Dict[str, str]], user_text: str) -> TurnOutcome:
        """
        Run one chat turn and return what happened.

        CompletionServiceError from the main loop propagates: the turn failed.
        """
        self._outcome = TurnOutcome()
        messages = build_transcript(history, user_text)

        self.emitter.status("Thinking...")
        response, rounds, exhausted = await self._run(messages)
        self._outcome.iterations = rounds
        self._outcome.exhausted = exhausted
        logger.info(
            "[agent] tool loop completed after %d iteration(s), stop_reason=%s",
            rounds,
            response.stop_reason,
        )

        text = response.text
        if self.config.repair_enabled and needs_repair(
            text, self._outcome.wrote, exhausted, self.config.repair_pattern
        ):
            text = await self._repair(messages, response, text)

        self._outcome.final_text = self._finalize_text(text)
        return self._outcome

    # ------------------------------------------------------------------
    # Deployment polling
    # ------------------------------------------------------------------

    def _emit_deployment(self, status: DeploymentStatus) -> None:
        data = {"state": status.state.value, "message": _DEPLOYMENT_MESSAGES[status.state]}
        if status.url and status.state is DeploymentState.READY:
            data["url"] = status.url
        self.emitter.emit(EventType.DEPLOYMENT, **data)

    async def poll_deployment(self, branch: str) -> Optional[DeploymentStatus]:
        """
        Follow the preview build for `branch`.

        Emits QUEUED immediately, then one event per state change until READY,
        ERROR, or the attempt budget runs out. Returns the terminal status, or
        None if the build never finished within budget.
        """
        if self.deployments is None:
            return None

        last = DeploymentState.QUEUED
        self._emit_deployment(DeploymentStatus(state=last))

        for attempt in range(1, self.config.poll_max_attempts + 1):
            await asyncio.sleep(self.config.poll_interval_seconds)
            try:
                status = await self.deployments.get_status(branch)
            except ExternalServiceError as exc:
                logger.warning("[agent] deployment poll %d for %s failed: %s", attempt, branch, exc)
                continue

            if status.state is DeploymentState.NOT_FOUND or status.state is last:
                continue
            last = status.state
            self._emit_deployment(status)
            if status.state.terminal:
                logger.info("[agent] deployment for %s finished: %s", branch, status.state.value)
                return status

        logger.info("[agent] deployment for %s still %s after %d polls", branch, last.value, self.config.poll_max_attempts)
        return None
