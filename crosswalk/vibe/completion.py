# crosswalk/vibe/completion.py
"""
Completion service: one model round-trip with tool definitions.

The agent loop talks to CompletionService only. AnthropicCompletionService
is the production implementation; tests pass scripted fakes.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import anthropic

from crosswalk.errors import CompletionServiceError

logger = logging.getLogger(__name__)


@dataclass
class CompletionResponse:
    content_blocks: List[Dict[str, Any]] = field(default_factory=list)
    stop_reason: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(b.get("text", "") for b in self.content_blocks if b.get("type") == "text")

    @property
    def tool_uses(self) -> List[Dict[str, Any]]:
        return [b for b in self.content_blocks if b.get("type") == "tool_use"]

    @property
    def requests_tools(self) -> bool:
        return self.stop_reason == "tool_use"


class CompletionService(Protocol):
    async def complete(
        self,
        system: str,
        tools: List[Dict[str, Any]],
        messages: List[Dict[str, Any]],
    ) -> CompletionResponse:
        ...


class AnthropicCompletionService:
    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str = "claude-opus-4-20250514",
        max_tokens: int = 16384,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def complete(
        self,
        system: str,
        tools: List[Dict[str, Any]],
        messages: List[Dict[str, Any]],
    ) -> CompletionResponse:
        create_kwargs = dict(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=messages,
        )
        if system:
            create_kwargs["system"] = system
        # Anthropic expects 'tools' to be a proper list; do not pass None.
        if tools:
            create_kwargs["tools"] = tools

        try:
            resp = await self.client.messages.create(**create_kwargs)
        except anthropic.APIError as exc:
            logger.error("[completion] %s call failed: %s", self.model, exc)
            raise CompletionServiceError(f"Completion service error: {exc}") from exc

        blocks = [b.model_dump(exclude_none=True) for b in (resp.content or [])]
        return CompletionResponse(content_blocks=blocks, stop_reason=resp.stop_reason)
