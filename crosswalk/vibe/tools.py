# crosswalk/vibe/tools.py
"""
Tools the Vibe assistant can call, and the dispatcher that runs them
against the workspace branch.

Expected outcomes (missing file, empty directory) come back as text the
model can react to. Transport failures propagate; the agent loop turns
them into error-flagged tool results.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, NoReturn, Optional

from crosswalk.errors import ToolExecutionError, UnknownToolError
from .github import FileChange, GitHubGateway

logger = logging.getLogger(__name__)


class ToolKind(str, Enum):
    READ_FILE = "read_file"
    WRITE_FILE = "write_file"
    LIST_FILES = "list_files"


TOOL_SCHEMAS: List[Dict[str, Any]] = [
    {
        "name": ToolKind.READ_FILE.value,
        "description": (
            "Read the contents of a file from the repository. "
            "Use this to understand existing code before making changes."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "The file path relative to the repo root, e.g. 'frontend/src/components/MapView.tsx'",
                },
            },
            "required": ["path"],
        },
    },
    {
        "name": ToolKind.WRITE_FILE.value,
        "description": "Write or update a file in the repository. The change is committed to the user's branch.",
        "input_schema": {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "The file path relative to the repo root"},
                "content": {"type": "string", "description": "The complete new content for the file"},
                "commit_message": {
                    "type": "string",
                    "description": "A short, descriptive commit message for this change",
                },
            },
            "required": ["path", "content", "commit_message"],
        },
    },
    {
        "name": ToolKind.LIST_FILES.value,
        "description": "List files and directories at a path in the repository.",
        "input_schema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Directory path relative to the repo root, e.g. 'frontend/src/components'",
                },
            },
            "required": ["path"],
        },
    },
]


def _unreachable(kind: NoReturn) -> NoReturn:
    raise AssertionError(f"Unhandled tool kind: {kind!r}")


@dataclass
class ToolInvocation:
    id: str
    kind: Optional[ToolKind]
    arguments: Dict[str, Any]

    @classmethod
    def parse(cls, id: str, name: str, arguments: Dict[str, Any]) -> "ToolInvocation":
        try:
            kind = ToolKind(name)
        except ValueError:
            raise UnknownToolError(f"Unknown tool: {name}")
        return cls(id=id, kind=kind, arguments=dict(arguments or {}))

    @property
    def path(self) -> str:
        return str(self.arguments.get("path") or "")

    def require(self, key: str) -> str:
        value = self.arguments.get(key)
        if value is None or not isinstance(value, str):
            raise ToolExecutionError(f"{self.kind.value} requires a string '{key}' argument")
        return value


@dataclass
class ToolResult:
    invocation_id: str
    kind: Optional[ToolKind]
    content: str
    is_error: bool = False
    wrote: bool = False
    missing: bool = False

    @property
    def ok(self) -> bool:
        return not self.is_error and not self.missing

    def as_block(self) -> Dict[str, Any]:
        """Anthropic tool_result content block."""
        block = {"type": "tool_result", "tool_use_id": self.invocation_id, "content": self.content}
        if self.is_error:
            block["is_error"] = True
        return block


def _basename(path: str) -> str:
    return path.rstrip("/").split("/")[-1] or path


def describe_start(invocation: ToolInvocation) -> str:
    kind = invocation.kind
    if kind is ToolKind.READ_FILE:
        return f"Reading {_basename(invocation.path)}..."
    elif kind is ToolKind.WRITE_FILE:
        return f"Writing {_basename(invocation.path)}..."
    elif kind is ToolKind.LIST_FILES:
        return f"Listing {invocation.path or 'root'}..."
    _unreachable(kind)


def describe_end(invocation: ToolInvocation, result: ToolResult) -> str:
    if result.is_error:
        return f"Failed: {invocation.kind.value}"
    kind = invocation.kind
    if kind is ToolKind.READ_FILE:
        return f"Read {_basename(invocation.path)}"
    elif kind is ToolKind.WRITE_FILE:
        return f"Saved {_basename(invocation.path)}"
    elif kind is ToolKind.LIST_FILES:
        return "Listed files"
    _unreachable(kind)


class ToolDispatcher:
    """Runs tool invocations against one workspace branch."""

    def __init__(self, gateway: GitHubGateway, branch: str):
        self.gateway = gateway
        self.branch = branch

    async def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        kind = invocation.kind
        if kind is ToolKind.READ_FILE:
            return await self._read_file(invocation)
        elif kind is ToolKind.WRITE_FILE:
            return await self._write_file(invocation)
        elif kind is ToolKind.LIST_FILES:
            return await self._list_files(invocation)
        _unreachable(kind)

    async def _read_file(self, invocation: ToolInvocation) -> ToolResult:
        path = invocation.require("path")
        found = await self.gateway.get_file(path, self.branch)
        if found is None:
            # Not on the workspace branch yet; production may still have it
            found = await self.gateway.get_file(path, self.gateway.production_branch)
        if found is None:
            return ToolResult(invocation.id, invocation.kind, f"File not found: {path}", missing=True)
        return ToolResult(invocation.id, invocation.kind, found.content)

    async def _write_file(self, invocation: ToolInvocation) -> ToolResult:
        path = invocation.require("path")
        content = invocation.require("content")
        message = invocation.arguments.get("commit_message") or f"Update {path}"
        commit = await self.gateway.commit_files(
            self.branch,
            [FileChange(path=path, content=content, action="update")],
            message,
        )
        logger.info("[vibe] write_file %s on %s -> %s", path, self.branch, commit.sha[:7])
        return ToolResult(
            invocation.id,
            invocation.kind,
            f"Committed!\nPath: {path}\nCommit: {commit.sha[:7]}",
            wrote=True,
        )

    async def _list_files(self, invocation: ToolInvocation) -> ToolResult:
        path = invocation.path
        entries = await self.gateway.list_files(path, self.branch)
        if not entries:
            return ToolResult(invocation.id, invocation.kind, f"No files found in: {path}")
        lines = [f"[{entry.kind}] {entry.name}" for entry in entries]
        return ToolResult(invocation.id, invocation.kind, "\n".join(lines))
