# FILE: tests/fakes.py
"""
In-memory stand-ins for the external collaborators.

FakeGitHub serves the subset of the GitHub REST API the gateway uses through
httpx.MockTransport, so GitHubGateway runs its real request code in tests.
"""

import base64
import copy
import hashlib
import json
import itertools
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import unquote

import httpx

from crosswalk.auth.identity import IdentityClaims, InvalidAssertion
from crosswalk.vibe.completion import CompletionResponse
from crosswalk.vibe.deployments import DeploymentState, DeploymentStatus
from crosswalk.vibe.github import GitHubGateway, GITHUB_API_URL

OWNER = "crosswalk-app"
REPO = "crosswalk-vibed"

SEED_FILES = {
    "README.md": "# crosswalk\n",
    "frontend/src/components/MapView.tsx": "export function MapView() { return null; }\n",
    "frontend/src/components/DropComposer.tsx": "export function DropComposer() { return null; }\n",
    "frontend/src/stores/app.ts": "export const useApp = () => ({});\n",
}


class FakeGitHub:
    def __init__(self, files: Optional[Dict[str, str]] = None):
        self._ids = itertools.count(1)
        self.trees: Dict[str, Dict[str, str]] = {}
        self.commits: Dict[str, Dict[str, Any]] = {}
        self.blobs: Dict[str, str] = {}
        self.branches: Dict[str, str] = {}
        self.pulls: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        # (method, path prefix) -> status code to fail with
        self.failures: Dict[tuple, int] = {}
        # (method, path prefix) -> canned response, served before anything else
        self.responses: Dict[tuple, httpx.Response] = {}

        tree = self._new_tree(dict(files if files is not None else SEED_FILES))
        self.branches["main"] = self._new_commit(tree, [], "initial")

    # ---------------- state helpers ----------------

    def _sha(self) -> str:
        return hashlib.sha1(f"obj-{next(self._ids)}".encode()).hexdigest()

    def _new_tree(self, files: Dict[str, str]) -> str:
        sha = self._sha()
        self.trees[sha] = files
        return sha

    def _new_commit(self, tree: str, parents: List[str], message: str) -> str:
        sha = self._sha()
        self.commits[sha] = {"tree": tree, "parents": parents, "message": message}
        return sha

    def files_at(self, branch: str) -> Dict[str, str]:
        return self.trees[self.commits[self.branches[branch]]["tree"]]

    def ancestors(self, sha: str) -> set:
        seen, stack = set(), [sha]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.commits[current]["parents"])
        return seen

    def count(self, method: str, suffix: str) -> int:
        return sum(1 for m, p in self.calls if m == method and p.endswith(suffix))

    def commit_count(self) -> int:
        return self.count("POST", "/git/commits")

    # ---------------- transport ----------------

    def gateway(self) -> GitHubGateway:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url=GITHUB_API_URL)
        return GitHubGateway("test-token", OWNER, REPO, production_branch="main", client=client)

    def handler(self, request: httpx.Request) -> httpx.Response:
        prefix = f"/repos/{OWNER}/{REPO}"
        path = unquote(request.url.path)
        assert path.startswith(prefix), path
        path = path[len(prefix):]
        method = request.method
        self.calls.append((method, path))

        for (override_method, prefix_), response in self.responses.items():
            if override_method == method and path.startswith(prefix_):
                return response

        for (fail_method, prefix_), status in self.failures.items():
            if fail_method == method and path.startswith(prefix_):
                return httpx.Response(status, json={"message": "simulated failure"})

        body = json.loads(request.content) if request.content else {}

        if path.startswith("/git/ref/heads/") and method == "GET":
            branch = path[len("/git/ref/heads/"):]
            if branch not in self.branches:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json={"ref": f"refs/heads/{branch}", "object": {"sha": self.branches[branch]}})

        if path == "/git/refs" and method == "POST":
            branch = body["ref"][len("refs/heads/"):]
            if branch in self.branches:
                return httpx.Response(422, json={"message": "Reference already exists"})
            self.branches[branch] = body["sha"]
            return httpx.Response(201, json={"ref": body["ref"], "object": {"sha": body["sha"]}})

        if path.startswith("/git/refs/heads/") and method == "PATCH":
            branch = path[len("/git/refs/heads/"):]
            if branch not in self.branches:
                return httpx.Response(422, json={"message": "Reference does not exist"})
            self.branches[branch] = body["sha"]
            return httpx.Response(200, json={"object": {"sha": body["sha"]}})

        if path.startswith("/git/commits/") and method == "GET":
            sha = path[len("/git/commits/"):]
            return httpx.Response(200, json={"sha": sha, "tree": {"sha": self.commits[sha]["tree"]}})

        if path == "/git/blobs" and method == "POST":
            sha = self._sha()
            self.blobs[sha] = base64.b64decode(body["content"]).decode("utf-8")
            return httpx.Response(201, json={"sha": sha})

        if path == "/git/trees" and method == "POST":
            files = dict(self.trees[body["base_tree"]])
            for entry in body["tree"]:
                if entry["sha"] is None:
                    files.pop(entry["path"], None)
                else:
                    files[entry["path"]] = self.blobs[entry["sha"]]
            return httpx.Response(201, json={"sha": self._new_tree(files)})

        if path == "/git/commits" and method == "POST":
            sha = self._new_commit(body["tree"], body["parents"], body["message"])
            return httpx.Response(201, json={"sha": sha})

        if path.startswith("/contents") and method == "GET":
            return self._contents(path[len("/contents"):].strip("/"), request.url.params.get("ref", "main"))

        if path.startswith("/compare/") and method == "GET":
            base, head = path[len("/compare/"):].split("...", 1)
            if head not in self.branches:
                return httpx.Response(404, json={"message": "Not Found"})
            base_sha, head_sha = self.branches[base], self.branches[head]
            base_files, head_files = self.files_at(base), self.files_at(head)
            changed = sorted(
                p for p in set(base_files) | set(head_files) if base_files.get(p) != head_files.get(p)
            )
            return httpx.Response(200, json={
                "ahead_by": len(self.ancestors(head_sha) - self.ancestors(base_sha)),
                "behind_by": len(self.ancestors(base_sha) - self.ancestors(head_sha)),
                "files": [{"filename": p} for p in changed],
            })

        if path == "/pulls" and method == "GET":
            head = request.url.params.get("head", "")
            state = request.url.params.get("state", "open")
            branch = head.split(":", 1)[-1]
            return httpx.Response(200, json=[
                p for p in self.pulls if p["head"] == branch and p["state"] == state
            ])

        if path == "/pulls" and method == "POST":
            pr = {
                "number": len(self.pulls) + 1,
                "html_url": f"https://github.com/{OWNER}/{REPO}/pull/{len(self.pulls) + 1}",
                "head": body["head"],
                "base": body["base"],
                "title": body["title"],
                "body": body["body"],
                "state": "open",
            }
            self.pulls.append(pr)
            return httpx.Response(201, json=pr)

        return httpx.Response(404, json={"message": f"Unhandled {method} {path}"})

    def _contents(self, path: str, ref: str) -> httpx.Response:
        if ref not in self.branches:
            return httpx.Response(404, json={"message": "No commit found for the ref"})
        files = self.files_at(ref)
        if path in files:
            encoded = base64.b64encode(files[path].encode("utf-8")).decode("ascii")
            return httpx.Response(200, json={
                "type": "file",
                "name": path.split("/")[-1],
                "path": path,
                "sha": hashlib.sha1(files[path].encode()).hexdigest(),
                "content": encoded,
            })

        prefix = f"{path}/" if path else ""
        entries = {}
        for file_path in files:
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):]
            name = rest.split("/", 1)[0]
            entries[name] = "dir" if "/" in rest else "file"
        if not entries:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=[
            {"name": name, "path": f"{prefix}{name}", "type": kind}
            for name, kind in sorted(entries.items())
        ])


# ---------------------------------------------------------------------------
# Completion service
# ---------------------------------------------------------------------------

_tool_ids = itertools.count(1)


def tool_use(name: str, tool_input: Dict[str, Any], id: Optional[str] = None) -> Dict[str, Any]:
    return {"type": "tool_use", "id": id or f"toolu_{next(_tool_ids):04d}", "name": name, "input": tool_input}


def text_response(text: str) -> CompletionResponse:
    blocks = [{"type": "text", "text": text}] if text else []
    return CompletionResponse(content_blocks=blocks, stop_reason="end_turn")


def tool_response(*blocks: Dict[str, Any], text: str = "") -> CompletionResponse:
    content = ([{"type": "text", "text": text}] if text else []) + list(blocks)
    return CompletionResponse(content_blocks=content, stop_reason="tool_use")


Step = Union[CompletionResponse, Exception, Callable[[List[Dict[str, Any]]], CompletionResponse]]


class ScriptedCompletion:
    """Returns scripted responses in order; the last step repeats once the script runs out."""

    def __init__(self, *steps: Step):
        self.steps = list(steps)
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, system, tools, messages):
        self.calls.append({"system": system, "tools": tools, "messages": copy.deepcopy(messages)})
        index = min(len(self.calls) - 1, len(self.steps) - 1)
        step = self.steps[index]
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(messages)
        return step


# ---------------------------------------------------------------------------
# Deployments / identity
# ---------------------------------------------------------------------------

class FakeDeployments:
    """Plays back states in order; an exception in the list is raised for that poll."""

    def __init__(self, *states: Union[DeploymentState, Exception], url: str = "https://crosswalk-preview.vercel.app"):
        self.states = list(states) or [DeploymentState.NOT_FOUND]
        self.url = url
        self.polls = 0
        self.preview: Optional[str] = None

    async def get_status(self, branch: str) -> DeploymentStatus:
        state = self.states[min(self.polls, len(self.states) - 1)]
        self.polls += 1
        if isinstance(state, Exception):
            raise state
        return DeploymentStatus(state=state, url=self.url if state is DeploymentState.READY else None)

    async def get_preview_url(self, branch: str) -> Optional[str]:
        return self.preview


class FakeIdentity:
    """Accepts tokens of the form 'apple:<subject>[:<email>]'."""

    async def verify_assertion(self, token: str) -> IdentityClaims:
        if not token.startswith("apple:"):
            raise InvalidAssertion("bad signature")
        parts = token.split(":")
        return IdentityClaims(subject_id=parts[1], email=parts[2] if len(parts) > 2 else None)


class RecordingFanout:
    """Keeps every publish in memory."""

    def __init__(self):
        self.published: List[Tuple[str, str, Dict[str, Any]]] = []

    async def publish(self, channel: str, event: str, payload: Dict[str, Any]) -> None:
        self.published.append((channel, event, payload))


def parse_sse(body: str) -> List[Dict[str, Any]]:
    events = []
    for chunk in body.split("\n\n"):
        chunk = chunk.strip()
        if chunk.startswith("data: "):
            events.append(json.loads(chunk[len("data: "):]))
    return events
