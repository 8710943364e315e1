# crosswalk/vibe/github.py
"""
Source-control gateway over the GitHub REST API.

Mutating operations (create_branch, commit_files, create_pull_request,
reset_branch_to_production) raise SourceControlError so the caller knows the
change did not happen. Read-only helpers used for status display
(compare_branches, list_files, get_file on 404) degrade to an empty result.
"""

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from crosswalk.errors import SourceControlError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
_DEFAULT_TIMEOUT_S = 30.0


@dataclass
class BranchInfo:
    name: str
    sha: str
    url: str
    ahead_by: int = 0
    behind_by: int = 0


@dataclass
class FileContent:
    content: str
    sha: str


@dataclass
class FileChange:
    path: str
    content: str = ""
    action: str = "update"  # create | update | delete


@dataclass
class CommitResult:
    sha: str
    url: str


@dataclass
class BranchComparison:
    ahead_by: int = 0
    behind_by: int = 0
    changed_paths: List[str] = field(default_factory=list)


@dataclass
class PullRequest:
    number: int
    url: str


@dataclass
class RepoEntry:
    name: str
    path: str
    kind: str  # file | dir


class GitHubGateway:
    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        production_branch: str = "main",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.production_branch = production_branch
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if client is None:
            client = httpx.AsyncClient(
                base_url=GITHUB_API_URL,
                headers=headers,
                timeout=httpx.Timeout(_DEFAULT_TIMEOUT_S),
            )
        else:
            client.headers.update(headers)
        self._client = client

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, self._repo_path + path, **kwargs)
        except httpx.HTTPError as exc:
            raise SourceControlError(f"GitHub {method} {path} failed: {exc}") from exc

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        resp = await self._request(method, path, **kwargs)
        if resp.status_code >= 400:
            raise SourceControlError(
                f"GitHub {method} {path} returned {resp.status_code}: {resp.text[:200]}",
                upstream_status=resp.status_code,
            )
        return resp.json()

    @staticmethod
    def _ref(branch: str) -> str:
        return "heads/" + quote(branch, safe="/")

    async def _head_sha(self, branch: str) -> str:
        data = await self._json("GET", f"/git/ref/{self._ref(branch)}")
        return data["object"]["sha"]

    def _contents_path(self, path: str) -> str:
        path = path.strip("/")
        return f"/contents/{quote(path, safe='/')}" if path else "/contents"

    def branch_url(self, branch: str) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/tree/{branch}"

    # ------------------------------------------------------------------
    # Branch lifecycle
    # ------------------------------------------------------------------

    async def create_branch(self, name: str) -> BranchInfo:
        """Branch from production. An existing branch of that name is fine."""
        production_sha = await self._head_sha(self.production_branch)

        resp = await self._request(
            "POST",
            "/git/refs",
            json={"ref": f"refs/heads/{name}", "sha": production_sha},
        )
        if resp.status_code == 422:
            logger.info("[github] branch %s already exists", name)
        elif resp.status_code >= 400:
            raise SourceControlError(
                f"GitHub create branch {name} returned {resp.status_code}",
                upstream_status=resp.status_code,
            )

        branch_sha = await self._head_sha(name)
        return BranchInfo(name=name, sha=branch_sha, url=self.branch_url(name))

    async def reset_branch_to_production(self, branch: str) -> None:
        """Force-move the branch to production head. Branch-local commits are lost."""
        production_sha = await self._head_sha(self.production_branch)
        await self._json(
            "PATCH",
            f"/git/refs/{self._ref(branch)}",
            json={"sha": production_sha, "force": True},
        )
        logger.info("[github] reset %s to %s@%s", branch, self.production_branch, production_sha[:7])

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def get_file(self, path: str, branch: Optional[str] = None) -> Optional[FileContent]:
        resp = await self._request(
            "GET",
            self._contents_path(path),
            params={"ref": branch or self.production_branch},
        )
        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise SourceControlError(
                f"GitHub get {path} returned {resp.status_code}",
                upstream_status=resp.status_code,
            )

        data = resp.json()
        if not isinstance(data, dict) or data.get("type") != "file" or "content" not in data:
            return None
        content = base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        return FileContent(content=content, sha=data["sha"])

    async def list_files(self, path: str = "", branch: Optional[str] = None) -> List[RepoEntry]:
        try:
            resp = await self._request(
                "GET",
                self._contents_path(path),
                params={"ref": branch or self.production_branch},
            )
        except SourceControlError as exc:
            logger.warning("[github] list %s failed: %s", path, exc)
            return []
        if resp.status_code >= 400:
            return []

        data = resp.json()
        if not isinstance(data, list):
            return []
        return [
            RepoEntry(
                name=item["name"],
                path=item["path"],
                kind="dir" if item.get("type") == "dir" else "file",
            )
            for item in data
        ]

    async def commit_files(self, branch: str, files: List[FileChange], message: str) -> CommitResult:
        """One atomic commit on top of the branch head touching every listed file."""
        base_sha = await self._head_sha(branch)
        base_commit = await self._json("GET", f"/git/commits/{base_sha}")
        base_tree_sha = base_commit["tree"]["sha"]

        tree: List[Dict[str, Any]] = []
        for change in files:
            if change.action == "delete":
                continue
            blob = await self._json(
                "POST",
                "/git/blobs",
                json={
                    "content": base64.b64encode(change.content.encode("utf-8")).decode("ascii"),
                    "encoding": "base64",
                },
            )
            tree.append({"path": change.path, "mode": "100644", "type": "blob", "sha": blob["sha"]})

        for change in files:
            if change.action == "delete":
                tree.append({"path": change.path, "mode": "100644", "type": "blob", "sha": None})

        new_tree = await self._json("POST", "/git/trees", json={"base_tree": base_tree_sha, "tree": tree})
        new_commit = await self._json(
            "POST",
            "/git/commits",
            json={"message": message, "tree": new_tree["sha"], "parents": [base_sha]},
        )
        await self._json("PATCH", f"/git/refs/{self._ref(branch)}", json={"sha": new_commit["sha"]})

        sha = new_commit["sha"]
        logger.info("[github] committed %d file(s) to %s @ %s", len(files), branch, sha[:7])
        return CommitResult(sha=sha, url=f"https://github.com/{self.owner}/{self.repo}/commit/{sha}")

    # ------------------------------------------------------------------
    # Comparison / pull requests
    # ------------------------------------------------------------------

    async def compare_branches(self, branch: str) -> BranchComparison:
        try:
            base = quote(self.production_branch, safe="/")
            head = quote(branch, safe="/")
            data = await self._json("GET", f"/compare/{base}...{head}")
            return BranchComparison(
                ahead_by=int(data.get("ahead_by", 0)),
                behind_by=int(data.get("behind_by", 0)),
                changed_paths=[f["filename"] for f in data.get("files") or []],
            )
        except (SourceControlError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("[github] compare %s failed: %s", branch, exc)
            return BranchComparison()

    async def create_pull_request(self, branch: str, title: str, body: str) -> PullRequest:
        """Return the open PR for this branch if there is one, else open a new one."""
        existing = await self._json(
            "GET",
            "/pulls",
            params={"head": f"{self.owner}:{branch}", "state": "open"},
        )
        if existing:
            return PullRequest(number=existing[0]["number"], url=existing[0]["html_url"])

        pr = await self._json(
            "POST",
            "/pulls",
            json={"title": title, "body": body, "head": branch, "base": self.production_branch},
        )
        logger.info("[github] opened PR #%s for %s", pr["number"], branch)
        return PullRequest(number=pr["number"], url=pr["html_url"])
