# crosswalk/vibe/deployments.py
"""
Deployment status provider backed by the Vercel REST API.

Each vibe branch gets a preview deployment when a commit lands. We look up
the newest deployment whose git ref matches the branch.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

import httpx

from crosswalk.errors import DeploymentError

logger = logging.getLogger(__name__)

VERCEL_API_URL = "https://api.vercel.com"
_DEFAULT_TIMEOUT_S = 15.0
_LIST_LIMIT = 20


class DeploymentState(str, Enum):
    QUEUED = "QUEUED"
    BUILDING = "BUILDING"
    READY = "READY"
    ERROR = "ERROR"
    NOT_FOUND = "NOT_FOUND"

    @property
    def terminal(self) -> bool:
        return self in (DeploymentState.READY, DeploymentState.ERROR)


# Vercel readyState values we fold into our smaller set
_STATE_MAP = {
    "QUEUED": DeploymentState.QUEUED,
    "INITIALIZING": DeploymentState.BUILDING,
    "BUILDING": DeploymentState.BUILDING,
    "READY": DeploymentState.READY,
    "ERROR": DeploymentState.ERROR,
    "CANCELED": DeploymentState.ERROR,
}


@dataclass
class DeploymentStatus:
    state: DeploymentState
    url: Optional[str] = None


class DeploymentStatusProvider(Protocol):
    async def get_status(self, branch: str) -> DeploymentStatus:
        ...

    async def get_preview_url(self, branch: str) -> Optional[str]:
        ...


class VercelDeployments:
    def __init__(
        self,
        token: str,
        team_id: Optional[str] = None,
        project_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.token = token
        self.team_id = team_id
        self.project_id = project_id
        self._client = client or httpx.AsyncClient(
            base_url=VERCEL_API_URL,
            timeout=httpx.Timeout(_DEFAULT_TIMEOUT_S),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _deployments(self, **extra: str) -> List[Dict[str, Any]]:
        params = {"limit": str(_LIST_LIMIT)}
        if self.project_id:
            params["projectId"] = self.project_id
        if self.team_id:
            params["teamId"] = self.team_id
        params.update(extra)

        try:
            resp = await self._client.get(
                "/v6/deployments",
                params=params,
                headers={"Authorization": f"Bearer {self.token}"},
            )
        except httpx.HTTPError as exc:
            raise DeploymentError(f"Vercel request failed: {exc}") from exc

        if resp.status_code >= 400:
            logger.error("[vercel] API error %s: %s", resp.status_code, resp.text[:200])
            raise DeploymentError(f"Vercel API error {resp.status_code}", upstream_status=resp.status_code)
        try:
            deployments = resp.json().get("deployments") or []
        except (ValueError, AttributeError) as exc:
            raise DeploymentError(f"Unreadable Vercel response: {exc}", upstream_status=resp.status_code) from exc
        return [d for d in deployments if isinstance(d, dict)]

    @staticmethod
    def _for_branch(deployments: List[Dict[str, Any]], branch: str) -> Optional[Dict[str, Any]]:
        matching = [d for d in deployments if (d.get("meta") or {}).get("githubCommitRef") == branch]
        if not matching:
            return None
        return max(matching, key=lambda d: d.get("createdAt") or d.get("created") or 0)

    async def get_status(self, branch: str) -> DeploymentStatus:
        """Raises DeploymentError when Vercel cannot be reached or answers badly."""
        if not self.token:
            return DeploymentStatus(state=DeploymentState.NOT_FOUND)
        deployment = self._for_branch(await self._deployments(), branch)

        if deployment is None:
            return DeploymentStatus(state=DeploymentState.NOT_FOUND)

        raw_state = deployment.get("state") or deployment.get("readyState") or ""
        state = _STATE_MAP.get(raw_state.upper(), DeploymentState.NOT_FOUND)
        url = f"https://{deployment['url']}" if deployment.get("url") else None
        return DeploymentStatus(state=state, url=url)

    async def get_preview_url(self, branch: str) -> Optional[str]:
        """URL of the newest READY deployment for the branch, if any."""
        if not self.token:
            logger.info("[vercel] VERCEL_TOKEN not set")
            return None
        try:
            deployment = self._for_branch(await self._deployments(state="READY", limit="50"), branch)
        except DeploymentError as exc:
            logger.warning("[vercel] preview lookup for %s failed: %s", branch, exc)
            return None
        if deployment and deployment.get("url"):
            return f"https://{deployment['url']}"
        return None
