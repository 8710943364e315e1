# crosswalk/vibe/service.py
"""
Vibe workspace operations that combine the store with the repository host.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from crosswalk.errors import NotFoundError, ValidationError
from crosswalk.users.models import User
from . import store, schemas
from .deployments import DeploymentStatusProvider
from .github import GitHubGateway
from .models import Vibe

logger = logging.getLogger(__name__)


async def to_out(gateway: GitHubGateway, vibe: Vibe) -> schemas.VibeOut:
    comparison = await gateway.compare_branches(vibe.branch_name)
    out = schemas.VibeOut.model_validate(vibe)
    out.has_changes = comparison.ahead_by > 0
    out.changed_files = comparison.changed_paths
    out.ahead_by = comparison.ahead_by
    out.behind_by = comparison.behind_by
    return out


async def create_vibe(db: Session, gateway: GitHubGateway, user_id: str, name: Optional[str]) -> schemas.VibeOut:
    name = store.validate_vibe_name(name)
    user = db.get(User, user_id)
    branch_name = store.branch_name_for(user_id, user.email if user else None)

    # Branch first: a vibe row without a branch would be unusable
    branch = await gateway.create_branch(branch_name)
    vibe = store.create_vibe(db, user_id, name, branch.name)
    logger.info("[vibe] %s created %s on %s", user_id, vibe.id, branch.name)
    return schemas.VibeOut.model_validate(vibe)


async def list_vibes(db: Session, gateway: GitHubGateway, user_id: str) -> List[schemas.VibeOut]:
    return [await to_out(gateway, v) for v in store.list_vibes(db, user_id)]


async def read_file(gateway: GitHubGateway, vibe: Vibe, path: Optional[str]) -> schemas.FileOut:
    if not path:
        raise ValidationError("Path is required")
    found = await gateway.get_file(path, vibe.branch_name)
    if found is None:
        raise NotFoundError("File not found")
    return schemas.FileOut(path=path, content=found.content, sha=found.sha)


async def list_files(gateway: GitHubGateway, vibe: Vibe, path: str = "") -> List[schemas.FileEntryOut]:
    entries = await gateway.list_files(path, vibe.branch_name)
    return [schemas.FileEntryOut(name=e.name, path=e.path, type=e.kind) for e in entries]


async def preview_url(
    gateway: GitHubGateway,
    deployments: Optional[DeploymentStatusProvider],
    vibe: Vibe,
) -> schemas.PreviewUrlOut:
    url = await deployments.get_preview_url(vibe.branch_name) if deployments else None
    if url:
        return schemas.PreviewUrlOut(preview_url=url, branch=vibe.branch_name, source="vercel-api")
    return schemas.PreviewUrlOut(
        preview_url=gateway.branch_url(vibe.branch_name),
        branch=vibe.branch_name,
        source="github-fallback",
        message="No Vercel deployment found yet. Push a commit to trigger a preview.",
    )


async def submit_pull_request(
    db: Session,
    gateway: GitHubGateway,
    vibe: Vibe,
    title: Optional[str],
    body: Optional[str],
) -> schemas.PullRequestOut:
    comparison = await gateway.compare_branches(vibe.branch_name)
    if comparison.ahead_by == 0:
        raise ValidationError("No changes to submit")

    user = db.get(User, vibe.user_id)
    pr_title = title or f"Vibe changes from {(user.name if user else None) or 'a user'}"
    files = "\n".join(f"- {p}" for p in comparison.changed_paths)
    pr_body = body or f'Changes made via the "I wanna Vibe" feature.\n\nFiles changed:\n{files}'

    pr = await gateway.create_pull_request(vibe.branch_name, pr_title, pr_body)
    return schemas.PullRequestOut(pr_number=pr.number, pr_url=pr.url)


async def revert(db: Session, gateway: GitHubGateway, vibe: Vibe) -> schemas.RevertOut:
    """Throw away the branch's commits and tombstone the chat history."""
    await gateway.reset_branch_to_production(vibe.branch_name)
    cleared = store.clear_history(db, vibe.id)
    return schemas.RevertOut(message="Vibe reset to production", cleared_messages=cleared)
