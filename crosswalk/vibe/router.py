# crosswalk/vibe/router.py
"""
Vibe endpoints. Every route is scoped to the caller's own vibes; anyone
else's vibe is a 404.

POST /vibe/{id}/chat streams Server-Sent Events:
    data: {"type": "status", "message": "Thinking..."}
    data: {"type": "tool_start", "tool": "read_file", "path": "...", "message": "..."}
    data: {"type": "tool_end", "tool": "read_file", "success": true, "message": "..."}
    data: {"type": "done", "message": "...", "toolsUsed": [...], "vibe": {...}}
    data: {"type": "deployment", "state": "READY", "message": "...", "url": "..."}
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from crosswalk.auth import require_auth, AuthResult
from crosswalk.db import get_db
from crosswalk.dependencies import get_chat_service, get_deployments, get_gateway
from . import service, store, schemas
from .chat import VibeChatService, validate_chat_text
from .deployments import DeploymentStatusProvider
from .events import EventEmitter, SSE_HEADERS
from .github import GitHubGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vibe", tags=["vibe"])


@router.get("", response_model=List[schemas.VibeOut])
async def list_vibes(
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
):
    return await service.list_vibes(db, gateway, auth.user_id)


@router.post("", response_model=schemas.VibeOut, status_code=201)
async def create_vibe(
    data: schemas.VibeCreate,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
):
    return await service.create_vibe(db, gateway, auth.user_id, data.name)


@router.get("/{vibe_id}", response_model=schemas.VibeOut)
async def get_vibe(
    vibe_id: str,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
):
    return await service.to_out(gateway, store.get_vibe(db, vibe_id, auth.user_id))


@router.delete("/{vibe_id}")
def delete_vibe(
    vibe_id: str,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    chat_service: VibeChatService = Depends(get_chat_service),
):
    vibe = store.get_vibe(db, vibe_id, auth.user_id)
    with chat_service.locks.held(vibe.id):
        store.delete_vibe(db, vibe)
    return {"success": True}


@router.get("/{vibe_id}/messages", response_model=List[schemas.MessageOut])
def get_messages(vibe_id: str, auth: AuthResult = Depends(require_auth), db: Session = Depends(get_db)):
    vibe = store.get_vibe(db, vibe_id, auth.user_id)
    return store.get_chat_history(db, vibe.id)


@router.post("/{vibe_id}/chat")
async def chat(
    vibe_id: str,
    req: schemas.ChatRequest,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    chat_service: VibeChatService = Depends(get_chat_service),
):
    text = validate_chat_text(req.message)
    vibe = store.get_vibe(db, vibe_id, auth.user_id)

    emitter = EventEmitter()
    # Raises ConflictError (409) before any bytes are streamed
    chat_service.start_turn(vibe.id, auth.user_id, text, emitter)

    async def event_generator():
        try:
            async for chunk in emitter.stream():
                yield chunk
        finally:
            # Client gone or stream finished; the turn carries on regardless
            emitter.detach()

    return StreamingResponse(event_generator(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/{vibe_id}/file", response_model=schemas.FileOut)
async def get_file(
    vibe_id: str,
    path: Optional[str] = Query(None),
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
):
    vibe = store.get_vibe(db, vibe_id, auth.user_id)
    return await service.read_file(gateway, vibe, path)


@router.get("/{vibe_id}/files", response_model=List[schemas.FileEntryOut])
async def list_files(
    vibe_id: str,
    path: str = Query(""),
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
):
    vibe = store.get_vibe(db, vibe_id, auth.user_id)
    return await service.list_files(gateway, vibe, path)


@router.get("/{vibe_id}/preview-url", response_model=schemas.PreviewUrlOut)
async def preview_url(
    vibe_id: str,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
    deployments: Optional[DeploymentStatusProvider] = Depends(get_deployments),
):
    vibe = store.get_vibe(db, vibe_id, auth.user_id)
    return await service.preview_url(gateway, deployments, vibe)


@router.post("/{vibe_id}/pr", response_model=schemas.PullRequestOut)
async def create_pull_request(
    vibe_id: str,
    data: Optional[schemas.PullRequestCreate] = None,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
    chat_service: VibeChatService = Depends(get_chat_service),
):
    vibe = store.get_vibe(db, vibe_id, auth.user_id)
    data = data or schemas.PullRequestCreate()
    with chat_service.locks.held(vibe.id):
        return await service.submit_pull_request(db, gateway, vibe, data.title, data.body)


@router.post("/{vibe_id}/revert", response_model=schemas.RevertOut)
async def revert(
    vibe_id: str,
    auth: AuthResult = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GitHubGateway = Depends(get_gateway),
    chat_service: VibeChatService = Depends(get_chat_service),
):
    vibe = store.get_vibe(db, vibe_id, auth.user_id)
    with chat_service.locks.held(vibe.id):
        return await service.revert(db, gateway, vibe)
