# crosswalk/vibe/schemas.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class VibeCreate(BaseModel):
    name: Optional[str] = None


class VibeOut(BaseModel):
    id: str
    name: str
    branch_name: str
    created_at: datetime
    has_changes: bool = False
    changed_files: List[str] = []
    ahead_by: int = 0
    behind_by: int = 0

    model_config = ConfigDict(from_attributes=True)


class MessageOut(BaseModel):
    id: str
    role: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatRequest(BaseModel):
    message: Optional[str] = None


class FileOut(BaseModel):
    path: str
    content: str
    sha: str


class FileEntryOut(BaseModel):
    name: str
    path: str
    type: str


class PreviewUrlOut(BaseModel):
    preview_url: str
    branch: str
    source: str
    message: Optional[str] = None


class PullRequestCreate(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class PullRequestOut(BaseModel):
    pr_number: int
    pr_url: str


class RevertOut(BaseModel):
    success: bool = True
    message: str
    cleared_messages: int = 0
