# FILE: crosswalk/dependencies.py
"""
Long-lived clients, built once at startup and handed to routes via Depends.

main.py calls init_services() on startup and close_services() on shutdown.
Tests either call init_services() with fakes or use app.dependency_overrides.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import anthropic

from crosswalk import config
from crosswalk.auth.identity import AppleIdentityProvider, IdentityProvider
from crosswalk.db import SessionLocal
from crosswalk.realtime.fanout import FanoutChannel, NullFanout, PusherFanout
from crosswalk.vibe.chat import VibeChatService
from crosswalk.vibe.completion import AnthropicCompletionService, CompletionService
from crosswalk.vibe.deployments import VercelDeployments
from crosswalk.vibe.github import GitHubGateway
from crosswalk.vibe.locks import ConversationLocks

logger = logging.getLogger(__name__)


@dataclass
class Services:
    gateway: GitHubGateway
    deployments: Optional[VercelDeployments]
    completion: CompletionService
    fanout: FanoutChannel
    identity: IdentityProvider
    chat: VibeChatService


_services: Optional[Services] = None


def build_services() -> Services:
    gh = config.github_settings()
    vercel = config.vercel_settings()
    completion_cfg = config.completion_settings()
    pusher_cfg = config.pusher_settings()

    gateway = GitHubGateway(gh.token, gh.owner, gh.repo, production_branch=gh.production_branch)
    deployments = (
        VercelDeployments(vercel.token, vercel.team_id, vercel.project_id) if vercel.configured else None
    )
    completion = AnthropicCompletionService(
        anthropic.AsyncAnthropic(api_key=completion_cfg.api_key, timeout=completion_cfg.timeout_seconds),
        model=completion_cfg.model,
        max_tokens=completion_cfg.max_tokens,
    )
    fanout = PusherFanout(pusher_cfg) if pusher_cfg.configured else NullFanout()

    chat = VibeChatService(
        gateway=gateway,
        completion=completion,
        deployments=deployments,
        config=config.AgentLoopConfig.from_env(),
        locks=ConversationLocks(),
        session_factory=SessionLocal,
    )
    return Services(
        gateway=gateway,
        deployments=deployments,
        completion=completion,
        fanout=fanout,
        identity=AppleIdentityProvider(),
        chat=chat,
    )


def init_services(services: Optional[Services] = None) -> Services:
    global _services
    _services = services or build_services()
    return _services


async def close_services() -> None:
    global _services
    if _services is None:
        return
    await _services.chat.drain()
    await _services.gateway.aclose()
    if _services.deployments is not None:
        await _services.deployments.aclose()
    _services = None


def get_services() -> Services:
    if _services is None:
        raise RuntimeError("Services not initialised; call init_services() at startup")
    return _services


# ============== FASTAPI DEPENDENCIES ==============

def get_gateway() -> GitHubGateway:
    return get_services().gateway


def get_deployments() -> Optional[VercelDeployments]:
    return get_services().deployments


def get_fanout() -> FanoutChannel:
    return get_services().fanout


def get_identity_provider() -> IdentityProvider:
    return get_services().identity


def get_chat_service() -> VibeChatService:
    return get_services().chat
