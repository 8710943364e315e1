# FILE: crosswalk/config.py
"""
Environment-driven configuration.

main.py calls load_dotenv() before importing anything from this package, so
module-level reads below see values from .env as well as the real environment.
"""

import os
from dataclasses import dataclass
from typing import List, Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


# ============== AUTH ==============

JWT_SECRET = os.getenv("CROSSWALK_JWT_SECRET", "")
SESSION_TTL_DAYS = int(os.getenv("CROSSWALK_SESSION_TTL_DAYS") or "30")
APPLE_AUDIENCES = _env_list("CROSSWALK_APPLE_AUDIENCES", "com.crosswalk.app,com.crosswalk.app.web")

# ============== HTTP ==============

CORS_ORIGINS = _env_list(
    "CROSSWALK_CORS_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,capacitor://localhost,https://localhost",
)
LOG_LEVEL = os.getenv("CROSSWALK_LOG_LEVEL", "INFO").upper()


@dataclass
class GitHubSettings:
    token: str
    owner: str
    repo: str
    production_branch: str = "main"

    @property
    def configured(self) -> bool:
        return bool(self.token)


@dataclass
class VercelSettings:
    token: str
    team_id: Optional[str] = None
    project_id: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.token)


@dataclass
class PusherSettings:
    app_id: str
    key: str
    secret: str
    cluster: str = "us2"

    @property
    def configured(self) -> bool:
        return bool(self.app_id and self.key and self.secret)


@dataclass
class CompletionSettings:
    api_key: Optional[str]
    model: str = "claude-opus-4-20250514"
    max_tokens: int = 16384
    timeout_seconds: float = 600.0


@dataclass
class AgentLoopConfig:
    """Tunables for the Vibe agent loop.

    Defaults match production behaviour. Every field can be overridden from
    the environment (see from_env) or directly in tests.
    """
    max_iterations: int = 20
    poll_interval_seconds: float = 3.0
    poll_max_attempts: int = 30
    repair_enabled: bool = True
    history_limit: int = 20
    system_prompt: str = ""
    repair_pattern: Optional[str] = None
    tool_summary_chars: int = 100

    @classmethod
    def from_env(cls) -> "AgentLoopConfig":
        from crosswalk.vibe.prompts import SYSTEM_PROMPT

        return cls(
            max_iterations=int(os.getenv("CROSSWALK_VIBE_MAX_ITERATIONS") or "20"),
            poll_interval_seconds=float(os.getenv("CROSSWALK_VIBE_POLL_INTERVAL") or "3"),
            poll_max_attempts=int(os.getenv("CROSSWALK_VIBE_POLL_ATTEMPTS") or "30"),
            repair_enabled=_env_bool("CROSSWALK_VIBE_REPAIR", True),
            history_limit=int(os.getenv("CROSSWALK_VIBE_HISTORY_LIMIT") or "20"),
            system_prompt=os.getenv("CROSSWALK_VIBE_SYSTEM_PROMPT") or SYSTEM_PROMPT,
            repair_pattern=os.getenv("CROSSWALK_VIBE_REPAIR_PATTERN") or None,
        )


def github_settings() -> GitHubSettings:
    return GitHubSettings(
        token=os.getenv("GITHUB_TOKEN", ""),
        owner=os.getenv("GITHUB_REPO_OWNER", "crosswalk-app"),
        repo=os.getenv("GITHUB_REPO_NAME", "crosswalk-vibed"),
        production_branch=os.getenv("CROSSWALK_PRODUCTION_BRANCH", "main"),
    )


def vercel_settings() -> VercelSettings:
    return VercelSettings(
        token=os.getenv("VERCEL_TOKEN", ""),
        team_id=os.getenv("VERCEL_TEAM_ID") or None,
        project_id=os.getenv("VERCEL_PROJECT_ID") or None,
    )


def pusher_settings() -> PusherSettings:
    return PusherSettings(
        app_id=os.getenv("PUSHER_APP_ID", ""),
        key=os.getenv("PUSHER_KEY", ""),
        secret=os.getenv("PUSHER_SECRET", ""),
        cluster=os.getenv("PUSHER_CLUSTER", "us2"),
    )


def completion_settings() -> CompletionSettings:
    return CompletionSettings(
        api_key=os.getenv("ANTHROPIC_API_KEY") or None,
        model=os.getenv("CROSSWALK_VIBE_MODEL", "claude-opus-4-20250514"),
        max_tokens=int(os.getenv("CROSSWALK_VIBE_MAX_TOKENS") or "16384"),
        timeout_seconds=float(os.getenv("CROSSWALK_VIBE_TIMEOUT_S") or "600"),
    )
