# FILE: crosswalk/errors.py
"""
Error hierarchy for the Crosswalk backend.

Every error carries the HTTP status it maps to. main.py registers a single
exception handler that turns a CrosswalkError into {"detail": message}.
"""

from typing import Optional


class CrosswalkError(Exception):
    """Base class for all Crosswalk errors."""

    status_code = 500

    def __init__(self, message: str = "", *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CrosswalkError):
    """User input is malformed. Raised before any side effect."""

    status_code = 400


class AuthError(CrosswalkError):
    """Missing, invalid or expired credential."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(CrosswalkError):
    """Caller is known but may not touch this resource."""

    status_code = 403


class NotFoundError(CrosswalkError):
    """Referenced resource is absent, or owned by someone else."""

    status_code = 404


class ConflictError(CrosswalkError):
    """Request collides with work already in flight."""

    status_code = 409


class ExternalServiceError(CrosswalkError):
    """An upstream collaborator is unreachable or erroring. Retryable."""

    status_code = 502

    def __init__(self, message: str = "", *, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class SourceControlError(ExternalServiceError):
    """The repository host rejected or failed a request."""


class CompletionServiceError(ExternalServiceError):
    """The language-model completion service failed."""


class DeploymentError(ExternalServiceError):
    """The deployment status provider failed."""


class ToolExecutionError(CrosswalkError):
    """A single tool invocation failed. Local to that call."""

    status_code = 500


class UnknownToolError(ToolExecutionError):
    """The model asked for a tool we do not offer."""
