"""
Error taxonomy for the boxscore sync pipeline.

Every error raised below the orchestrator derives from BoxscoreSyncError so the
sync boundary can convert it into a structured failure result.
"""

from typing import Optional


class BoxscoreSyncError(Exception):
    """Base exception for sync pipeline errors."""

    # Whether an operator may reasonably re-run the same call
    retryable = False


class ConfigurationError(BoxscoreSyncError):
    """Missing or invalid credentials, league id, or numeric inputs."""
    pass


class TransportError(BoxscoreSyncError):
    """Network or HTTP failure reaching the upstream fantasy API."""

    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class EmptyUpstreamDataError(BoxscoreSyncError):
    """Upstream returned zero teams, usually a privacy or cookie problem."""
    pass


class WriteError(BoxscoreSyncError):
    """One or more collection upserts failed."""

    def __init__(self, message: str, failed_collections: Optional[list] = None):
        super().__init__(message)
        self.failed_collections = failed_collections or []
