"""Git services."""

from .service import GitService

__all__ = ["GitService"]
