"""Build steps and their orchestration."""

from .orchestrator import BuildOrchestrator
from .verify import InstallationVerifier

__all__ = ["BuildOrchestrator", "InstallationVerifier"]
