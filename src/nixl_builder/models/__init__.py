"""Data models for nixl-builder."""

from nixl_builder.models.build import ComponentBuild, ComponentState, StepResult, StepStatus
from nixl_builder.models.config import BuildConfig, BuildType, LogLevel

__all__ = [
    "BuildConfig",
    "BuildType",
    "ComponentBuild",
    "ComponentState",
    "LogLevel",
    "StepResult",
    "StepStatus",
]
