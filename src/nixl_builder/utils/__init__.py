"""Utilities for nixl-builder."""

from nixl_builder.utils.paths import get_resources_dir, load_resource_json
from nixl_builder.utils.runner import CommandResult, CommandRunner, SystemCommandRunner, run_checked
from nixl_builder.utils.subprocess_executor import SubprocessExecutor
from nixl_builder.utils.unix import PrivilegeHelper

__all__ = [
    "CommandResult",
    "CommandRunner",
    "PrivilegeHelper",
    "SubprocessExecutor",
    "SystemCommandRunner",
    "get_resources_dir",
    "load_resource_json",
    "run_checked",
]
