"""Python environment and shell environment services."""

from .emitter import EnvironmentEmitter, render_env_file
from .python_env import PythonEnvironmentBuilder, download_installer

__all__ = [
    "EnvironmentEmitter",
    "PythonEnvironmentBuilder",
    "download_installer",
    "render_env_file",
]
