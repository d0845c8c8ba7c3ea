"""System package installation."""

from .installer import DependencyInstaller

__all__ = ["DependencyInstaller"]
