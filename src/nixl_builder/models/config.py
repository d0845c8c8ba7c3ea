"""Configuration data models for nixl-builder."""

import os
import platform
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

BuildType = Literal["debug", "release", "debugoptimized"]
LogLevel = Literal["INFO", "DEBUG", "TRACE"]

DEFAULT_NIXL_REPO = "https://github.com/ai-dynamo/nixl.git"
DEFAULT_NIXL_BRANCH = "main"
DEFAULT_CUDA_PATH = Path("/usr/local/cuda")
DEFAULT_PYTHON_VERSION = "3.12"
DEFAULT_UCX_VERSION = "v1.21.0"

# Component name -> directory under the build dir / install prefix
COMPONENT_SOURCE_DIRS = {
    "etcd": Path("etcd-cpp-apiv3"),
    "ucx": Path("ucx"),
    "nixl": Path("nixl"),
    "nixlbench": Path("nixl") / "benchmark" / "nixlbench",
}
COMPONENT_INSTALL_DIRS = {
    "etcd": Path("etcd-cpp-api"),
    "ucx": Path("ucx"),
    "nixl": Path("nixl"),
    "nixlbench": Path("nixlbench"),
}


def _prepend(entries: list[str], current: str | None) -> str:
    parts = [e for e in entries if e]
    if current:
        parts.append(current)
    return os.pathsep.join(parts)


class BuildConfig(BaseModel):
    """Resolved build configuration.

    Immutable once resolved; steps return updates which the orchestrator merges
    into a new copy.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Paths
    project_root: Path = Field(default_factory=Path.cwd)
    build_dir: Path
    install_prefix: Path
    cuda_path: Path = DEFAULT_CUDA_PATH

    # Sources and versions
    nixl_repo: str = DEFAULT_NIXL_REPO
    nixl_branch: str = DEFAULT_NIXL_BRANCH
    python_version: str = DEFAULT_PYTHON_VERSION
    build_type: BuildType = "release"
    ucx_version: str = DEFAULT_UCX_VERSION

    # Flags
    skip_deps: bool = False
    skip_etcd: bool = False
    skip_ucx: bool = False
    skip_nixl: bool = False
    skip_nixlbench: bool = False
    clean: bool = False

    log_level: LogLevel = "INFO"

    # Host facts and runtime discoveries
    arch: str = Field(default_factory=platform.machine)
    jobs: int = Field(default_factory=lambda: os.cpu_count() or 1)
    cmake_command: str = "cmake"
    extra_path: tuple[str, ...] = ()
    pkg_config_path: tuple[str, ...] = ()
    virtual_env: Path | None = None

    @model_validator(mode="before")
    @classmethod
    def derive_directories(cls, data: Any) -> Any:  # noqa: ANN401
        """Default build_dir and install_prefix under the project root."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        root = data.get("project_root") or Path.cwd()
        root = Path(root).expanduser()
        data["project_root"] = root
        if not data.get("build_dir"):
            data["build_dir"] = root / "build"
        if not data.get("install_prefix"):
            data["install_prefix"] = root / "install"
        return data

    @field_validator("project_root", "build_dir", "install_prefix", "cuda_path", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Expand user path and anchor relative paths at the current directory."""
        return Path(v).expanduser().absolute()

    @field_validator("jobs")
    @classmethod
    def at_least_one_job(cls, v: int) -> int:
        return max(1, v)

    @property
    def venv_path(self) -> Path:
        return self.build_dir / ".venv"

    @property
    def env_file(self) -> Path:
        return self.project_root / "utils" / "nixl_env.sh"

    @property
    def nixl_lib_dir(self) -> Path:
        return self.install_prefix / "nixl" / "lib" / f"{self.arch}-linux-gnu"

    @property
    def nixl_plugin_dir(self) -> Path:
        return self.nixl_lib_dir / "plugins"

    @property
    def ucx_pkgconfig_dir(self) -> Path:
        return self.install_dir("ucx") / "lib" / "pkgconfig"

    def source_dir(self, component: str) -> Path:
        return self.build_dir / COMPONENT_SOURCE_DIRS[component]

    def component_build_dir(self, component: str) -> Path:
        return self.source_dir(component) / "build"

    def install_dir(self, component: str) -> Path:
        return self.install_prefix / COMPONENT_INSTALL_DIRS[component]

    def command_environment(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """
        Build the environment for external commands.

        Discovered PATH entries and the active virtual environment are
        prepended to the inherited PATH; PKG_CONFIG_PATH likewise.

        Args:
            base: Inherited environment, defaults to os.environ

        Returns:
            New environment mapping
        """
        env = dict(os.environ if base is None else base)
        path_entries = list(self.extra_path)
        if self.virtual_env is not None:
            path_entries.insert(0, str(self.virtual_env / "bin"))
            env["VIRTUAL_ENV"] = str(self.virtual_env)
        if path_entries:
            env["PATH"] = _prepend(path_entries, env.get("PATH"))
        if self.pkg_config_path:
            env["PKG_CONFIG_PATH"] = _prepend(list(self.pkg_config_path), env.get("PKG_CONFIG_PATH"))
        return env
