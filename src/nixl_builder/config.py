"""Configuration management for nixl-builder."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from nixl_builder.exceptions import ConfigurationError
from nixl_builder.models.config import BuildConfig

CONFIG_PATH_ENV = "NIXL_BUILD_CONFIG_PATH"

# Environment variable -> BuildConfig field
ENV_OVERRIDES = {
    "BUILD_DIR": "build_dir",
    "INSTALL_PREFIX": "install_prefix",
    "NIXL_REPO": "nixl_repo",
    "NIXL_BRANCH": "nixl_branch",
    "CUDA_PATH": "cuda_path",
    "PYTHON_VERSION": "python_version",
    "BUILD_TYPE": "build_type",
    "UCX_VERSION": "ucx_version",
    "NIXL_BUILD_PROJECT_ROOT": "project_root",
    "NIXL_BUILD_LOG_LEVEL": "log_level",
}


class ConfigManager:
    """Resolves build configuration from defaults, a YAML file, environment variables and CLI flags."""

    def __init__(self, config_path: Path | None = None, environ: Mapping[str, str] | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to a YAML config file. If None, uses NIXL_BUILD_CONFIG_PATH
                        when set; otherwise no file is read
            environ: Environment to read overrides from, defaults to os.environ
        """
        self.environ: Mapping[str, str] = os.environ if environ is None else environ

        if config_path is None:
            env_path = self.environ.get(CONFIG_PATH_ENV)
            if env_path:
                config_path = Path(env_path).expanduser()

        self.config_path = config_path

    def load(self, cli_overrides: Mapping[str, Any] | None = None) -> BuildConfig:
        """Load configuration, lowest to highest precedence: defaults, file, environment, CLI.

        Args:
            cli_overrides: Field values given on the command line; None values are ignored

        Returns:
            Resolved configuration

        Raises:
            ConfigurationError: If the file is unreadable or a value is invalid
        """
        # 1. Load from YAML file if it exists
        config_data: dict[str, Any] = self._load_file()

        # 2. Apply environment variable overrides
        config_data.update(self._env_overrides())

        # 3. Apply command line overrides
        if cli_overrides:
            config_data.update({k: v for k, v in cli_overrides.items() if v is not None})

        # 4. Create config object (applies defaults)
        try:
            return BuildConfig(**config_data)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or "config"
            raise ConfigurationError("config.invalid_value", field=field, value=error.get("input")) from e

    def _load_file(self) -> dict[str, Any]:
        if self.config_path is None or not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError("config.unreadable_file", path=str(self.config_path), error=str(e)) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "config.unreadable_file", path=str(self.config_path), error="top level must be a mapping"
            )
        return data

    def _env_overrides(self) -> dict[str, str]:
        """Collect overrides from environment variables.

        Examples:
            - BUILD_TYPE=debug
            - INSTALL_PREFIX=/opt/nixl
        """
        overrides: dict[str, str] = {}
        for env_name, field in ENV_OVERRIDES.items():
            if value := self.environ.get(env_name):
                overrides[field] = value
        return overrides
