from pathlib import Path

import pytest
import yaml

from nixl_builder.config import CONFIG_PATH_ENV, ConfigManager
from nixl_builder.exceptions import ConfigurationError


def write_yaml(path: Path, data: dict) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_defaults(tmp_path: Path) -> None:
    cfg = ConfigManager(environ={}).load({"project_root": tmp_path})

    assert cfg.nixl_repo == "https://github.com/ai-dynamo/nixl.git"
    assert cfg.nixl_branch == "main"
    assert cfg.build_type == "release"
    assert cfg.ucx_version == "v1.21.0"
    assert cfg.log_level == "INFO"
    assert cfg.build_dir == tmp_path / "build"
    assert cfg.install_prefix == tmp_path / "install"


def test_precedence_file_env_cli(tmp_path: Path) -> None:
    config_file = write_yaml(
        tmp_path / "nixl.yaml",
        {"python_version": "3.11", "build_type": "debug", "nixl_branch": "from-file", "skip_etcd": True},
    )
    environ = {"BUILD_TYPE": "debugoptimized", "NIXL_BRANCH": "from-env"}

    cfg = ConfigManager(config_path=config_file, environ=environ).load(
        {"project_root": tmp_path, "nixl_branch": "from-cli", "build_type": None}
    )

    assert cfg.python_version == "3.11"
    assert cfg.build_type == "debugoptimized"
    assert cfg.nixl_branch == "from-cli"
    assert cfg.skip_etcd is True


def test_config_path_from_environment(tmp_path: Path) -> None:
    config_file = write_yaml(tmp_path / "nixl.yaml", {"ucx_version": "v1.20.0"})

    manager = ConfigManager(environ={CONFIG_PATH_ENV: str(config_file)})

    assert manager.config_path == config_file
    assert manager.load({"project_root": tmp_path}).ucx_version == "v1.20.0"


def test_missing_config_file_is_ignored(tmp_path: Path) -> None:
    cfg = ConfigManager(config_path=tmp_path / "absent.yaml", environ={}).load({"project_root": tmp_path})

    assert cfg.build_type == "release"


def test_environment_directories(tmp_path: Path) -> None:
    environ = {
        "BUILD_DIR": str(tmp_path / "b"),
        "INSTALL_PREFIX": str(tmp_path / "i"),
        "CUDA_PATH": "/opt/cuda-12",
        "NIXL_BUILD_PROJECT_ROOT": str(tmp_path),
    }

    cfg = ConfigManager(environ=environ).load()

    assert cfg.project_root == tmp_path
    assert cfg.build_dir == tmp_path / "b"
    assert cfg.install_prefix == tmp_path / "i"
    assert cfg.cuda_path == Path("/opt/cuda-12")


def test_empty_environment_values_are_ignored(tmp_path: Path) -> None:
    cfg = ConfigManager(environ={"BUILD_TYPE": "", "NIXL_BRANCH": ""}).load({"project_root": tmp_path})

    assert cfg.build_type == "release"
    assert cfg.nixl_branch == "main"


def test_invalid_value_raises_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        ConfigManager(environ={"BUILD_TYPE": "fast"}).load({"project_root": tmp_path})

    assert exc_info.value.message_key == "config.invalid_value"
    assert "build_type" in str(exc_info.value)
    assert exc_info.value.exit_code == 1


def test_unknown_file_key_is_rejected(tmp_path: Path) -> None:
    config_file = write_yaml(tmp_path / "nixl.yaml", {"no_such_option": 1})

    with pytest.raises(ConfigurationError):
        ConfigManager(config_path=config_file, environ={}).load({"project_root": tmp_path})


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / "nixl.yaml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigManager(config_path=config_file, environ={}).load()

    assert exc_info.value.message_key == "config.unreadable_file"
