from pathlib import Path

import pytest
from pydantic import ValidationError

from nixl_builder.models import BuildConfig, ComponentBuild, StepResult


def test_directories_follow_project_root(tmp_path: Path) -> None:
    cfg = BuildConfig(project_root=tmp_path, arch="aarch64")

    assert cfg.venv_path == tmp_path / "build" / ".venv"
    assert cfg.env_file == tmp_path / "utils" / "nixl_env.sh"
    assert cfg.source_dir("etcd") == tmp_path / "build" / "etcd-cpp-apiv3"
    assert cfg.source_dir("nixlbench") == tmp_path / "build" / "nixl" / "benchmark" / "nixlbench"
    assert cfg.component_build_dir("nixl") == tmp_path / "build" / "nixl" / "build"
    assert cfg.install_dir("etcd") == tmp_path / "install" / "etcd-cpp-api"
    assert cfg.nixl_lib_dir == tmp_path / "install" / "nixl" / "lib" / "aarch64-linux-gnu"
    assert cfg.nixl_plugin_dir == cfg.nixl_lib_dir / "plugins"
    assert cfg.ucx_pkgconfig_dir == tmp_path / "install" / "ucx" / "lib" / "pkgconfig"


def test_explicit_directories_are_kept(tmp_path: Path) -> None:
    cfg = BuildConfig(project_root=tmp_path, build_dir="/srv/b", install_prefix="/srv/i")

    assert cfg.build_dir == Path("/srv/b")
    assert cfg.install_prefix == Path("/srv/i")


def test_home_is_expanded() -> None:
    cfg = BuildConfig(project_root="~/work")

    assert cfg.project_root == Path.home() / "work"
    assert cfg.build_dir == Path.home() / "work" / "build"


def test_config_is_immutable(config: BuildConfig) -> None:
    with pytest.raises(ValidationError):
        config.clean = True  # type: ignore[misc]

    updated = config.model_copy(update={"clean": True})
    assert updated.clean is True
    assert config.clean is False


def test_jobs_at_least_one(tmp_path: Path) -> None:
    assert BuildConfig(project_root=tmp_path, jobs=0).jobs == 1


def test_command_environment(config: BuildConfig) -> None:
    cfg = config.model_copy(
        update={
            "extra_path": ("/opt/uv/bin",),
            "virtual_env": Path("/venv"),
            "pkg_config_path": ("/opt/ucx/lib/pkgconfig",),
        }
    )

    env = cfg.command_environment({"PATH": "/usr/bin", "PKG_CONFIG_PATH": "/usr/lib/pkgconfig"})

    assert env["PATH"] == "/venv/bin:/opt/uv/bin:/usr/bin"
    assert env["VIRTUAL_ENV"] == "/venv"
    assert env["PKG_CONFIG_PATH"] == "/opt/ucx/lib/pkgconfig:/usr/lib/pkgconfig"


def test_command_environment_leaves_base_untouched(config: BuildConfig) -> None:
    base = {"PATH": "/usr/bin"}

    assert config.command_environment(base) == base
    assert base == {"PATH": "/usr/bin"}


def test_step_result_status() -> None:
    assert StepResult.ok("a").status == "success"
    assert StepResult.ok("a", warnings=["w"]).status == "degraded"
    assert StepResult.skip("a", reason="flag").skipped is True
    assert StepResult.skip("a").status == "success"

    fatal = StepResult.fatal("a", "boom")
    assert fatal.is_fatal
    assert fatal.reason == "boom"


def test_component_build_history() -> None:
    build = ComponentBuild(name="ucx")
    build.advance("fetched")
    build.advance("configured")

    assert build.state == "configured"
    assert build.history == ["fetched", "configured"]
