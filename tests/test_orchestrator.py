import os
from pathlib import Path

import pytest
from conftest import RecordingRunner

from nixl_builder.main import main
from nixl_builder.models.config import BuildConfig
from nixl_builder.services import BuildOrchestrator
from nixl_builder.utils.runner import CommandResult

FAIL = CommandResult(returncode=1)


def build_runner(**kwargs: object) -> RecordingRunner:
    runner = RecordingRunner(**kwargs)  # type: ignore[arg-type]
    runner.clone_creates = ["benchmark/nixlbench"]
    return runner


def involves(runner: RecordingRunner, directory: Path) -> bool:
    """True if any call ran in, or named a path under, ``directory``."""
    for call in runner.calls:
        if call.cwd is not None and (call.cwd == directory or directory in call.cwd.parents):
            return True
        for arg in call.args:
            path = Path(arg)
            if path == directory or directory in path.parents:
                return True
    return False


def test_end_to_end_with_succeeding_tools(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    runner = build_runner()

    code = main(["--project-root", str(tmp_path), "--skip-deps"], runner=runner, environ={})

    assert code == 0
    env_file = tmp_path / "utils" / "nixl_env.sh"
    assert env_file.is_file()
    assert os.access(env_file, os.X_OK)
    content = env_file.read_text(encoding="utf-8")
    assert str(tmp_path / "install" / "nixl") in content
    assert str(tmp_path / "install" / "nixlbench" / "bin") in content

    assert runner.lines[:2] == [f"mkdir -p {tmp_path / 'build'}", f"mkdir -p {tmp_path / 'install'}"]
    assert runner.index("git clone --depth 1 https://github.com/etcd-cpp-apiv3/etcd-cpp-apiv3.git") < runner.index(
        "git clone https://github.com/openucx/ucx.git"
    )
    assert runner.index("git clone https://github.com/openucx/ucx.git") < runner.index(
        "git clone --depth 1 -b main https://github.com/ai-dynamo/nixl.git"
    )
    assert runner.ran("meson setup")
    assert "source utils/nixl_env.sh" in capsys.readouterr().out


def test_step_order(tmp_path: Path) -> None:
    runner = build_runner(results={"pkg-config --exists ucx": FAIL})

    code = main(["--project-root", str(tmp_path)], runner=runner, environ={})

    assert code == 0
    order = [
        "sudo apt-get update -qq",
        "uv venv",
        "cmake ..",
        "./autogen.sh",
        "git clone --depth 1 -b main",
        f"meson setup {tmp_path / 'build' / 'nixl'}",
        f"meson setup {tmp_path / 'build' / 'nixl' / 'benchmark' / 'nixlbench'}",
    ]
    positions = [runner.index(prefix) for prefix in order]
    assert positions == sorted(positions)


def test_repeated_runs_succeed(tmp_path: Path) -> None:
    runner = build_runner()
    argv = ["--project-root", str(tmp_path), "--skip-deps"]

    assert main(argv, runner=runner, environ={}) == 0
    first_run = len(runner.calls)
    assert main(argv, runner=runner, environ={}) == 0

    second = runner.lines[first_run:]
    assert second.count(f"mkdir -p {tmp_path / 'build'}") == 1
    assert not any(line.startswith("git clone") for line in second)
    assert "git pull" in second


def test_skip_nixl_leaves_nixl_build_dir_alone(tmp_path: Path) -> None:
    runner = build_runner()

    code = main(["--project-root", str(tmp_path), "--skip-nixl", "--skip-deps"], runner=runner, environ={})

    assert code == 0
    assert not involves(runner, tmp_path / "build" / "nixl" / "build")
    assert runner.ran(f"meson setup {tmp_path / 'build' / 'nixl' / 'benchmark' / 'nixlbench'}")


def test_skip_nixl_and_nixlbench_skips_clone(tmp_path: Path) -> None:
    runner = build_runner()

    code = main(
        ["--project-root", str(tmp_path), "--skip-nixl", "--skip-nixlbench", "--skip-deps"],
        runner=runner,
        environ={},
    )

    assert code == 0
    assert not involves(runner, tmp_path / "build" / "nixl")
    assert (tmp_path / "utils" / "nixl_env.sh").exists()


def test_system_ucx_short_circuits_whole_run(tmp_path: Path) -> None:
    runner = build_runner(results={"pkg-config --modversion ucx": CommandResult(returncode=0, stdout="1.22.0\n")})

    code = main(["--project-root", str(tmp_path), "--skip-deps"], runner=runner, environ={})

    assert code == 0
    assert not involves(runner, tmp_path / "build" / "ucx")


def test_missing_prerequisites_stop_the_run(tmp_path: Path) -> None:
    runner = build_runner(tools={"git"})

    code = main(["--project-root", str(tmp_path)], runner=runner, environ={})

    assert code == 1
    assert not runner.ran("sudo apt-get")
    assert not runner.ran("git clone")
    assert not (tmp_path / "utils" / "nixl_env.sh").exists()


def test_mandatory_failure_stops_the_run(tmp_path: Path) -> None:
    runner = build_runner(results={"meson setup": FAIL})

    code = main(["--project-root", str(tmp_path), "--skip-deps"], runner=runner, environ={})

    assert code == 1
    assert sum(line.startswith("meson setup") for line in runner.lines) == 1
    assert not (tmp_path / "utils" / "nixl_env.sh").exists()


def test_ancillary_failure_continues(tmp_path: Path) -> None:
    runner = build_runner(results={"./autogen.sh": FAIL, "pkg-config --exists ucx": FAIL})
    config = BuildConfig(project_root=tmp_path, skip_deps=True)

    orchestrator = BuildOrchestrator(config, runner)
    code = orchestrator.run()

    assert code == 0
    assert any("UCX autogen failed" in w for w in orchestrator.warnings)
    assert runner.ran("meson setup")


def test_updates_are_merged_between_steps(tmp_path: Path) -> None:
    runner = build_runner(tools=None, results={"pkg-config --exists ucx": FAIL})
    config = BuildConfig(project_root=tmp_path, skip_deps=True, skip_etcd=True)

    orchestrator = BuildOrchestrator(config, runner)
    assert orchestrator.run() == 0

    assert orchestrator.config.cmake_command == "cmake"
    assert orchestrator.config.virtual_env == config.venv_path
    assert str(config.ucx_pkgconfig_dir) in orchestrator.config.pkg_config_path
    assert config.virtual_env is None
    nixl_setup = runner.calls[runner.index(f"meson setup {config.source_dir('nixl')}")]
    assert nixl_setup.env is not None
    assert nixl_setup.env["PKG_CONFIG_PATH"].startswith(str(config.ucx_pkgconfig_dir))


def test_unwritable_env_file_fails_the_run(tmp_path: Path) -> None:
    (tmp_path / "utils").write_text("", encoding="utf-8")
    runner = build_runner()

    code = main(["--project-root", str(tmp_path), "--skip-deps"], runner=runner, environ={})

    assert code == 1
    assert not runner.ran(f"{tmp_path / 'install' / 'nixlbench' / 'bin' / 'nixlbench'} --help")
