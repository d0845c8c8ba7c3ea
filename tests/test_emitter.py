import os
import stat
from pathlib import Path

from nixl_builder.models.config import BuildConfig
from nixl_builder.services.environment import EnvironmentEmitter, render_env_file


def test_render_is_pure_function_of_config(config: BuildConfig) -> None:
    assert render_env_file(config) == render_env_file(config.model_copy())


def test_render_contents(config: BuildConfig) -> None:
    prefix = config.install_prefix
    content = render_env_file(config)
    lines = content.splitlines()

    assert lines[0] == "#!/bin/bash"
    assert f'export PATH="{prefix}/nixlbench/bin:{prefix}/nixl/bin:$PATH"' in lines
    assert (
        f'export LD_LIBRARY_PATH="{prefix}/nixlbench/lib:{prefix}/nixl/lib/x86_64-linux-gnu:'
        f'{prefix}/nixl/lib/x86_64-linux-gnu/plugins:$LD_LIBRARY_PATH"'
    ) in lines
    assert 'export CUDA_PATH="/usr/local/cuda"' in lines
    assert 'export LD_LIBRARY_PATH="$CUDA_PATH/lib64:$LD_LIBRARY_PATH"' in lines
    assert f'source "{config.venv_path}/bin/activate"' in lines
    assert len([line for line in lines if line.startswith("echo ")]) == 2


def test_emit_writes_executable_file(config: BuildConfig) -> None:
    result = EnvironmentEmitter().emit(config)

    env_file = config.project_root / "utils" / "nixl_env.sh"
    assert result.status == "success"
    assert env_file.read_text(encoding="utf-8") == render_env_file(config)
    assert stat.S_IMODE(env_file.stat().st_mode) == 0o755
    assert os.access(env_file, os.X_OK)


def test_emit_overwrites_previous_file(config: BuildConfig) -> None:
    env_file: Path = config.env_file
    env_file.parent.mkdir(parents=True)
    env_file.write_text("stale\n", encoding="utf-8")
    env_file.chmod(0o600)

    EnvironmentEmitter().emit(config.model_copy(update={"cuda_path": Path("/opt/cuda")}))

    content = env_file.read_text(encoding="utf-8")
    assert "stale" not in content
    assert 'export CUDA_PATH="/opt/cuda"' in content
    assert stat.S_IMODE(env_file.stat().st_mode) == 0o755


def test_emit_unwritable_location_is_fatal(config: BuildConfig) -> None:
    (config.project_root / "utils").write_text("not a directory\n", encoding="utf-8")

    result = EnvironmentEmitter().emit(config)

    assert result.is_fatal
    assert result.reason is not None
    assert str(config.env_file) in result.reason
