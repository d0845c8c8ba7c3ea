"""Generation of the shell-sourceable environment file."""

from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import StepResult
from nixl_builder.models.config import BuildConfig

logger = get_logger(__name__)

STEP_NAME = "environment"

ENV_FILE_TEMPLATE = """\
#!/bin/bash
# NIXL and NIXLBench Environment Setup
# Source this file: source utils/nixl_env.sh

export PATH="{bin_path}:$PATH"
export LD_LIBRARY_PATH="{library_path}:$LD_LIBRARY_PATH"

# CUDA paths
export CUDA_PATH="{cuda_path}"
export PATH="$CUDA_PATH/bin:$PATH"
export LD_LIBRARY_PATH="$CUDA_PATH/lib64:$LD_LIBRARY_PATH"

# Python virtual environment
source "{venv_path}/bin/activate"

echo "NIXL environment loaded"
echo "  NIXL: {nixl_prefix}  NIXLBench: {nixlbench_prefix}"
"""


def binary_search_path(config: BuildConfig) -> list[str]:
    return [str(config.install_dir("nixlbench") / "bin"), str(config.install_dir("nixl") / "bin")]


def library_search_path(config: BuildConfig) -> list[str]:
    return [
        str(config.install_dir("nixlbench") / "lib"),
        str(config.nixl_lib_dir),
        str(config.nixl_plugin_dir),
    ]


def render_env_file(config: BuildConfig) -> str:
    """Render the environment file; the content depends only on the configuration."""
    return ENV_FILE_TEMPLATE.format(
        bin_path=":".join(binary_search_path(config)),
        library_path=":".join(library_search_path(config)),
        cuda_path=config.cuda_path,
        venv_path=config.venv_path,
        nixl_prefix=config.install_dir("nixl"),
        nixlbench_prefix=config.install_dir("nixlbench"),
    )


class EnvironmentEmitter:
    """Writes utils/nixl_env.sh under the project root, replacing any previous version."""

    def emit(self, config: BuildConfig) -> StepResult:
        log_section(logger, "Setting Up Environment")

        env_file = config.env_file
        try:
            env_file.parent.mkdir(parents=True, exist_ok=True)
            env_file.write_text(render_env_file(config), encoding="utf-8")
            env_file.chmod(0o755)
        except OSError as e:
            reason = f"Could not write environment file {env_file}: {e}"
            logger.error(reason)
            return StepResult.fatal(STEP_NAME, reason)

        logger.info(f"Environment file created: {env_file}", status="ok")
        logger.info("Source it with: source utils/nixl_env.sh")
        return StepResult.ok(STEP_NAME)
