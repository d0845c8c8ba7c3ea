"""Post-build installation checks."""

import os

from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import StepResult
from nixl_builder.models.config import BuildConfig
from nixl_builder.services.environment.emitter import binary_search_path, library_search_path
from nixl_builder.utils.runner import CommandRunner

logger = get_logger(__name__)

STEP_NAME = "verify"


class InstallationVerifier:
    """Checks the installed binaries and libraries; problems are warnings only."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def verify(self, config: BuildConfig) -> StepResult:
        log_section(logger, "Verifying Installation")
        warnings: list[str] = []

        if not config.skip_nixlbench:
            warnings += self._check_nixlbench(config)

        if not config.skip_nixl:
            library = config.nixl_lib_dir / "libnixl.so"
            if self.runner.path_exists(library):
                logger.info("NIXL library found", status="ok")
            else:
                logger.warning(f"NIXL library not found at {library}")
                warnings.append(f"NIXL library not found at {library}")

        return StepResult.ok(STEP_NAME, warnings=warnings)

    def _check_nixlbench(self, config: BuildConfig) -> list[str]:
        binary = config.install_dir("nixlbench") / "bin" / "nixlbench"
        if not self.runner.path_exists(binary):
            logger.warning(f"NIXLBench binary not found at {binary}")
            return [f"NIXLBench binary not found at {binary}"]

        logger.info(f"NIXLBench binary found: {binary}", status="ok")
        result = self.runner.run(str(binary), ["--help"], env=self.runtime_environment(config))
        if not result.ok:
            logger.warning("nixlbench --help failed (may need additional runtime dependencies)")
            return [f"nixlbench --help exited with code {result.returncode}"]

        logger.info("NIXLBench is executable", status="ok")
        return []

    @staticmethod
    def runtime_environment(config: BuildConfig) -> dict[str, str]:
        """Environment equivalent to sourcing the generated env file."""
        env = config.command_environment()
        cuda = config.cuda_path
        path = [*binary_search_path(config), str(cuda / "bin")]
        libs = [*library_search_path(config), str(cuda / "lib64")]
        env["PATH"] = os.pathsep.join([*path, env.get("PATH", "")]).rstrip(os.pathsep)
        env["LD_LIBRARY_PATH"] = os.pathsep.join([*libs, env.get("LD_LIBRARY_PATH", "")]).rstrip(os.pathsep)
        env["CUDA_PATH"] = str(cuda)
        return env
