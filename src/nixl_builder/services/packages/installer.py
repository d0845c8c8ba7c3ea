"""System package installation through apt-get."""

from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import StepResult
from nixl_builder.models.config import BuildConfig
from nixl_builder.utils.paths import load_resource_json
from nixl_builder.utils.runner import CommandResult, CommandRunner
from nixl_builder.utils.unix import PrivilegeHelper

logger = get_logger(__name__)

STEP_NAME = "dependencies"

# Known noise from apt mirrors that changed their release info
_NOISE_MARKERS = ("changed its 'Codename'", "E: Repository")


def _log_filtered(result: CommandResult) -> None:
    for line in result.tail(lines=200).splitlines():
        if not any(marker in line for marker in _NOISE_MARKERS):
            logger.debug(f"apt: {line}")


class DependencyInstaller:
    """Installs the build and runtime packages with the system package manager.

    Failures never stop the run: packages that cannot be installed may still be
    provided by the source builds that follow.
    """

    def __init__(self, runner: CommandRunner, packages: list[str] | None = None) -> None:
        self.runner = runner
        self.privilege = PrivilegeHelper(runner)
        if packages is None:
            packages = load_resource_json("build_dependencies.json")["apt"]["full"]
        self.packages = packages

    def install(self, config: BuildConfig) -> StepResult:
        if config.skip_deps:
            logger.info("Skipping dependency installation")
            return StepResult.skip(STEP_NAME)

        log_section(logger, "Installing System Dependencies")
        warnings: list[str] = []

        logger.info("Updating package list...")
        update = self.privilege.run_privileged("apt-get", ["update", "-qq"])
        _log_filtered(update)
        if not update.ok:
            logger.warning("Some repositories had issues, but continuing...")
            warnings.append("apt-get update reported repository errors")

        logger.info("Attempting to fix repository issues...")
        self.privilege.run_privileged("apt-get", ["update", "--allow-releaseinfo-change", "-qq"])

        logger.info("Installing build dependencies...")
        result = self.privilege.run_privileged("apt-get", ["install", "-y", *self.packages], stream=True)
        _log_filtered(result)
        if not result.ok:
            logger.warning("Some packages may not be available or repository issues occurred")
            logger.info("Continuing with build - missing packages may be built from source")
            warnings.append(f"apt-get install failed (exit code {result.returncode})")

        logger.info("Dependency installation completed", status="ok")
        return StepResult.ok(STEP_NAME, warnings=warnings)
