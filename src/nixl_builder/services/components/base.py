"""Common fetch, configure, compile and install lifecycle for source builds."""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from nixl_builder.exceptions import NixlBuildError, OperationalError, ResourceNotFoundError
from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import ComponentBuild, ComponentState, StepResult
from nixl_builder.models.config import BuildConfig
from nixl_builder.services.git import GitService
from nixl_builder.utils.runner import CommandResult, CommandRunner
from nixl_builder.utils.unix import PrivilegeHelper

logger = get_logger(__name__)


class ComponentBuilder:
    """
    Base class for a component built from source.

    Subclasses set the class attributes and implement ``configure``, ``compile`` and
    ``install``. Required components turn any failure into a fatal result; the
    others report it as a warning and let the run continue.
    """

    name: str = ""
    display_name: str = ""
    skip_flag: str = ""
    skip_message: str | None = None
    required: bool = False

    # None: the source tree is provided by another step and only checked here
    repo_url: str | None = None
    shallow_clone: bool = True

    def __init__(
        self,
        runner: CommandRunner,
        git: GitService | None = None,
        privilege: PrivilegeHelper | None = None,
    ) -> None:
        self.runner = runner
        self.git = git or GitService(runner)
        self.privilege = privilege or PrivilegeHelper(runner)
        self.state: ComponentBuild | None = None
        self.warnings: list[str] = []

    # Lifecycle

    def run(self, config: BuildConfig) -> StepResult:
        if getattr(config, self.skip_flag):
            logger.info(self.skip_message or f"Skipping {self.display_name} build")
            return StepResult.skip(self.name, reason="skip flag")

        satisfied = self.already_satisfied(config)
        if satisfied:
            return StepResult.skip(self.name, reason=satisfied)

        log_section(logger, f"Building {self.display_name}")
        self.warnings = []
        self.state = ComponentBuild(name=self.name, state=self.probe_state(config))

        try:
            self.fetch(config)
            self.state.advance("fetched")

            env = self.build_environment(config)
            self.prepare(config, env)
            self.configure(config, env)
            self.state.advance("configured")

            self.compile(config, env)
            self.state.advance("built")

            self.install(config, env)
            self.register_libraries(config)
            self.privilege.refresh_library_cache()
            self.state.advance("installed")
        except NixlBuildError as e:
            return self._failure(str(e))

        logger.info(f"{self.display_name} built and installed", status="ok")
        return StepResult.ok(self.name, updates=self.post_install_updates(config), warnings=self.warnings)

    def _failure(self, reason: str) -> StepResult:
        if self.required:
            logger.error(reason)
            return StepResult.fatal(self.name, reason, warnings=self.warnings)
        logger.warning(f"{reason}; continuing without {self.display_name}")
        return StepResult.ok(self.name, warnings=[*self.warnings, reason])

    def probe_state(self, config: BuildConfig) -> ComponentState:
        """Derive the starting lifecycle state from the filesystem."""
        if not self.runner.path_exists(config.source_dir(self.name)):
            return "absent"
        if self.runner.path_exists(self.configured_marker(config)):
            return "configured"
        return "fetched"

    def configured_marker(self, config: BuildConfig) -> Path:
        return config.component_build_dir(self.name) / "build.ninja"

    # Hooks

    def already_satisfied(self, config: BuildConfig) -> str | None:
        """Return a reason to skip the build because the host already satisfies it."""
        return None

    def fetch(self, config: BuildConfig) -> None:
        source = config.source_dir(self.name)
        if self.repo_url is not None:
            self.warnings += self.git.clone_or_update(
                self.repo_url,
                source,
                shallow=self.shallow_clone,
                clean=config.clean,
                update=self.update,
            )
        if not self.runner.path_exists(source):
            raise ResourceNotFoundError("component.source_missing", component=self.display_name, path=str(source))

    def update(self, source: Path) -> list[str]:
        return self.git.pull(source)

    def build_environment(self, config: BuildConfig) -> dict[str, str]:
        return config.command_environment()

    def prepare(self, config: BuildConfig, env: dict[str, str]) -> None:
        """Run before configure."""

    def configure(self, config: BuildConfig, env: dict[str, str]) -> None:
        raise NotImplementedError

    def compile(self, config: BuildConfig, env: dict[str, str]) -> None:
        raise NotImplementedError

    def install(self, config: BuildConfig, env: dict[str, str]) -> None:
        raise NotImplementedError

    def register_libraries(self, config: BuildConfig) -> None:
        """Run after install, before the library cache refresh."""

    def post_install_updates(self, config: BuildConfig) -> dict[str, Any]:
        return {}

    # Helpers

    def run_phase(
        self,
        phase: str,
        command: str,
        args: Sequence[str] = (),
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Run one build command, raising OperationalError if it fails."""
        result = self.runner.run(command, args, cwd=cwd, env=env, stream=True)
        self._check(phase, result)
        return result

    def install_with_fallback(
        self,
        command: str,
        args: Sequence[str],
        cwd: Path,
        env: dict[str, str],
    ) -> CommandResult:
        """Install with sudo, falling back to an unprivileged install."""
        logger.info(f"Installing {self.display_name}...")
        result = self.privilege.run_with_fallback(command, args, cwd=cwd, env=env)
        self._check("install", result)
        return result

    def make_dirs(self, path: Path) -> None:
        self.runner.run("mkdir", ["-p", str(path)])

    def remove_build_dir(self, config: BuildConfig) -> None:
        build_dir = config.component_build_dir(self.name)
        if config.clean and self.runner.path_exists(build_dir):
            logger.info(f"Cleaning {self.display_name} build directory...")
            self.runner.run("rm", ["-rf", str(build_dir)])

    def _check(self, phase: str, result: CommandResult) -> None:
        if result.ok:
            return
        tail = result.tail()
        if tail:
            log = logger.error if self.required else logger.debug
            log(f"{self.display_name} {phase} output:\n{tail}")
        raise OperationalError(
            "component.step_failed",
            component=self.display_name,
            phase=phase,
            returncode=result.returncode,
        )
