"""Build orchestration: runs every step in order and reports the outcome."""

from collections.abc import Callable

from nixl_builder.core.prerequisites import PrerequisiteChecker
from nixl_builder.exceptions import NixlBuildError
from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import StepResult
from nixl_builder.models.config import BuildConfig
from nixl_builder.services.components import (
    EtcdBuilder,
    NixlbenchBuilder,
    NixlBuilder,
    NixlSourceFetcher,
    UcxBuilder,
)
from nixl_builder.services.environment import EnvironmentEmitter, PythonEnvironmentBuilder
from nixl_builder.services.git import GitService
from nixl_builder.services.packages import DependencyInstaller
from nixl_builder.services.verify import InstallationVerifier
from nixl_builder.utils.runner import CommandRunner, run_checked
from nixl_builder.utils.unix import PrivilegeHelper

logger = get_logger(__name__)

Step = Callable[[BuildConfig], StepResult]


class BuildOrchestrator:
    """Runs the build steps sequentially, threading the configuration between them."""

    def __init__(
        self,
        config: BuildConfig,
        runner: CommandRunner,
        python_env: PythonEnvironmentBuilder | None = None,
        prerequisites: PrerequisiteChecker | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Resolved configuration
            runner: Runner used by every step for processes and filesystem probes
            python_env: Python environment builder, replaced in tests to avoid downloads
            prerequisites: Prerequisite checker
        """
        self.config = config
        self.runner = runner

        git = GitService(runner)
        privilege = PrivilegeHelper(runner)
        self.prerequisites = prerequisites or PrerequisiteChecker(runner)
        self.dependencies = DependencyInstaller(runner)
        self.python_env = python_env or PythonEnvironmentBuilder(runner)
        self.components = [
            EtcdBuilder(runner, git=git, privilege=privilege),
            UcxBuilder(runner, git=git, privilege=privilege),
        ]
        self.nixl_source = NixlSourceFetcher(git)
        self.nixl_components = [
            NixlBuilder(runner, git=git, privilege=privilege),
            NixlbenchBuilder(runner, git=git, privilege=privilege),
        ]
        self.emitter = EnvironmentEmitter()
        self.verifier = InstallationVerifier(runner)

        self.results: list[StepResult] = []

    def steps(self) -> list[Step]:
        return [
            self.prerequisites.check,
            self.dependencies.install,
            self.python_env.setup,
            *(c.run for c in self.components),
            self.nixl_source.run,
            *(c.run for c in self.nixl_components),
            self.emitter.emit,
            self.verifier.verify,
        ]

    def run(self) -> int:
        """
        Run the whole build.

        Returns:
            Process exit code: 0 unless a step failed fatally
        """
        log_section(logger, "NIXL and NIXLBench Complete Build Script")
        self._log_configuration()

        try:
            self._create_directories()
        except NixlBuildError as e:
            logger.error(str(e))
            return e.exit_code

        for step in self.steps():
            result = step(self.config)
            self.results.append(result)
            if result.updates:
                self.config = self.config.model_copy(update=result.updates)
            if result.is_fatal:
                logger.error(f"Build failed at step '{result.name}': {result.reason}")
                return 1

        self._report_success()
        return 0

    @property
    def warnings(self) -> list[str]:
        return [w for result in self.results for w in result.warnings]

    def _log_configuration(self) -> None:
        config = self.config
        logger.info(f"Project root: {config.project_root}")
        logger.info(f"Build directory: {config.build_dir}")
        logger.info(f"Install prefix: {config.install_prefix}")
        logger.info(f"NIXL repository: {config.nixl_repo} ({config.nixl_branch})")
        logger.info(f"Build type: {config.build_type}")
        logger.debug(f"Using {config.jobs} parallel jobs", arch=config.arch)

    def _create_directories(self) -> None:
        for directory in (self.config.build_dir, self.config.install_prefix):
            run_checked(self.runner, "mkdir", ["-p", str(directory)])

    def _report_success(self) -> None:
        config = self.config
        warnings = self.warnings
        if warnings:
            log_section(logger, "Completed With Warnings")
            for warning in warnings:
                logger.warning(warning)

        log_section(logger, "Build Complete!")
        logger.info("NIXL and NIXLBench have been built successfully", status="ok")
        print()
        print("Installation locations:")
        print(f"  NIXL:      {config.install_dir('nixl')}")
        print(f"  NIXLBench: {config.install_dir('nixlbench')}")
        print()
        print("To use NIXLBench, first source the environment:")
        print("  source utils/nixl_env.sh")
        print()
        print("Or manually set:")
        print(f"  export PATH={config.install_dir('nixlbench') / 'bin'}:$PATH")
        print(f"  export LD_LIBRARY_PATH={config.nixl_lib_dir}:$LD_LIBRARY_PATH")
        print()
        print("Then run:")
        print("  nixlbench --help")
