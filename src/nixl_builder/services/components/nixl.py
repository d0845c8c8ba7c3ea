"""NIXL source checkout and meson/ninja build."""

from pathlib import Path

from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import StepResult
from nixl_builder.models.config import BuildConfig
from nixl_builder.services.git import GitService

from .base import ComponentBuilder

logger = get_logger(__name__)

SOURCE_STEP_NAME = "nixl-source"


class NixlSourceFetcher:
    """Clones or updates the NIXL repository, which also carries the NIXLBench sources."""

    def __init__(self, git: GitService) -> None:
        self.git = git

    def run(self, config: BuildConfig) -> StepResult:
        if config.skip_nixl and config.skip_nixlbench:
            return StepResult.skip(SOURCE_STEP_NAME, reason="NIXL and NIXLBench skipped")

        log_section(logger, "Cloning NIXL Repository")
        source = config.source_dir("nixl")
        branch = config.nixl_branch

        def update(repo_dir: Path) -> list[str]:
            warnings = []
            if not self.git.fetch(repo_dir, "origin"):
                warnings.append(f"git fetch origin failed in {repo_dir}")
            if not self.git.checkout(repo_dir, branch):
                logger.warning(f"Could not checkout {branch}, but continuing...")
                warnings.append(f"git checkout {branch} failed in {repo_dir}")
            warnings += self.git.pull(repo_dir)
            return warnings

        existed = self.git.runner.path_exists(source) and not config.clean
        warnings = self.git.clone_or_update(
            config.nixl_repo, source, ref=branch, shallow=True, clean=config.clean, update=update
        )

        if not self.git.runner.path_exists(source):
            reason = f"NIXL source directory not found at {source}. Did the clone succeed?"
            logger.error(reason)
            return StepResult.fatal(SOURCE_STEP_NAME, reason, warnings=warnings)

        if not existed and not self.git.checkout(source, branch):
            logger.debug(f"Checkout of {branch} after clone failed, ignoring")

        logger.info("NIXL repository ready", status="ok", branch=branch)
        return StepResult.ok(SOURCE_STEP_NAME, warnings=warnings)


class NixlBuilder(ComponentBuilder):
    name = "nixl"
    display_name = "NIXL"
    skip_flag = "skip_nixl"
    required = True

    def build_environment(self, config: BuildConfig) -> dict[str, str]:
        env = config.command_environment()
        pkgconfig = config.ucx_pkgconfig_dir
        if self.runner.path_exists(pkgconfig) and str(pkgconfig) not in config.pkg_config_path:
            current = env.get("PKG_CONFIG_PATH")
            env["PKG_CONFIG_PATH"] = f"{pkgconfig}:{current}" if current else str(pkgconfig)
        return env

    def prepare(self, config: BuildConfig, env: dict[str, str]) -> None:
        self.remove_build_dir(config)

    def configure(self, config: BuildConfig, env: dict[str, str]) -> None:
        source = config.source_dir(self.name)
        logger.info("Configuring NIXL with meson...")
        self.run_phase(
            "configure",
            "meson",
            [
                "setup",
                str(source),
                str(config.component_build_dir(self.name)),
                f"--prefix={config.install_dir(self.name)}",
                f"--buildtype={config.build_type}",
                "-Dbuild_docs=false",
            ],
            cwd=source,
            env=env,
        )

    def compile(self, config: BuildConfig, env: dict[str, str]) -> None:
        logger.info("Building NIXL...")
        self.run_phase("build", "ninja", cwd=config.component_build_dir(self.name), env=env)

    def install(self, config: BuildConfig, env: dict[str, str]) -> None:
        self.install_with_fallback("ninja", ["install"], cwd=config.component_build_dir(self.name), env=env)

    def register_libraries(self, config: BuildConfig) -> None:
        if not self.runner.path_exists(config.nixl_lib_dir):
            logger.debug(f"{config.nixl_lib_dir} not found, skipping ld.so.conf.d registration")
            return
        logger.info("Updating library cache...")
        self.privilege.register_library_dirs("nixl", [config.nixl_lib_dir, config.nixl_plugin_dir])
