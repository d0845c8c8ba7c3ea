"""UCX networking library build (autotools), with a system version gate."""

import re
from pathlib import Path

from nixl_builder.logger import get_logger
from nixl_builder.models.config import BuildConfig

from .base import ComponentBuilder

logger = get_logger(__name__)

UCX_REPO_URL = "https://github.com/openucx/ucx.git"
# Required for the UCX GPU Device API
MINIMUM_UCX_VERSION = "1.21"


def parse_version(version: str) -> tuple[int, int]:
    """Parse ``major.minor`` from a version string such as ``1.22.0`` or ``v1.21.0-rc1``."""
    match = re.search(r"(\d+)(?:\.(\d+))?", version)
    if not match:
        return (0, 0)
    return (int(match.group(1)), int(match.group(2) or 0))


def version_satisfies(version: str, minimum: str = MINIMUM_UCX_VERSION) -> bool:
    return parse_version(version) >= parse_version(minimum)


class UcxBuilder(ComponentBuilder):
    name = "ucx"
    display_name = "UCX"
    skip_flag = "skip_ucx"
    skip_message = "Skipping UCX build (using system UCX)"
    repo_url = UCX_REPO_URL
    shallow_clone = False

    def already_satisfied(self, config: BuildConfig) -> str | None:
        """Skip the build when pkg-config reports a system UCX >= MINIMUM_UCX_VERSION."""
        env = config.command_environment()
        if not self.runner.run("pkg-config", ["--exists", "ucx"], env=env).ok:
            return None

        result = self.runner.run("pkg-config", ["--modversion", "ucx"], env=env)
        version = result.stdout.strip() if result.ok and result.stdout.strip() else "0.0.0"
        logger.info(f"System UCX found: version {version}")

        if version_satisfies(version):
            logger.info(f"System UCX version {version} meets requirement (>= {MINIMUM_UCX_VERSION})", status="ok")
            return f"system UCX {version} >= {MINIMUM_UCX_VERSION}"

        logger.warning(f"System UCX version {version} is too old (requires >= {MINIMUM_UCX_VERSION})")
        logger.info("Will build UCX from source")
        return None

    def configured_marker(self, config: BuildConfig) -> Path:
        return config.source_dir(self.name) / "Makefile"

    def update(self, source: Path) -> list[str]:
        if self.git.fetch(source, "--tags"):
            return []
        return [f"git fetch --tags failed in {source}"]

    def prepare(self, config: BuildConfig, env: dict[str, str]) -> None:
        source = config.source_dir(self.name)
        logger.info(f"Checking out UCX {config.ucx_version}...")
        if self.git.checkout(source, config.ucx_version):
            return

        logger.warning(f"Tag {config.ucx_version} not found, using latest")
        self.warnings.append(f"UCX {config.ucx_version} not found, built latest instead")
        if not self.git.checkout(source, "master"):
            self.git.checkout(source, "main")

    def configure(self, config: BuildConfig, env: dict[str, str]) -> None:
        source = config.source_dir(self.name)
        logger.info("Configuring UCX...")
        self.run_phase("autogen", "./autogen.sh", cwd=source, env=env)
        self.run_phase(
            "configure",
            "./contrib/configure-release",
            [
                f"--with-cuda={config.cuda_path}",
                "--enable-mt",
                f"--prefix={config.install_dir(self.name)}",
            ],
            cwd=source,
            env=env,
        )

    def compile(self, config: BuildConfig, env: dict[str, str]) -> None:
        logger.info("Building UCX (this may take a while)...")
        self.run_phase("build", "make", [f"-j{config.jobs}"], cwd=config.source_dir(self.name), env=env)

    def install(self, config: BuildConfig, env: dict[str, str]) -> None:
        self.install_with_fallback("make", ["install"], cwd=config.source_dir(self.name), env=env)

    def post_install_updates(self, config: BuildConfig) -> dict[str, object]:
        pkgconfig = str(config.ucx_pkgconfig_dir)
        if pkgconfig in config.pkg_config_path:
            return {}
        return {"pkg_config_path": (pkgconfig, *config.pkg_config_path)}
