"""NIXLBench build from the benchmark tree inside the NIXL checkout."""

from nixl_builder.exceptions import ResourceNotFoundError
from nixl_builder.logger import get_logger
from nixl_builder.models.config import BuildConfig

from .base import ComponentBuilder

logger = get_logger(__name__)


class NixlbenchBuilder(ComponentBuilder):
    name = "nixlbench"
    display_name = "NIXLBench"
    skip_flag = "skip_nixlbench"
    required = True

    def fetch(self, config: BuildConfig) -> None:
        source = config.source_dir(self.name)
        if not self.runner.path_exists(source):
            logger.error("NIXLBench directory not found. Did NIXL clone succeed?")
            raise ResourceNotFoundError("component.source_missing", component=self.display_name, path=str(source))

    def prepare(self, config: BuildConfig, env: dict[str, str]) -> None:
        self.remove_build_dir(config)

    def configure(self, config: BuildConfig, env: dict[str, str]) -> None:
        source = config.source_dir(self.name)
        logger.info("Configuring NIXLBench with meson...")
        self.run_phase(
            "configure",
            "meson",
            [
                "setup",
                str(source),
                str(config.component_build_dir(self.name)),
                f"-Dnixl_path={config.install_dir('nixl')}",
                f"-Dprefix={config.install_dir(self.name)}",
                f"--buildtype={config.build_type}",
            ],
            cwd=source,
            env=env,
        )

    def compile(self, config: BuildConfig, env: dict[str, str]) -> None:
        logger.info("Building NIXLBench...")
        self.run_phase("build", "ninja", cwd=config.component_build_dir(self.name), env=env)

    def install(self, config: BuildConfig, env: dict[str, str]) -> None:
        self.install_with_fallback("ninja", ["install"], cwd=config.component_build_dir(self.name), env=env)
