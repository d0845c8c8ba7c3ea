"""etcd-cpp-apiv3 client library build (CMake)."""

from pathlib import Path

from nixl_builder.logger import get_logger
from nixl_builder.models.config import BuildConfig

from .base import ComponentBuilder

logger = get_logger(__name__)

ETCD_REPO_URL = "https://github.com/etcd-cpp-apiv3/etcd-cpp-apiv3.git"
CMAKE_CONFIG_TEMPLATE = "etcd-cpp-api-config.in.cmake"
CPPRESTSDK_DEPENDENCY = "find_dependency(cpprestsdk)"


def drop_cpprestsdk_dependency(config_template: Path) -> bool:
    """Remove the ``find_dependency(cpprestsdk)`` line from the CMake package template.

    Returns:
        True if the file was changed
    """
    if not config_template.is_file():
        return False
    lines = config_template.read_text(encoding="utf-8").splitlines(keepends=True)
    kept = [line for line in lines if line.rstrip("\r\n") != CPPRESTSDK_DEPENDENCY]
    if len(kept) == len(lines):
        return False
    config_template.write_text("".join(kept), encoding="utf-8")
    return True


class EtcdBuilder(ComponentBuilder):
    name = "etcd"
    display_name = "etcd-cpp-api"
    skip_flag = "skip_etcd"
    repo_url = ETCD_REPO_URL
    shallow_clone = True

    def configured_marker(self, config: BuildConfig) -> Path:
        return config.component_build_dir(self.name) / "CMakeCache.txt"

    def prepare(self, config: BuildConfig, env: dict[str, str]) -> None:
        if drop_cpprestsdk_dependency(config.source_dir(self.name) / CMAKE_CONFIG_TEMPLATE):
            logger.debug("Removed cpprestsdk dependency from CMake config template")

    def configure(self, config: BuildConfig, env: dict[str, str]) -> None:
        build_dir = config.component_build_dir(self.name)
        logger.info(f"Building {self.display_name}...")
        self.make_dirs(build_dir)
        self.run_phase(
            "configure",
            config.cmake_command,
            [
                "..",
                "-DBUILD_ETCD_CORE_ONLY=ON",
                "-DCMAKE_BUILD_TYPE=Release",
                f"-DCMAKE_INSTALL_PREFIX={config.install_dir(self.name)}",
            ],
            cwd=build_dir,
            env=env,
        )

    def compile(self, config: BuildConfig, env: dict[str, str]) -> None:
        self.run_phase("build", "make", [f"-j{config.jobs}"], cwd=config.component_build_dir(self.name), env=env)

    def install(self, config: BuildConfig, env: dict[str, str]) -> None:
        self.install_with_fallback("make", ["install"], cwd=config.component_build_dir(self.name), env=env)
