"""Command line entry point for nixl-build."""

import argparse
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, NoReturn

from nixl_builder.config import ConfigManager
from nixl_builder.exceptions import ConfigurationError, NixlBuildError
from nixl_builder.logger import configure_logging, get_logger
from nixl_builder.models.config import (
    DEFAULT_CUDA_PATH,
    DEFAULT_NIXL_BRANCH,
    DEFAULT_NIXL_REPO,
    DEFAULT_PYTHON_VERSION,
    DEFAULT_UCX_VERSION,
)
from nixl_builder.services.orchestrator import BuildOrchestrator
from nixl_builder.utils.runner import CommandRunner, SystemCommandRunner

logger = get_logger(__name__)

BUILD_TYPES = ("debug", "release", "debugoptimized")
SKIP_FLAGS = ("skip_deps", "skip_etcd", "skip_ucx", "skip_nixl", "skip_nixlbench", "clean")

EPILOG = f"""\
Environment variables:
  BUILD_DIR               Build directory (default: <project>/build)
  INSTALL_PREFIX          Installation prefix (default: <project>/install)
  NIXL_REPO               NIXL repository URL (default: {DEFAULT_NIXL_REPO})
  NIXL_BRANCH             NIXL branch (default: {DEFAULT_NIXL_BRANCH})
  CUDA_PATH               CUDA installation path (default: {DEFAULT_CUDA_PATH})
  PYTHON_VERSION          Python version for the virtual environment (default: {DEFAULT_PYTHON_VERSION})
  BUILD_TYPE              Build type (default: release)
  UCX_VERSION             UCX version to build (default: {DEFAULT_UCX_VERSION})
  NIXL_BUILD_CONFIG_PATH  YAML file with configuration values
  NIXL_BUILD_PROJECT_ROOT Project root (default: current directory)
  NIXL_BUILD_LOG_LEVEL    Log level: INFO, DEBUG or TRACE

Examples:
  nixl-build                         # Full build
  nixl-build --skip-deps             # Skip system dependency installation
  nixl-build --clean --build-type debug
  CUDA_PATH=/usr/local/cuda-12 nixl-build --skip-etcd
"""


class BuildArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports errors as ``[ERROR]`` lines and exits 1."""

    def error(self, message: str) -> NoReturn:
        logger.error(message)
        self.print_help()
        raise SystemExit(1)


def build_parser() -> BuildArgumentParser:
    parser = BuildArgumentParser(
        prog="nixl-build",
        description="Build NIXL and NIXLBench with their dependencies from source.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
        allow_abbrev=False,
    )
    parser.add_argument("--skip-deps", action="store_true", default=None, help="Skip system dependency installation")
    parser.add_argument("--skip-etcd", action="store_true", default=None, help="Skip etcd-cpp-api build")
    parser.add_argument("--skip-ucx", action="store_true", default=None, help="Skip UCX build (use system UCX)")
    parser.add_argument("--skip-nixl", action="store_true", default=None, help="Skip NIXL build")
    parser.add_argument("--skip-nixlbench", action="store_true", default=None, help="Skip NIXLBench build")
    parser.add_argument("--clean", action="store_true", default=None, help="Clean build directories before building")
    parser.add_argument("--build-dir", type=Path, metavar="DIR", help="Build directory")
    parser.add_argument("--install-prefix", type=Path, metavar="DIR", help="Installation prefix")
    parser.add_argument("--cuda-path", type=Path, metavar="PATH", help="CUDA installation path")
    parser.add_argument("--python-version", metavar="VER", help="Python version for the virtual environment")
    parser.add_argument(
        "--build-type", choices=BUILD_TYPES, metavar="TYPE", help="Build type: " + ", ".join(BUILD_TYPES)
    )
    parser.add_argument("--config", type=Path, metavar="FILE", help="YAML configuration file")
    parser.add_argument("--project-root", type=Path, metavar="DIR", help="Project root (default: current directory)")
    parser.add_argument("--log-level", choices=("INFO", "DEBUG", "TRACE"), help="Log level")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse arguments; unknown options are an error rather than silently ignored."""
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)
    if unknown:
        parser.error(str(ConfigurationError("cli.unknown_option", option=unknown[0])))
    return args


def cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed arguments to BuildConfig fields."""
    overrides: dict[str, Any] = {
        "build_dir": args.build_dir,
        "install_prefix": args.install_prefix,
        "cuda_path": args.cuda_path,
        "python_version": args.python_version,
        "build_type": args.build_type,
        "project_root": args.project_root,
        "log_level": args.log_level,
    }
    for flag in SKIP_FLAGS:
        overrides[flag] = getattr(args, flag)
    return overrides


def main(
    argv: Sequence[str] | None = None,
    runner: CommandRunner | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    """
    Run nixl-build.

    Args:
        argv: Command line arguments, defaults to sys.argv[1:]
        runner: Command runner, defaults to running on the host
        environ: Environment for configuration overrides, defaults to os.environ

    Returns:
        Process exit code
    """
    configure_logging()

    try:
        args = parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1

    try:
        config = ConfigManager(config_path=args.config, environ=environ).load(cli_overrides(args))
    except NixlBuildError as e:
        logger.error(str(e))
        return e.exit_code

    configure_logging(config.log_level)
    orchestrator = BuildOrchestrator(config, runner or SystemCommandRunner())
    try:
        return orchestrator.run()
    except KeyboardInterrupt:
        logger.error("Build interrupted")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
