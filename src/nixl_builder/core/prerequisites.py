"""Prerequisite checks for the build."""

from typing import Any

from nixl_builder.core.gpu import CudaToolkitDetector, GPUDetector
from nixl_builder.exceptions import PrerequisiteError
from nixl_builder.logger import get_logger, log_section
from nixl_builder.models.build import StepResult
from nixl_builder.models.config import BuildConfig
from nixl_builder.utils.paths import load_resource_json
from nixl_builder.utils.runner import CommandRunner

logger = get_logger(__name__)

STEP_NAME = "prerequisites"


class PrerequisiteChecker:
    """Verifies required tools and reports on the optional CUDA toolchain and GPU."""

    def __init__(
        self,
        runner: CommandRunner,
        gpu_detector: GPUDetector | None = None,
        cuda_detector: CudaToolkitDetector | None = None,
    ) -> None:
        self.runner = runner
        self.gpu_detector = gpu_detector or GPUDetector(runner)
        self.cuda_detector = cuda_detector or CudaToolkitDetector(runner)
        self.dependencies = load_resource_json("build_dependencies.json")

    def check(self, config: BuildConfig) -> StepResult:
        """
        Run all checks, accumulating missing tools so they are reported together.

        Returns:
            Fatal result if any required tool is missing, otherwise success with
            the cmake command and any discovered CUDA paths as config updates
        """
        log_section(logger, "Checking Prerequisites")

        env = config.command_environment()
        missing_tools: list[str] = []
        updates: dict[str, Any] = {}

        cmake_cmd = self.find_cmake(env)
        if cmake_cmd:
            logger.info(f"cmake found ({cmake_cmd})", status="ok")
            if cmake_cmd != config.cmake_command:
                logger.info(f"Using {cmake_cmd} as cmake")
            updates["cmake_command"] = cmake_cmd
        else:
            logger.error("cmake not found (checked for cmake and cmake3)")
            missing_tools.append("cmake")

        for tool in self.dependencies["required_tools"]:
            if self.runner.which(tool, env):
                logger.info(f"{tool} found", status="ok")
            else:
                logger.error(f"{tool} not found")
                missing_tools.append(tool)

        updates.update(self._check_cuda(config))
        self._check_gpu()

        if missing_tools:
            error = PrerequisiteError("prerequisites.missing_tools", tools=" ".join(missing_tools))
            logger.error(str(error))
            self._print_remediation()
            return StepResult.fatal(STEP_NAME, str(error))

        return StepResult.ok(STEP_NAME, updates=updates)

    def find_cmake(self, env: dict[str, str]) -> str | None:
        """Return ``cmake`` or ``cmake3``, whichever resolves first."""
        for name in ("cmake", "cmake3"):
            if self.runner.which(name, env):
                return name
        return None

    def _check_cuda(self, config: BuildConfig) -> dict[str, Any]:
        info = self.cuda_detector.detect(config)
        updates: dict[str, Any] = {}

        if info.toolkit_dir_exists and info.source != "search":
            logger.info(f"CUDA found at {config.cuda_path}", status="ok")
        elif not info.toolkit_dir_exists:
            logger.warning(f"CUDA not found at {config.cuda_path}")
            logger.info("Set CUDA_PATH environment variable if CUDA is installed elsewhere")

        if info.source == "path":
            logger.info(f"nvcc found: {info.nvcc_version or info.nvcc_path}", status="ok")
        elif info.source == "cuda_path":
            logger.info(f"nvcc found at {info.nvcc_path}", status="ok")
            logger.info(f"Added {info.bin_dir_added} to PATH")
        elif info.source == "search":
            logger.info(f"nvcc found at {info.nvcc_path}", status="ok")
            logger.info(f"Set CUDA_PATH to {info.cuda_path} and added to PATH")
            updates["cuda_path"] = info.cuda_path
        else:
            logger.warning("nvcc not found. CUDA toolkit may not be installed.")

        if info.bin_dir_added and info.bin_dir_added not in config.extra_path:
            updates["extra_path"] = (*config.extra_path, info.bin_dir_added)
        return updates

    def _check_gpu(self) -> None:
        gpu = self.gpu_detector.detect()
        if gpu.has_nvidia_gpu:
            logger.info("NVIDIA GPU detected:", status="ok")
            print(f"  {gpu.gpu_name}")
        elif gpu.query_failed:
            logger.warning("nvidia-smi found but the GPU query failed. GPU may not be available.")
        else:
            logger.warning("nvidia-smi not found. GPU may not be available.")

    def _print_remediation(self) -> None:
        minimal = " ".join(self.dependencies["apt"]["minimal"])
        full = " ".join(self.dependencies["apt"]["full"])
        print()
        logger.info("To install missing dependencies, run:")
        print("  sudo apt-get update")
        print(f"  sudo apt-get install -y {minimal}")
        print()
        logger.info("Or install all build dependencies:")
        print(f"  sudo apt-get install -y {full}")
