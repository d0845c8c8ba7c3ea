"""GPU and CUDA toolkit detection for nixl-builder."""

from pathlib import Path

from pydantic import BaseModel

from nixl_builder.models.config import BuildConfig
from nixl_builder.utils.runner import CommandRunner

# Searched for nvcc when it is neither on PATH nor under the configured CUDA path
NVCC_SEARCH_ROOT = Path("/usr/local")


class GPUInfo(BaseModel):
    """GPU and driver information."""

    has_nvidia_gpu: bool = False
    gpu_name: str | None = None
    driver_version: str | None = None
    query_failed: bool = False  # nvidia-smi present but returned no GPU


class CudaToolkitInfo(BaseModel):
    """Result of CUDA toolkit detection."""

    cuda_path: Path
    toolkit_dir_exists: bool = False
    nvcc_path: str | None = None
    nvcc_version: str | None = None
    source: str | None = None  # "path", "cuda_path" or "search"
    bin_dir_added: str | None = None


class GPUDetector:
    """Detects NVIDIA GPUs through nvidia-smi."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def detect(self) -> GPUInfo:
        """Detect GPU hardware and return information."""
        info = GPUInfo()

        if not self.runner.which("nvidia-smi"):
            return info

        result = self.runner.run("nvidia-smi", ["--query-gpu=name,driver_version", "--format=csv,noheader"])
        output = result.stdout.strip()
        if result.ok and output:
            # Output format: "NVIDIA H100 80GB HBM3, 535.183.01"
            parts = output.splitlines()[0].split(", ")
            info.has_nvidia_gpu = True
            info.gpu_name = parts[0]
            info.driver_version = parts[1] if len(parts) > 1 else None
        else:
            info.query_failed = True

        return info


class CudaToolkitDetector:
    """
    Locates the CUDA toolkit.

    Checks nvcc on PATH, then under the configured CUDA path, then searches
    NVCC_SEARCH_ROOT and infers the toolkit root from where nvcc lives.
    """

    def __init__(self, runner: CommandRunner, search_root: Path = NVCC_SEARCH_ROOT) -> None:
        self.runner = runner
        self.search_root = search_root

    def detect(self, config: BuildConfig) -> CudaToolkitInfo:
        info = CudaToolkitInfo(
            cuda_path=config.cuda_path,
            toolkit_dir_exists=self.runner.path_exists(config.cuda_path),
        )
        env = config.command_environment()

        # 1. nvcc on PATH
        nvcc = self.runner.which("nvcc", env)
        if nvcc:
            info.nvcc_path = nvcc
            info.nvcc_version = self._nvcc_version(nvcc, env)
            info.source = "path"
            return info

        # 2. nvcc under the configured CUDA path
        candidate = config.cuda_path / "bin" / "nvcc"
        if self.runner.path_exists(candidate):
            info.nvcc_path = str(candidate)
            info.source = "cuda_path"
            info.bin_dir_added = str(config.cuda_path / "bin")
            return info

        # 3. Search for nvcc and infer the toolkit root (<root>/bin/nvcc)
        result = self.runner.run("find", [str(self.search_root), "-name", "nvcc"])
        found = next((line.strip() for line in result.stdout.splitlines() if line.strip()), None)
        if found:
            cuda_dir = Path(found).parent.parent
            info.cuda_path = cuda_dir
            info.toolkit_dir_exists = True
            info.nvcc_path = found
            info.source = "search"
            info.bin_dir_added = str(cuda_dir / "bin")

        return info

    def _nvcc_version(self, nvcc: str, env: dict[str, str]) -> str | None:
        result = self.runner.run(nvcc, ["--version"], env=env)
        if not result.ok:
            return None
        lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        # "Cuda compilation tools, release 12.4, V12.4.131"
        release = next((line for line in lines if "release" in line), None)
        return release or (lines[0] if lines else None)
