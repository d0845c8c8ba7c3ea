"""Core checks for nixl-builder."""

from nixl_builder.core.gpu import CudaToolkitDetector, CudaToolkitInfo, GPUDetector, GPUInfo
from nixl_builder.core.prerequisites import PrerequisiteChecker

__all__ = [
    "CudaToolkitDetector",
    "CudaToolkitInfo",
    "GPUDetector",
    "GPUInfo",
    "PrerequisiteChecker",
]
