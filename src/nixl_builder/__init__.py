"""nixl-builder: source build orchestration for NIXL and NIXLBench."""

__version__ = "0.1.0"
