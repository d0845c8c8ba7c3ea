"""Source builds of NIXL, NIXLBench and their native dependencies."""

from .base import ComponentBuilder
from .etcd import EtcdBuilder
from .nixl import NixlBuilder, NixlSourceFetcher
from .nixlbench import NixlbenchBuilder
from .ucx import MINIMUM_UCX_VERSION, UcxBuilder, parse_version, version_satisfies

__all__ = [
    "MINIMUM_UCX_VERSION",
    "ComponentBuilder",
    "EtcdBuilder",
    "NixlBuilder",
    "NixlSourceFetcher",
    "NixlbenchBuilder",
    "UcxBuilder",
    "parse_version",
    "version_satisfies",
]
