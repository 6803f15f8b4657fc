"""Dependency manifest handling."""

from .node import ManifestNode
from .resolver import DEFAULT_RUNTIME_IDENTIFIER, MANIFEST_SUFFIX, DependencyResolver

__all__ = [
    "ManifestNode",
    "DependencyResolver",
    "DEFAULT_RUNTIME_IDENTIFIER",
    "MANIFEST_SUFFIX",
]
