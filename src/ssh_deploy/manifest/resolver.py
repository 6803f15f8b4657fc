"""Runtime dependency resolution from ``*.deps.json`` manifests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from ..exceptions import ManifestResolutionError
from ..models import Dependency
from ..utils.logging import get_logger
from .node import ManifestNode

logger = get_logger(__name__)

MANIFEST_SUFFIX = ".deps.json"
DEFAULT_RUNTIME_IDENTIFIER = "linux-arm"


class DependencyResolver:
    """
    Lists the package runtime assets that must ship next to the application.

    The manifest layout consumed here is::

        targets
          <framework>/<runtime identifier>
            <app>/<version>
              dependencies: {package: version, ...}
            <package>/<version>
              runtime: {<asset path>: {...}, ...}

    Packages without a ``runtime`` section (analyzers, reference-only
    packages) contribute nothing. Only the first runtime asset of each
    package is taken.
    """

    def __init__(self, runtime_identifier: str = DEFAULT_RUNTIME_IDENTIFIER) -> None:
        self.runtime_identifier = runtime_identifier

    def find_manifest(self, source_dir: Path) -> Optional[Path]:
        candidates = sorted(
            path for path in Path(source_dir).iterdir()
            if path.is_file() and path.name.endswith(MANIFEST_SUFFIX)
        )
        return candidates[0] if candidates else None

    def resolve(self, source_dir: Path) -> List[Dependency]:
        manifest = self.find_manifest(source_dir)
        if manifest is None:
            logger.debug("No %s manifest in %s", MANIFEST_SUFFIX, source_dir)
            return []
        try:
            document = json.loads(manifest.read_text(encoding="utf-8-sig"))
        except ValueError as exc:
            raise ManifestResolutionError(manifest.name, reason=f"invalid JSON ({exc})") from exc
        return self.resolve_document(ManifestNode(document), manifest.name)

    def resolve_document(self, root: ManifestNode, label: str = "<manifest>") -> List[Dependency]:
        targets = root.child("targets")
        if targets is None or not targets.is_object:
            raise ManifestResolutionError(label, ["targets"])

        platform = targets.find(lambda key: self.runtime_identifier in key)
        if platform is None:
            raise ManifestResolutionError(label, ["targets", f"*{self.runtime_identifier}*"])
        platform_key, platform_node = platform

        entry = platform_node.first()
        if entry is None:
            raise ManifestResolutionError(label, ["targets", platform_key, "<application>"])
        entry_key, entry_node = entry

        declared = entry_node.child("dependencies")
        if declared is None:
            logger.debug("%s declares no dependencies", entry_key)
            return []

        dependencies: List[Dependency] = []
        for name, version_node in declared.items():
            version = version_node.as_text()
            runtime = platform_node.navigate(f"{name}/{version}", "runtime")
            asset = runtime.first() if runtime is not None else None
            if asset is None:
                continue
            dependencies.append(Dependency(name=name, version=version, path=asset[0]))
        return dependencies
