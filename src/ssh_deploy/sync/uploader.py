"""Local-to-remote file synchronization."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Iterable, List, Sequence

from ..exceptions import UploadError
from ..models import Dependency
from ..paths import package_asset_path
from ..utils.logging import get_logger
from .remote_paths import FileChannel, RemotePathPreparer, normalize_remote_path

logger = get_logger(__name__)


def is_excluded(file_name: str, excluded_suffixes: Iterable[str]) -> bool:
    """Exact, case-sensitive suffix match."""
    return any(suffix and file_name.endswith(suffix) for suffix in excluded_suffixes)


class FileSynchronizer:
    """Uploads package dependencies and the application tree, one file at a time."""

    def __init__(self, channel: FileChannel, preparer: RemotePathPreparer, package_store: Path) -> None:
        self.channel = channel
        self.preparer = preparer
        self.package_store = Path(package_store)

    def upload_dependencies(self, target_root: str, dependencies: Sequence[Dependency]) -> int:
        """Copy each dependency asset flat into ``target_root``."""
        logger.info("    Deploying %d dependencies.", len(dependencies))
        for dependency in dependencies:
            local_path = package_asset_path(
                self.package_store, dependency.name, dependency.version, dependency.path
            )
            file_name = posixpath.basename(dependency.path.replace("\\", "/"))
            self._upload(local_path, target_root, [file_name])
            logger.info("    %s", dependency.name)
        return len(dependencies)

    def collect(self, source_root: Path, excluded_suffixes: Iterable[str]) -> List[Path]:
        """Files under ``source_root`` that survive exclusion, ordered by relative path."""
        source_root = Path(source_root)
        excluded = tuple(excluded_suffixes)
        files = [
            path for path in source_root.rglob("*")
            if path.is_file() and not is_excluded(path.name, excluded)
        ]
        return sorted(files, key=lambda path: path.relative_to(source_root).as_posix())

    def upload_tree(self, source_root: Path, target_root: str, excluded_suffixes: Iterable[str]) -> int:
        source_root = Path(source_root)
        files = self.collect(source_root, excluded_suffixes)
        logger.info("    Deploying %d files.", len(files))
        for local_path in files:
            self._upload(local_path, target_root, local_path.relative_to(source_root).parts)
        return len(files)

    def _upload(self, local_path: Path, target_root: str, parts: Sequence[str]) -> None:
        """Upload to ``target_root`` joined with ``parts``; the parts are not normalized."""
        root = normalize_remote_path(target_root)
        self.preparer.ensure_directory(root)
        parent = self.preparer.ensure_within(root, parts[:-1])
        remote_path = parts[-1] if parent == "." else posixpath.join(parent, parts[-1])
        try:
            with open(local_path, "rb") as stream:
                self.channel.upload(stream, remote_path)
        except Exception as exc:
            raise UploadError(str(local_path), remote_path, str(exc)) from exc
        logger.debug("Uploaded %s -> %s", local_path, remote_path)
