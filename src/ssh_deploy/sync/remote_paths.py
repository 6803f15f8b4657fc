"""Creation and cleanup of directories on the remote side."""

from __future__ import annotations

import posixpath
from typing import BinaryIO, List, Protocol, Sequence, Set, runtime_checkable

from ..exceptions import RemotePreparationError
from ..ssh.sftp import RemoteEntry
from ..utils.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class FileChannel(Protocol):
    """The file-transfer operations the pipeline needs from a remote host."""

    def upload(self, stream: BinaryIO, remote_path: str) -> None: ...

    def exists(self, remote_path: str) -> bool: ...

    def create_directory(self, remote_path: str) -> None: ...

    def delete(self, remote_path: str) -> None: ...

    def list_entries(self, remote_path: str) -> List[RemoteEntry]: ...


def normalize_remote_path(path: str) -> str:
    """Use forward slashes, drop empty and ``.`` segments and any trailing slash."""
    text = path.strip().replace("\\", "/")
    absolute = text.startswith("/")
    segments = [segment for segment in text.split("/") if segment and segment != "."]
    joined = "/".join(segments)
    if absolute:
        return "/" + joined
    return joined or "."


class RemotePathPreparer:
    """
    Makes sure remote directories exist before files are written into them.

    Directories created or confirmed during this preparer's lifetime are
    remembered, so repeated requests for the same tree cost no round trips.
    """

    def __init__(self, channel: FileChannel) -> None:
        self.channel = channel
        self._known: Set[str] = set()

    def ensure_directory(self, remote_path: str) -> None:
        path = normalize_remote_path(remote_path)
        if path in self._known or path in (".", "/"):
            return
        base = "/" if path.startswith("/") else ""
        self.ensure_within(base, path.lstrip("/").split("/"))

    def ensure_within(self, root: str, segments: Sequence[str]) -> str:
        """
        Create ``segments`` below ``root`` one level at a time and return the
        resulting path. ``root`` must already be normalized; segments are used
        verbatim, so names containing backslashes or spaces are preserved.
        """
        current = root
        for segment in segments:
            current = posixpath.join(current, segment) if current and current != "." else segment
            if current in self._known:
                continue
            try:
                if not self.channel.exists(current):
                    logger.debug("Creating remote directory %s", current)
                    self.channel.create_directory(current)
            except Exception as exc:
                raise RemotePreparationError(current, str(exc)) from exc
            self._known.add(current)
        return current

    def prepare_target(self, options) -> None:
        """Create the deployment target, wiping it first when ``clean_target`` is set."""
        target = normalize_remote_path(options.target_path)
        if options.clean_target:
            try:
                if self.channel.exists(target):
                    logger.info("    Cleaning target path %s", target)
                    self._remove_tree(target)
            except Exception as exc:
                raise RemotePreparationError(target, str(exc)) from exc
            self._forget(target)
        self.ensure_directory(target)

    def _remove_tree(self, remote_path: str) -> None:
        for entry in self.channel.list_entries(remote_path):
            if entry.is_dir:
                self._remove_tree(entry.path)
            else:
                self.channel.delete(entry.path)
        self.channel.delete(remote_path)

    def _forget(self, remote_path: str) -> None:
        prefix = remote_path.rstrip("/") + "/"
        self._known = {
            known for known in self._known
            if known != remote_path and not known.startswith(prefix)
        }
