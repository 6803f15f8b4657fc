"""
Deployment exceptions.

Every failure the pipeline can report derives from DeploymentError so the
orchestrator can record it in a single outcome.
"""

from __future__ import annotations

from typing import Optional, Sequence


class DeploymentError(Exception):
    """Base class for failures raised by a deployment step."""

    pass


class SourcePathNotFoundError(DeploymentError):
    """The local source directory does not exist; nothing remote was touched."""

    def __init__(self, source_path: str) -> None:
        super().__init__(f"Source Path '{source_path}' was not found.")
        self.source_path = source_path


class ManifestResolutionError(DeploymentError):
    """The dependency manifest is unreadable or lacks the expected structure."""

    def __init__(self, manifest: str, missing: Sequence[str] = (), reason: Optional[str] = None) -> None:
        self.manifest = manifest
        self.missing = tuple(missing)
        detail = reason or f"no entry at {' -> '.join(self.missing)}"
        super().__init__(f"Manifest '{manifest}': {detail}")


class RemotePreparationError(DeploymentError):
    """A remote directory could not be created or cleaned."""

    def __init__(self, remote_path: str, reason: str) -> None:
        super().__init__(f"Unable to prepare remote path '{remote_path}': {reason}")
        self.remote_path = remote_path


class UploadError(DeploymentError):
    """A single file transfer failed; the rest of the pass was abandoned."""

    def __init__(self, local_path: str, remote_path: str, reason: str) -> None:
        super().__init__(f"Failed to upload '{local_path}' to '{remote_path}': {reason}")
        self.local_path = local_path
        self.remote_path = remote_path


class RemoteCommandError(DeploymentError):
    """A remote command exited non-zero or could not be delivered."""

    def __init__(self, command: str, exit_status: Optional[int], output: str = "") -> None:
        status = "transport failure" if exit_status is None else f"exit status {exit_status}"
        super().__init__(f"Command '{command}' failed ({status})")
        self.command = command
        self.exit_status = exit_status
        self.output = output
