"""SFTP file channel built on Paramiko."""

from __future__ import annotations

import posixpath
import stat
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

import paramiko

from .credentials import SSHCredentials
from .session import ClientFactory, open_client


@dataclass(frozen=True)
class RemoteEntry:
    name: str
    path: str
    is_dir: bool


class SFTPSession:
    """File-transfer channel on its own SSH connection."""

    def __init__(
        self,
        credentials: SSHCredentials,
        *,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.credentials = credentials
        self._client_factory = client_factory or paramiko.SSHClient
        self._client: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def __enter__(self) -> "SFTPSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    @property
    def is_connected(self) -> bool:
        if self._client is None or self._sftp is None:
            return False
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    def connect(self) -> None:
        if self._sftp:
            return
        client = open_client(self.credentials, self._client_factory)
        try:
            self._sftp = client.open_sftp()
        except Exception:
            client.close()
            raise
        self._client = client

    def close(self) -> None:
        if self._sftp:
            self._sftp.close()
            self._sftp = None
        if self._client:
            self._client.close()
            self._client = None

    @property
    def sftp(self) -> paramiko.SFTPClient:
        if not self._sftp:
            self.connect()
        assert self._sftp is not None
        return self._sftp

    def upload(self, stream: BinaryIO, remote_path: str) -> None:
        self.sftp.putfo(stream, remote_path)

    def exists(self, remote_path: str) -> bool:
        try:
            self.sftp.stat(remote_path)
        except FileNotFoundError:
            return False
        return True

    def create_directory(self, remote_path: str) -> None:
        self.sftp.mkdir(remote_path)

    def delete(self, remote_path: str) -> None:
        """Remove a file or an empty directory."""
        attrs = self.sftp.stat(remote_path)
        if attrs.st_mode is not None and stat.S_ISDIR(attrs.st_mode):
            self.sftp.rmdir(remote_path)
        else:
            self.sftp.remove(remote_path)

    def list_entries(self, remote_path: str) -> List[RemoteEntry]:
        entries = []
        for attrs in self.sftp.listdir_attr(remote_path):
            if attrs.filename in (".", ".."):
                continue
            entries.append(
                RemoteEntry(
                    name=attrs.filename,
                    path=posixpath.join(remote_path, attrs.filename),
                    is_dir=attrs.st_mode is not None and stat.S_ISDIR(attrs.st_mode),
                )
            )
        return entries
