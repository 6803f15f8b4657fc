"""SSH and SFTP transport for ssh-deploy."""

from .credentials import SSHCredentials
from .session import CommandResult, SSHConnectionError, SSHSession
from .sftp import RemoteEntry, SFTPSession
from .shell import ShellRelay

__all__ = [
    "SSHCredentials",
    "CommandResult",
    "SSHConnectionError",
    "SSHSession",
    "RemoteEntry",
    "SFTPSession",
    "ShellRelay",
]
