"""SSH credential helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class SSHCredentials:
    """Connection parameters shared by the command and file channels."""

    host: str
    username: str
    port: int = 22
    password: Optional[str] = None
    key_path: Optional[str] = None
    passphrase: Optional[str] = None
    timeout: int = 20

    @property
    def auth_method(self) -> str:
        return "key" if self.key_path else "password"

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def validate(self) -> None:
        if not self.host:
            raise ValueError("No host provided")
        if not self.username:
            raise ValueError("No username provided")
        if not self.password and not self.key_path:
            raise ValueError("Either a password or a key_path is required")

    def connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``paramiko.SSHClient.connect``."""
        kwargs: Dict[str, Any] = {
            "hostname": self.host,
            "port": self.port,
            "username": self.username,
            "timeout": self.timeout,
            "look_for_keys": False,
            "allow_agent": False,
        }
        if self.auth_method == "password":
            kwargs["password"] = self.password
        else:
            kwargs["key_filename"] = self.key_path
            if self.passphrase:
                kwargs["passphrase"] = self.passphrase
        return kwargs
