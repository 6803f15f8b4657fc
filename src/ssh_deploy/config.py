"""Configuration loading utilities for ssh-deploy."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .paths import DEFAULT_CONFIG_FILE
from .ssh.credentials import SSHCredentials

# Load .env file if it exists
load_dotenv()


@dataclass
class PushOptions:
    """Everything a single push needs. Treated as immutable once a run starts."""

    source_path: str
    target_path: str
    host: str
    username: str
    port: int = 22
    password: Optional[str] = None
    key_path: Optional[str] = None
    passphrase: Optional[str] = None
    exclude_suffixes: List[str] = field(default_factory=list)
    pre_command: str = ""
    post_command: str = ""
    clean_target: bool = False
    configuration: str = "Debug"
    framework: str = ""
    runtime_identifier: str = "linux-arm"
    package_store: Optional[str] = None
    command_timeout: int = 600
    follow_post_output: bool = True

    def normalized(self) -> "PushOptions":
        return replace(
            self,
            target_path=self.target_path.strip(),
            exclude_suffixes=[suffix for suffix in self.exclude_suffixes if suffix],
            pre_command=(self.pre_command or "").strip(),
            post_command=(self.post_command or "").strip(),
        )

    def credentials(self) -> SSHCredentials:
        return SSHCredentials(
            host=self.host,
            username=self.username,
            port=self.port,
            password=self.password,
            key_path=self.key_path,
            passphrase=self.passphrase,
        )

    def describe(self) -> List[str]:
        """Operator-facing summary, one line per option."""
        return [
            f"    Configuration   {self.configuration}",
            f"    Framework       {self.framework}",
            f"    Source Path     {self.source_path}",
            f"    Excluded Files  {'|'.join(self.exclude_suffixes)}",
            f"    Target Address  {self.host}:{self.port}",
            f"    Username        {self.username}",
            f"    Target Path     {self.target_path}",
            f"    Clean Target    {'YES' if self.clean_target else 'NO'}",
            f"    Pre Deployment  {self.pre_command}",
            f"    Post Deployment {self.post_command}",
        ]


@dataclass
class DeploymentDefaults:
    """Defaults applied to push options the command line leaves unset."""

    host: Optional[str] = None
    port: int = 22
    username: Optional[str] = None
    password: Optional[str] = None
    key_path: Optional[str] = None
    target_path: Optional[str] = None
    exclude_suffixes: List[str] = field(default_factory=list)
    runtime_identifier: str = "linux-arm"
    package_store: Optional[str] = None
    command_timeout: int = 600
    follow_post_output: bool = True


@dataclass
class MonitorConfig:
    """Settings for continuous (monitor) mode."""

    trigger_file: str = "sshdeploy.ready"
    poll_interval: float = 0.5


@dataclass
class AppConfig:
    """Top-level configuration."""

    deployment: DeploymentDefaults = field(default_factory=DeploymentDefaults)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        if not isinstance(payload, dict):
            raise ValueError("Configuration must be a JSON object")
        payload = _strip_comments(payload)
        _reject_unknown("configuration", payload, ("deployment", "monitor"))
        deployment_payload = _section(payload, "deployment", DeploymentDefaults)
        monitor_payload = _section(payload, "monitor", MonitorConfig)
        return cls(
            deployment=DeploymentDefaults(**{**DeploymentDefaults().__dict__, **deployment_payload}),
            monitor=MonitorConfig(**{**MonitorConfig().__dict__, **monitor_payload}),
        )


def _strip_comments(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if not k.startswith("_")}


def _section(payload: Dict[str, Any], name: str, section_type: type) -> Dict[str, Any]:
    section = payload.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Configuration section '{name}' must be an object")
    section = _strip_comments(section)
    _reject_unknown(f"'{name}' section", section, [item.name for item in fields(section_type)])
    return section


def _reject_unknown(where: str, payload: Dict[str, Any], allowed) -> None:
    unknown = sorted(set(payload) - set(allowed))
    if unknown:
        raise ValueError(f"Unknown key(s) in {where}: {', '.join(unknown)}")


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load configuration from `path`, else `.ssh-deploy.json`, else defaults.

    Environment variables (higher priority than config file):
    - SSH_DEPLOY_HOST: Default SSH host
    - SSH_DEPLOY_PORT: Default SSH port
    - SSH_DEPLOY_USERNAME: Default SSH username
    - SSH_DEPLOY_PASSWORD: Default SSH password
    - SSH_DEPLOY_KEY_PATH: Path to SSH private key
    - SSH_DEPLOY_TARGET_PATH: Default remote target directory
    """
    if path and not Path(path).is_file():
        raise FileNotFoundError(f"Could not find configuration file: {path}")

    candidate = Path(path) if path else DEFAULT_CONFIG_FILE
    if candidate.is_file():
        with candidate.open("r", encoding="utf-8") as handle:
            config = AppConfig.from_dict(json.load(handle))
    else:
        config = AppConfig()

    deployment = config.deployment
    env_host = os.getenv("SSH_DEPLOY_HOST")
    if env_host:
        deployment.host = env_host

    env_port = os.getenv("SSH_DEPLOY_PORT")
    if env_port:
        deployment.port = int(env_port)

    env_username = os.getenv("SSH_DEPLOY_USERNAME")
    if env_username:
        deployment.username = env_username

    env_password = os.getenv("SSH_DEPLOY_PASSWORD")
    if env_password:
        deployment.password = env_password

    env_key_path = os.getenv("SSH_DEPLOY_KEY_PATH")
    if env_key_path:
        deployment.key_path = env_key_path

    env_target = os.getenv("SSH_DEPLOY_TARGET_PATH")
    if env_target:
        deployment.target_path = env_target

    return config


def build_push_options(config: AppConfig, **overrides: Any) -> PushOptions:
    """Merge explicit values (``None`` means unset) over configured defaults."""
    defaults = config.deployment
    values: Dict[str, Any] = {
        "source_path": None,
        "target_path": defaults.target_path,
        "host": defaults.host,
        "port": defaults.port,
        "username": defaults.username,
        "password": defaults.password,
        "key_path": defaults.key_path,
        "exclude_suffixes": list(defaults.exclude_suffixes),
        "runtime_identifier": defaults.runtime_identifier,
        "package_store": defaults.package_store,
        "command_timeout": defaults.command_timeout,
        "follow_post_output": defaults.follow_post_output,
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    missing = [
        name for name in ("source_path", "target_path", "host", "username")
        if not values.get(name)
    ]
    if not values.get("password") and not values.get("key_path"):
        missing.append("password or key-path")
    if missing:
        raise ValueError("Missing deployment values: " + ", ".join(missing))

    return PushOptions(**values)
