"""Deployment orchestration.

- DeploymentOrchestrator: owns the deployment lock and runs the push pipeline
- RemoteCommandRunner: pre/post deployment commands in client or shell mode
"""

from .orchestrator import DeploymentOrchestrator
from .runner import CommandChannel, RemoteCommandRunner, relay_output

__all__ = [
    "DeploymentOrchestrator",
    "RemoteCommandRunner",
    "CommandChannel",
    "relay_output",
]
