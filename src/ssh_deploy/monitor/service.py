"""Continuous deployment: redeploy whenever the trigger file changes."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Optional

from ..config import PushOptions
from ..models import DeploymentOutcome, DeploymentStatus
from ..orchestrator import DeploymentOrchestrator, RemoteCommandRunner
from ..exceptions import SourcePathNotFoundError
from ..ssh import SFTPSession, SSHConnectionError, SSHSession
from ..utils.logging import get_logger
from .watcher import TriggerFileWatcher

logger = get_logger(__name__)

DEFAULT_TRIGGER_FILE = "sshdeploy.ready"


class MonitorService:
    """Keeps both channels open and runs the pipeline on every trigger."""

    def __init__(
        self,
        orchestrator: DeploymentOrchestrator,
        options: PushOptions,
        *,
        trigger_file: str = DEFAULT_TRIGGER_FILE,
        poll_interval: float = 0.5,
        watcher_factory: Callable[..., TriggerFileWatcher] = TriggerFileWatcher,
    ) -> None:
        self.orchestrator = orchestrator
        self.options = options
        self.trigger_file = trigger_file
        self.poll_interval = poll_interval
        self._watcher_factory = watcher_factory
        self._connection_lock = threading.Lock()
        self._file_channel: Optional[SFTPSession] = None
        self._command_channel: Optional[SSHSession] = None
        self._runner: Optional[RemoteCommandRunner] = None
        self._watcher: Optional[TriggerFileWatcher] = None

    @property
    def trigger_path(self) -> Path:
        return Path(self.options.source_path) / self.trigger_file

    def start(self) -> None:
        self.options = self.orchestrator.prepare_options(self.options)
        self._file_channel, self._command_channel = self.orchestrator.create_channels(self.options)
        self.ensure_connected()
        self._runner = self.orchestrator.create_runner(self._command_channel, self.options)
        self._watcher = self._watcher_factory(self.trigger_path, self.deploy, self.poll_interval)
        self._watcher.start()
        logger.info("Monitoring %s; touch it to deploy. Press Ctrl+C to stop.", self.trigger_path)

    def ensure_connected(self) -> None:
        """Reconnect whichever channel has dropped."""
        with self._connection_lock:
            for label, channel in (("SFTP", self._file_channel), ("SSH", self._command_channel)):
                if channel is None or channel.is_connected:
                    continue
                logger.info("Connecting %s channel to %s", label, channel.credentials.address)
                channel.close()
                channel.connect()

    def deploy(self) -> DeploymentOutcome:
        state = self.orchestrator.state
        if state.is_deploying:
            logger.info("Deployment %d still running; change ignored.", state.deployment_number + 1)
            return DeploymentOutcome(status=DeploymentStatus.SKIPPED, deployment_number=state.deployment_number)
        if not Path(self.options.source_path).is_dir():
            error = SourcePathNotFoundError(self.options.source_path)
            logger.error("%s", error)
            return DeploymentOutcome(status=DeploymentStatus.FAILED, deployment_number=state.deployment_number, error=error)
        try:
            self.ensure_connected()
        except SSHConnectionError as exc:
            logger.error("Unable to reconnect: %s", exc)
            return DeploymentOutcome(status=DeploymentStatus.FAILED, deployment_number=state.deployment_number, error=exc)
        assert self._runner is not None and self._file_channel is not None
        return self.orchestrator.create_new_deployment(self._runner, self._file_channel, self.options)

    def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.stop(timeout=5.0)
            self._watcher = None
        if self._runner is not None:
            self._runner.close()
            self._runner = None
        for channel in (self._command_channel, self._file_channel):
            if channel is not None:
                channel.close()

    def run_forever(self) -> None:
        self.start()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Stopping monitor")
        finally:
            self.stop()
