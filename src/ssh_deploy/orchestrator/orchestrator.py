"""Deployment orchestrator: the single-flight push pipeline."""

from __future__ import annotations

import threading
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Callable, Optional, Tuple

from ..config import PushOptions
from ..exceptions import RemoteCommandError, SourcePathNotFoundError
from ..manifest import DependencyResolver
from ..models import (
    CommandMode,
    DeploymentOutcome,
    DeploymentStage,
    DeploymentState,
    DeploymentStatus,
)
from ..paths import global_packages_dir
from ..ssh import SFTPSession, SSHCredentials, SSHSession
from ..sync import FileChannel, FileSynchronizer, RemotePathPreparer
from ..utils.logging import get_logger
from .runner import RemoteCommandRunner

logger = get_logger(__name__)


class DeploymentOrchestrator:
    """
    Owns the deployment lock and runs the push pipeline.

    Pipeline, while holding the lock:
        1. pre-deployment command (client mode, waits for exit)
        2. create or clean the target path
        3. resolve and upload manifest dependencies
        4. upload the source tree

    Finalization always runs, whatever happened above: the lock is released,
    the deployment counter bumped, the elapsed time reported, and the
    post-deployment command sent to a shell.

    A failing pre-deployment command is reported and the pipeline carries on.
    Any other failure skips the remaining steps but not the finalization.
    """

    def __init__(
        self,
        state: Optional[DeploymentState] = None,
        *,
        ssh_factory: Callable[[SSHCredentials], SSHSession] = SSHSession,
        sftp_factory: Callable[[SSHCredentials], SFTPSession] = SFTPSession,
        resolver_factory: Callable[[str], DependencyResolver] = DependencyResolver,
    ) -> None:
        self.state = state or DeploymentState()
        self.stage = DeploymentStage.IDLE
        # Shared with every runner; cleared whenever a new pipeline starts.
        self.forward_shell_output = threading.Event()
        self._ssh_factory = ssh_factory
        self._sftp_factory = sftp_factory
        self._resolver_factory = resolver_factory

    def prepare_options(self, options: PushOptions) -> PushOptions:
        """Normalize options, print the summary and check the source path."""
        options = options.normalized()
        logger.info("Deploying....")
        for line in options.describe():
            logger.info(line)
        if not Path(options.source_path).is_dir():
            raise SourcePathNotFoundError(options.source_path)
        return options

    def create_runner(self, channel, options: PushOptions) -> RemoteCommandRunner:
        return RemoteCommandRunner(
            channel,
            forward_shell_output=self.forward_shell_output,
            timeout=options.command_timeout,
            follow_shell_output=options.follow_post_output,
        )

    def create_channels(self, options: PushOptions) -> Tuple[SFTPSession, SSHSession]:
        """Two independent, not yet connected, channels: file transfer and commands."""
        credentials = options.credentials()
        credentials.validate()
        return self._sftp_factory(credentials), self._ssh_factory(credentials)

    def execute_deployment(self, options: PushOptions) -> DeploymentOutcome:
        """One-shot push: validate, open both channels, run the pipeline, close."""
        options = self.prepare_options(options)
        file_session, command_session = self.create_channels(options)

        with ExitStack() as stack:
            file_channel = stack.enter_context(file_session)
            command_channel = stack.enter_context(command_session)
            runner = self.create_runner(command_channel, options)
            stack.callback(runner.close)
            return self.create_new_deployment(runner, file_channel, options)

    def create_new_deployment(
        self,
        runner: RemoteCommandRunner,
        file_channel: FileChannel,
        options: PushOptions,
    ) -> DeploymentOutcome:
        if not self.state.try_acquire():
            logger.warning("Deployment already in progress; trigger ignored.")
            return DeploymentOutcome(
                status=DeploymentStatus.SKIPPED,
                deployment_number=self.state.deployment_number,
            )

        outcome = DeploymentOutcome(status=DeploymentStatus.FAILED)
        started = time.perf_counter()
        try:
            self.forward_shell_output.clear()

            self.stage = DeploymentStage.PRE_COMMAND
            try:
                runner.run(CommandMode.CLIENT, options.pre_command)
            except RemoteCommandError as exc:
                self._report(exc, self.stage)
                outcome.command_errors.append(exc)

            self.stage = DeploymentStage.PREPARING
            preparer = RemotePathPreparer(file_channel)
            preparer.prepare_target(options)

            self.stage = DeploymentStage.UPLOADING_DEPENDENCIES
            synchronizer = FileSynchronizer(
                file_channel, preparer, global_packages_dir(options.package_store)
            )
            resolver = self._resolver_factory(options.runtime_identifier)
            dependencies = resolver.resolve(Path(options.source_path))
            synchronizer.upload_dependencies(options.target_path, dependencies)

            self.stage = DeploymentStage.UPLOADING_PAYLOAD
            synchronizer.upload_tree(
                Path(options.source_path), options.target_path, options.exclude_suffixes
            )
            outcome.status = DeploymentStatus.SUCCEEDED
        except Exception as exc:
            outcome.error = exc
            self._report(exc, self.stage)
        finally:
            elapsed = time.perf_counter() - started
            self.stage = DeploymentStage.IDLE
            outcome.deployment_number = self.state.release(elapsed)
            outcome.elapsed = elapsed
            logger.info("    Finished deployment in %.2f seconds.", elapsed)
            try:
                runner.run(CommandMode.SHELL, options.post_command)
            except RemoteCommandError as exc:
                self._report(exc, DeploymentStage.POST_COMMAND)
                outcome.command_errors.append(exc)
        return outcome

    def _report(self, exc: BaseException, stage: DeploymentStage) -> None:
        logger.error("Error while %s: %s", stage.value, exc)
        logger.debug("Failure details", exc_info=exc)
