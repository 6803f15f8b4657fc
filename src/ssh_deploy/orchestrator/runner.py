"""Remote command execution in client (blocking) or shell (fire-and-forget) mode."""

from __future__ import annotations

import threading
from typing import Callable, Optional, Protocol, Union

from ..exceptions import RemoteCommandError
from ..models import CommandMode
from ..ssh.session import CommandResult
from ..ssh.shell import ShellRelay
from ..utils.logging import get_logger

logger = get_logger(__name__)
output_logger = get_logger("ssh_deploy.remote")


class CommandChannel(Protocol):
    def run(
        self,
        command: str,
        *,
        timeout: Optional[int] = None,
        on_output: Optional[Callable[[str], None]] = None,
    ) -> CommandResult: ...

    def open_shell(self, forward: threading.Event, sink: Callable[[str], None]) -> ShellRelay: ...


def relay_output(text: str) -> None:
    for line in text.splitlines():
        if line.strip():
            output_logger.info("    > %s", line.rstrip())


class RemoteCommandRunner:
    """
    Runs optional pre/post deployment commands over the command channel.

    Shell mode keeps one interactive shell open for the runner's lifetime and
    reuses it for later commands; its output reaches ``sink`` only while
    ``forward_shell_output`` is set.
    """

    def __init__(
        self,
        channel: CommandChannel,
        *,
        forward_shell_output: Optional[threading.Event] = None,
        timeout: Optional[int] = None,
        follow_shell_output: bool = True,
        sink: Callable[[str], None] = relay_output,
    ) -> None:
        self.channel = channel
        self.forward_shell_output = forward_shell_output or threading.Event()
        self.timeout = timeout
        self.follow_shell_output = follow_shell_output
        self._sink = sink
        self._shell: Optional[ShellRelay] = None

    def run(self, mode: Union[CommandMode, str], command_text: Optional[str]) -> Optional[CommandResult]:
        command = (command_text or "").strip()
        if not command:
            return None
        mode = CommandMode(mode)
        logger.info("    Executing %s command: %s", mode.value, command)
        if mode is CommandMode.CLIENT:
            return self._run_client(command)
        self._run_shell(command)
        return None

    def close(self) -> None:
        if self._shell is not None:
            self._shell.close()
            self._shell = None

    def _run_client(self, command: str) -> CommandResult:
        try:
            result = self.channel.run(command, timeout=self.timeout, on_output=self._sink)
        except Exception as exc:
            raise RemoteCommandError(command, None, str(exc)) from exc
        if not result.ok:
            raise RemoteCommandError(command, result.exit_status, result.output)
        return result

    def _run_shell(self, command: str) -> None:
        try:
            if self._shell is None or self._shell.closed:
                self._shell = self.channel.open_shell(self.forward_shell_output, self._sink)
            self._shell.send(command)
        except Exception as exc:
            raise RemoteCommandError(command, None, str(exc)) from exc
        if self.follow_shell_output:
            self.forward_shell_output.set()
