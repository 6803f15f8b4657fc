"""SSH command channel built on Paramiko."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import paramiko

from .credentials import SSHCredentials
from .shell import LineDecoder, ShellRelay

ClientFactory = Callable[[], paramiko.SSHClient]
OutputSink = Callable[[str], None]


class SSHConnectionError(RuntimeError):
    """Raised when an SSH connection cannot be established."""

    pass


@dataclass
class CommandResult:
    command: str
    output: str
    exit_status: int

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


def open_client(credentials: SSHCredentials, factory: ClientFactory) -> paramiko.SSHClient:
    """Create and connect a paramiko client, wrapping failures in SSHConnectionError."""
    client = factory()
    client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
    try:
        client.connect(**credentials.connect_kwargs())
    except Exception as exc:  # pragma: no cover - network errors hard to simulate
        client.close()
        raise SSHConnectionError(f"{credentials.address}: {exc}") from exc
    return client


class SSHSession:
    """Command-execution channel: blocking commands and interactive shells."""

    def __init__(
        self,
        credentials: SSHCredentials,
        *,
        client_factory: ClientFactory | None = None,
        poll_interval: float = 0.1,
    ) -> None:
        self.credentials = credentials
        self.poll_interval = poll_interval
        self._client_factory = client_factory or paramiko.SSHClient
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self) -> "SSHSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    @property
    def is_connected(self) -> bool:
        if self._client is None:
            return False
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    def connect(self) -> None:
        if self._client:
            return
        self._client = open_client(self.credentials, self._client_factory)

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def run(
        self,
        command: str,
        *,
        timeout: Optional[int] = None,
        on_output: Optional[OutputSink] = None,
    ) -> CommandResult:
        """
        Execute a command and block until the remote process exits.

        Standard output and standard error are merged in arrival order and,
        when ``on_output`` is given, relayed as complete lines. A command still
        running after ``timeout`` seconds is abandoned and reported with exit
        status -1, however much output it keeps producing.
        """
        if not self._client:
            self.connect()
        assert self._client is not None

        _, stdout, _ = self._client.exec_command(command, timeout=timeout)
        channel = stdout.channel
        chunks: list[str] = []
        streams = (
            (channel.recv_ready, channel.recv, LineDecoder()),
            (channel.recv_stderr_ready, channel.recv_stderr, LineDecoder()),
        )
        deadline = None if timeout is None else time.monotonic() + timeout

        while not channel.exit_status_ready():
            received = self._drain(streams, chunks, on_output)
            if deadline is not None and time.monotonic() > deadline:
                self._flush(streams, chunks, on_output)
                channel.close()
                chunks.append(f"\nTIMEOUT: Command did not complete within {timeout} seconds.")
                return CommandResult(command=command, output="".join(chunks).strip(), exit_status=-1)
            if not received:
                time.sleep(self.poll_interval)

        while self._drain(streams, chunks, on_output):
            pass
        self._flush(streams, chunks, on_output)
        exit_status = channel.recv_exit_status()
        return CommandResult(command=command, output="".join(chunks).strip(), exit_status=exit_status)

    def open_shell(self, forward: threading.Event, sink: OutputSink) -> ShellRelay:
        """Open an interactive shell whose output is relayed while ``forward`` is set."""
        if not self._client:
            self.connect()
        assert self._client is not None
        relay = ShellRelay(self._client.invoke_shell(), forward, sink, poll_interval=self.poll_interval)
        relay.start()
        return relay

    @staticmethod
    def _drain(streams, chunks: list[str], on_output: Optional[OutputSink]) -> bool:
        """Read at most one block from each stream; True when anything arrived."""
        received = False
        for ready, recv, decoder in streams:
            if not ready():
                continue
            data = recv(4096)
            if not data:
                continue
            received = True
            SSHSession._emit(decoder.feed(data), chunks, on_output)
        return received

    @staticmethod
    def _flush(streams, chunks: list[str], on_output: Optional[OutputSink]) -> None:
        for _, _, decoder in streams:
            SSHSession._emit(decoder.flush(), chunks, on_output)

    @staticmethod
    def _emit(text: str, chunks: list[str], on_output: Optional[OutputSink]) -> None:
        if not text:
            return
        chunks.append(text)
        if on_output:
            on_output(text)
