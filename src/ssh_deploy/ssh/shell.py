"""Long-lived interactive shell with background output relay."""

from __future__ import annotations

import codecs
import threading
import time
from typing import Callable, Optional


class LineDecoder:
    """
    Incremental UTF-8 decoder that only hands out complete lines.

    Bytes of a character split across reads, and the tail of a line that has
    not seen its newline yet, are held until more data arrives or ``flush``.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: bytes) -> str:
        text = self._pending + self._decoder.decode(data)
        head, newline, self._pending = text.rpartition("\n")
        return head + newline

    def flush(self) -> str:
        text = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        return text


class ShellRelay:
    """
    Sends commands to an interactive remote shell and drains its output on a
    daemon thread.

    Output is always read so the remote side never blocks on a full window,
    but it is only handed to ``sink`` while the shared ``forward`` event is
    set. The event is owned by whoever decides whether post-deployment output
    is still of interest.
    """

    def __init__(
        self,
        channel,
        forward: threading.Event,
        sink: Callable[[str], None],
        *,
        poll_interval: float = 0.1,
    ) -> None:
        self._channel = channel
        self._forward = forward
        self._sink = sink
        self._poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def closed(self) -> bool:
        return self._stop.is_set() or bool(getattr(self._channel, "closed", False))

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._pump, name="ssh-deploy-shell", daemon=True)
        self._thread.start()

    def send(self, command: str) -> None:
        self._channel.sendall((command.rstrip("\n") + "\n").encode("utf-8"))

    def close(self, timeout: float = 2.0) -> None:
        self._stop.set()
        self._channel.close()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _pump(self) -> None:
        decoder = LineDecoder()
        while not self.closed:
            if not self._channel.recv_ready():
                time.sleep(self._poll_interval)
                continue
            data = self._channel.recv(4096)
            if not data:
                break
            self._forward_text(decoder.feed(data))
        self._forward_text(decoder.flush())

    def _forward_text(self, text: str) -> None:
        if text and self._forward.is_set():
            self._sink(text)
