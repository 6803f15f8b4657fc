"""Polling watcher for the deployment trigger file."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..utils.logging import get_logger

logger = get_logger(__name__)

Signature = Optional[Tuple[int, int]]


class TriggerFileWatcher:
    """
    Fires ``callback`` each time the trigger file is created or modified.

    Every change is dispatched on its own worker thread, so a change that
    arrives while an earlier callback is still running reaches the callee
    concurrently instead of waiting behind it.
    """

    def __init__(self, path: Path, callback: Callable[[], object], poll_interval: float = 0.5) -> None:
        self.path = Path(path)
        self.callback = callback
        self.poll_interval = poll_interval
        self._last: Signature = self._signature()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._workers: List[threading.Thread] = []

    def _signature(self) -> Signature:
        try:
            info = self.path.stat()
        except FileNotFoundError:
            return None
        return info.st_mtime_ns, info.st_size

    def check(self) -> bool:
        """Poll once; return True when a change was dispatched."""
        current = self._signature()
        changed = current is not None and current != self._last
        self._last = current
        if not changed:
            return False
        logger.debug("Trigger file %s changed", self.path)
        worker = threading.Thread(target=self.callback, name="ssh-deploy-trigger", daemon=True)
        self._workers = [w for w in self._workers if w.is_alive()]
        self._workers.append(worker)
        worker.start()
        return True

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="ssh-deploy-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        for worker in self._workers:
            worker.join(timeout)
        self._workers = []

    def _loop(self) -> None:
        while not self._stop.wait(self.poll_interval):
            self.check()
