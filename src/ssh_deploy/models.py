"""Data structures shared by the deployment pipeline."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class Dependency:
    """A runtime asset contributed by a package listed in the manifest."""

    name: str
    version: str
    path: str


class DeploymentStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class CommandMode(str, Enum):
    """How a remote command is executed."""

    CLIENT = "client"  # wait for exit
    SHELL = "shell"    # fire into a long-lived shell


@dataclass
class DeploymentOutcome:
    """What a single trigger of the pipeline produced."""

    status: DeploymentStatus
    deployment_number: int = 0
    elapsed: float = 0.0
    error: Optional[BaseException] = None
    command_errors: List[BaseException] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == DeploymentStatus.SUCCEEDED


class DeploymentState:
    """
    Process-scoped deployment lock and counters.

    ``try_acquire`` performs the check-and-set under a mutex so two triggers
    can never both observe an idle state; ``release`` clears the flag and
    bumps the counter in the same critical section.
    """

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._is_deploying = False
        self._deployment_number = 0
        self._last_duration = 0.0

    @property
    def is_deploying(self) -> bool:
        return self._is_deploying

    @property
    def deployment_number(self) -> int:
        return self._deployment_number

    @property
    def last_duration(self) -> float:
        return self._last_duration

    def try_acquire(self) -> bool:
        with self._mutex:
            if self._is_deploying:
                return False
            self._is_deploying = True
            return True

    def release(self, elapsed: float) -> int:
        with self._mutex:
            if not self._is_deploying:
                raise RuntimeError("release() called without a matching try_acquire()")
            self._is_deploying = False
            self._deployment_number += 1
            self._last_duration = elapsed
            return self._deployment_number


class DeploymentStage(str, Enum):
    """Where the pipeline currently is; anything but IDLE holds the lock."""

    IDLE = "idle"
    PRE_COMMAND = "pre-deployment command"
    PREPARING = "preparing target path"
    UPLOADING_DEPENDENCIES = "uploading dependencies"
    UPLOADING_PAYLOAD = "uploading files"
    POST_COMMAND = "post-deployment command"
