"""
Command runner: the single place package-manager commands are executed.

Every driver shells out through a ``CommandRunner``. It captures
combined stdout+stderr, turns non-zero exits into
``CommandFailedError``, and kills the child when the deadline passes
or the caller sets the cancel event.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass

from stackmatch.core.errors import (
    CommandCancelledError,
    CommandFailedError,
    CommandTimeoutError,
)

logger = logging.getLogger(__name__)

# How often a running child is checked for timeout/cancellation
_POLL_INTERVAL = 0.2


@dataclass
class CommandResult:
    """Outcome of a command that exited 0."""

    args: list[str]
    returncode: int
    output: str
    elapsed_ms: int = 0


class CommandRunner:
    """Run external commands, blocking until they exit.

    Args:
        timeout: Default deadline in seconds for every command (None = no limit).
        cancel_event: When set by another thread, the running child is killed.
        sudo: Prefix privileged commands with ``sudo -n`` when not root.
    """

    def __init__(
        self,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
        sudo: bool = False,
    ):
        self.timeout = timeout
        self.cancel_event = cancel_event
        self.sudo = sudo

    def which(self, name: str) -> str | None:
        """Resolve an executable on PATH."""
        return shutil.which(name)

    def run(
        self,
        args: list[str],
        *,
        timeout: float | None = None,
        privileged: bool = False,
    ) -> CommandResult:
        """Run a command and return its combined output.

        Raises:
            CommandFailedError: Non-zero exit, or the executable could not be started.
            CommandTimeoutError: The deadline passed; the child was killed.
            CommandCancelledError: The cancel event was set; the child was killed.
        """
        cmd = list(args)
        if privileged and self.sudo and _needs_sudo():
            cmd = ["sudo", "-n", *cmd]

        limit = timeout if timeout is not None else self.timeout
        deadline = time.monotonic() + limit if limit else None

        logger.debug("Running: %s", " ".join(cmd))
        start = time.monotonic()

        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise CommandFailedError(cmd, None, str(e)) from e

        while True:
            try:
                output, _ = proc.communicate(timeout=_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if self.cancel_event is not None and self.cancel_event.is_set():
                    partial = _kill(proc)
                    raise CommandCancelledError(
                        cmd, None, partial, message=f"command cancelled: {' '.join(cmd)}"
                    ) from None
                if deadline is not None and time.monotonic() >= deadline:
                    partial = _kill(proc)
                    raise CommandTimeoutError(
                        cmd, None, partial, message=f"command timed out ({limit}s): {' '.join(cmd)}"
                    ) from None

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = output or ""
        logger.debug("Exit %d after %dms: %s", proc.returncode, elapsed_ms, cmd[0])

        if proc.returncode != 0:
            raise CommandFailedError(cmd, proc.returncode, output)

        return CommandResult(args=cmd, returncode=0, output=output, elapsed_ms=elapsed_ms)


def _kill(proc: subprocess.Popen) -> str:
    proc.kill()
    output, _ = proc.communicate()
    return output or ""


def _needs_sudo() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() != 0
