"""
Test doubles shared across test modules.
"""

from __future__ import annotations

from stackmatch.adapters.shell.command import CommandResult
from stackmatch.core.errors import CommandFailedError


class FakeRunner:
    """CommandRunner stand-in with scripted output per command prefix.

    The longest registered prefix matching a command wins; unmatched
    commands succeed with empty output. Every call is recorded.
    """

    def __init__(self, executables: tuple[str, ...] = ()):
        self.executables = set(executables)
        self.calls: list[list[str]] = []
        self.privileged: list[list[str]] = []
        self._responses: list[tuple[tuple[str, ...], str, int]] = []

    def on(self, *prefix: str, output: str = "", returncode: int = 0) -> FakeRunner:
        self._responses.append((prefix, output, returncode))
        return self

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.executables else None

    def run(self, args, *, timeout=None, privileged=False) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        if privileged:
            self.privileged.append(args)

        best: tuple[tuple[str, ...], str, int] | None = None
        for prefix, output, returncode in self._responses:
            if tuple(args[: len(prefix)]) == prefix and (best is None or len(prefix) >= len(best[0])):
                best = (prefix, output, returncode)

        if best is None:
            return CommandResult(args=args, returncode=0, output="")
        _, output, returncode = best
        if returncode != 0:
            raise CommandFailedError(args, returncode, output)
        return CommandResult(args=args, returncode=0, output=output)

    def ran(self, *prefix: str) -> bool:
        """True if any recorded command starts with ``prefix``."""
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)
