"""
Pipeline errors.

Every failure aborts the current operation and surfaces here. There is
no retry and no partial-result salvage: callers report or retry.
"""

from __future__ import annotations

from pathlib import Path

from apkforge.adapters.base import ToolRun


class ApkError(Exception):
    """Base class for all apkforge failures."""


class ToolInvocationFailed(ApkError):
    """An external tool exited non-zero (or could not be spawned)."""

    def __init__(self, run: ToolRun):
        self.run = run
        detail = run.stderr.strip()
        message = f"Command failed (exit {run.returncode}): {run.command_line()}"
        if run.cwd:
            message += f" (cwd={run.cwd})"
        if detail:
            message += f"\n{detail}"
        super().__init__(message)


class PathNotFound(ApkError):
    """An expected input file is missing."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Path not found: {self.path}")


class IoError(ApkError):
    """A filesystem operation failed."""


class IoPathError(IoError):
    """A filesystem operation on a specific path failed."""

    def __init__(self, path: Path, cause: OSError):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{cause.strerror or cause} [{self.path}]")


class PackageNotInOutput(ApkError):
    """``pm list package`` did not list the package exactly."""

    def __init__(self, package: str, output: str):
        self.package = package
        self.output = output
        super().__init__(f"Package '{package}' not found in output:\n{output}")


class UidNotInOutput(ApkError):
    """The matching package line carries no ``uid:`` field."""

    def __init__(self, output: str):
        self.output = output
        super().__init__(f"No uid found in output:\n{output}")


class NotAUid(ApkError):
    """The ``uid:`` field is not an unsigned integer."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Not a uid: '{value}'")


class HandleConsumed(ApkError):
    """A build-state handle was used after it transitioned."""

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"{state} has already been consumed by a later build step")


def check(run: ToolRun) -> ToolRun:
    """Raise ``ToolInvocationFailed`` unless *run* succeeded."""
    if not run.ok:
        raise ToolInvocationFailed(run)
    return run
