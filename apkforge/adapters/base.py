"""
Toolchain adapter — the contract between the pipeline and the SDK tools.

The pipeline only talks to external tools through this interface, one
method per tool. Concrete adapters decide how a tool name becomes a
process: ``SdkToolchain`` spawns real binaries, ``MockToolchain``
records invocations for tests.
"""

from __future__ import annotations

import shlex
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from apkforge.core.models.target import Target


def mask_secrets(args: Sequence[str]) -> list[str]:
    """Hide keystore passwords (``pass:<password>``) in an argv."""
    return ["pass:****" if a.startswith("pass:") else a for a in args]


class ToolRun(BaseModel):
    """Receipt of one external tool invocation.

    Adapters NEVER raise for a failed process: a non-zero exit, or a
    binary that could not be spawned, is captured here. Callers decide
    whether a failed run is fatal.
    """

    tool: str
    args: list[str] = Field(default_factory=list)
    cwd: str | None = None
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def command_line(self) -> str:
        """Shell-quoted command line with secrets masked."""
        return shlex.join([self.tool, *mask_secrets(self.args)])


class ToolchainAdapter(ABC):
    """Abstract base class for toolchains.

    Subclasses implement ``run`` plus the SDK lookups. The per-tool
    methods below are the surface the pipeline uses.
    """

    @abstractmethod
    def run(
        self,
        tool: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        target: Target | None = None,
    ) -> ToolRun:
        """Run *tool* with *args* and wait for it to exit.

        ``target`` is set for per-architecture binaries (objcopy, readelf).
        MUST never raise for process failures.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the SDK and NDK this toolchain points at exist."""

    @abstractmethod
    def android_jar(self, api_level: int) -> Path:
        """Platform definitions (``android.jar``) for an API level."""

    @abstractmethod
    def default_target_platform(self) -> int:
        """API level used when the manifest declares no target SDK."""

    @abstractmethod
    def platform_libraries(self, target: Target, api_level: int) -> set[str]:
        """Shared library names the device platform already provides."""

    # ── Tools ───────────────────────────────────────────────────

    def aapt(self, *args: str, cwd: Path | None = None) -> ToolRun:
        return self.run("aapt", args, cwd=cwd)

    def zipalign(self, *args: str, cwd: Path | None = None) -> ToolRun:
        return self.run("zipalign", args, cwd=cwd)

    def apksigner(self, *args: str, cwd: Path | None = None) -> ToolRun:
        return self.run("apksigner", args, cwd=cwd)

    def objcopy(self, target: Target, *args: str, cwd: Path | None = None) -> ToolRun:
        return self.run("objcopy", args, cwd=cwd, target=target)

    def readelf(self, target: Target, *args: str) -> ToolRun:
        return self.run("readelf", args, target=target)

    def adb(self, *args: str, device: str | None = None) -> ToolRun:
        """Run adb, scoped to *device* (a serial) when one is given."""
        argv = ["-s", device, *args] if device else list(args)
        return self.run("adb", argv)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
