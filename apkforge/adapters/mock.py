"""
Mock toolchain — test double for every external tool.

Records each invocation instead of spawning a process. By default every
run succeeds; failures and canned stdout can be configured per tool,
optionally only for runs whose argv contains a given string.

``objcopy`` strip/extract runs copy their input to their output so the
build directory looks like a real build afterwards.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from apkforge.adapters.base import ToolchainAdapter, ToolRun

if TYPE_CHECKING:
    from apkforge.core.models.target import Target

DEFAULT_PLATFORM_LIBRARIES = frozenset({
    "libandroid.so",
    "libc.so",
    "libdl.so",
    "liblog.so",
    "libm.so",
})


@dataclass
class _Response:
    match: str | None
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    def applies_to(self, args: Sequence[str]) -> bool:
        return self.match is None or any(self.match in a for a in args)


class MockToolchain(ToolchainAdapter):
    """Universal mock toolchain for testing."""

    def __init__(
        self,
        available: bool = True,
        target_platform: int = 33,
        platform_libs: set[str] | None = None,
    ):
        self._available = available
        self._target_platform = target_platform
        self._platform_libs = set(
            DEFAULT_PLATFORM_LIBRARIES if platform_libs is None else platform_libs
        )
        self._responses: dict[str, list[_Response]] = {}
        self._call_log: list[ToolRun] = []

    @property
    def call_log(self) -> list[ToolRun]:
        """All runs this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls(self, tool: str) -> list[ToolRun]:
        """Runs of a single tool, in order."""
        return [r for r in self._call_log if r.tool == tool]

    def set_failure(
        self,
        tool: str,
        error: str = "Mock failure",
        returncode: int = 1,
        match: str | None = None,
    ) -> None:
        """Configure *tool* to exit non-zero (only when argv contains *match*)."""
        self._responses.setdefault(tool, []).insert(
            0, _Response(match=match, returncode=returncode, stderr=error)
        )

    def set_output(self, tool: str, stdout: str, match: str | None = None) -> None:
        """Configure the stdout *tool* prints (only when argv contains *match*)."""
        self._responses.setdefault(tool, []).append(_Response(match=match, stdout=stdout))

    def reset(self) -> None:
        """Clear call log and configured responses."""
        self._call_log.clear()
        self._responses.clear()

    # ── Adapter contract ────────────────────────────────────────

    def is_available(self) -> bool:
        return self._available

    def android_jar(self, api_level: int) -> Path:
        return Path("/mock/sdk/platforms") / f"android-{api_level}" / "android.jar"

    def default_target_platform(self) -> int:
        return self._target_platform

    def platform_libraries(self, target: Target, api_level: int) -> set[str]:
        return set(self._platform_libs)

    def run(
        self,
        tool: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        target: Target | None = None,
    ) -> ToolRun:
        argv = [str(a) for a in args]
        response = next(
            (r for r in self._responses.get(tool, []) if r.applies_to(argv)),
            _Response(match=None),
        )
        run = ToolRun(
            tool=tool,
            args=argv,
            cwd=str(cwd) if cwd else None,
            returncode=response.returncode,
            stdout=response.stdout,
            stderr=response.stderr,
        )
        self._call_log.append(run)

        if run.ok and tool == "objcopy":
            self._simulate_objcopy(argv, cwd)
        return run

    @staticmethod
    def _simulate_objcopy(argv: list[str], cwd: Path | None) -> None:
        if "--strip-debug" not in argv and "--only-keep-debug" not in argv:
            return
        src, dst = Path(argv[-2]), Path(argv[-1])
        if cwd is not None:
            src, dst = cwd / src, cwd / dst
        if src.is_file():
            shutil.copyfile(src, dst)
