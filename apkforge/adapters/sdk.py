"""
SDK toolchain — run the real Android SDK and NDK binaries.

Tool paths follow the standard SDK/NDK layout:

    <sdk>/build-tools/<version>/{aapt,zipalign,apksigner}
    <sdk>/platform-tools/adb
    <sdk>/platforms/android-<api>/android.jar
    <ndk>/toolchains/llvm/prebuilt/<host>/bin/llvm-{objcopy,readelf}
    <ndk>/toolchains/llvm/prebuilt/<host>/sysroot/usr/lib/<triple>/<api>/
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from apkforge.adapters.base import ToolchainAdapter, ToolRun, mask_secrets

if TYPE_CHECKING:
    from apkforge.core.models.target import Target

logger = logging.getLogger(__name__)

# Used when no android-<api> platform is installed to pick from.
FALLBACK_TARGET_PLATFORM = 33

_HOST_TAGS = {
    "linux": "linux-x86_64",
    "darwin": "darwin-x86_64",
    "win32": "windows-x86_64",
}

_SDK_ENV_VARS = ("ANDROID_HOME", "ANDROID_SDK_ROOT")
_NDK_ENV_VARS = ("ANDROID_NDK_ROOT", "ANDROID_NDK_HOME", "NDK_HOME")


class ToolchainNotFound(Exception):
    """Raised when no SDK or NDK location can be determined."""


def _exe(name: str) -> str:
    return f"{name}.exe" if sys.platform == "win32" else name


def _bat(name: str) -> str:
    return f"{name}.bat" if sys.platform == "win32" else name


def _version_key(name: str) -> tuple[int, ...]:
    return tuple(int(p) for p in re.findall(r"\d+", name))


class SdkToolchain(ToolchainAdapter):
    """Android SDK + NDK on the local filesystem.

    Args:
        sdk_path: SDK root (contains ``build-tools/``, ``platforms/``).
        ndk_path: NDK root (contains ``toolchains/llvm/``).
        build_tools_version: Pin a build-tools version; default is the newest.
    """

    def __init__(
        self,
        sdk_path: Path,
        ndk_path: Path,
        build_tools_version: str | None = None,
    ):
        self.sdk_path = Path(sdk_path)
        self.ndk_path = Path(ndk_path)
        self._build_tools_version = build_tools_version

    @classmethod
    def from_env(cls, build_tools_version: str | None = None) -> SdkToolchain:
        """Locate the SDK and NDK from the usual environment variables."""
        sdk = next((os.environ[v] for v in _SDK_ENV_VARS if os.environ.get(v)), None)
        if not sdk:
            raise ToolchainNotFound(
                f"Android SDK not found. Set one of: {', '.join(_SDK_ENV_VARS)}"
            )
        ndk = next((os.environ[v] for v in _NDK_ENV_VARS if os.environ.get(v)), None)
        if not ndk:
            # Side-by-side NDKs live under <sdk>/ndk/<version>
            side_by_side = Path(sdk) / "ndk"
            versions = sorted(
                (p for p in side_by_side.glob("*") if p.is_dir()),
                key=lambda p: _version_key(p.name),
            ) if side_by_side.is_dir() else []
            if not versions:
                raise ToolchainNotFound(
                    f"Android NDK not found. Set one of: {', '.join(_NDK_ENV_VARS)}"
                )
            ndk = str(versions[-1])
        return cls(Path(sdk), Path(ndk), build_tools_version=build_tools_version)

    # ── Layout ──────────────────────────────────────────────────

    @property
    def build_tools_dir(self) -> Path:
        root = self.sdk_path / "build-tools"
        version = self._build_tools_version
        if version is None:
            installed = sorted(
                (p.name for p in root.glob("*") if p.is_dir()),
                key=_version_key,
            ) if root.is_dir() else []
            version = installed[-1] if installed else ""
        return root / version

    @property
    def llvm_prebuilt_dir(self) -> Path:
        host = _HOST_TAGS.get(sys.platform, "linux-x86_64")
        return self.ndk_path / "toolchains" / "llvm" / "prebuilt" / host

    def tool_path(self, tool: str) -> Path:
        """Resolve a tool name to the binary that implements it."""
        if tool in ("aapt", "zipalign"):
            return self.build_tools_dir / _exe(tool)
        if tool == "apksigner":
            return self.build_tools_dir / _bat(tool)
        if tool == "adb":
            return self.sdk_path / "platform-tools" / _exe("adb")
        if tool in ("objcopy", "readelf"):
            return self.llvm_prebuilt_dir / "bin" / _exe(f"llvm-{tool}")
        raise ValueError(f"Unknown tool: {tool}")

    # ── Adapter contract ────────────────────────────────────────

    def is_available(self) -> bool:
        return self.sdk_path.is_dir() and self.ndk_path.is_dir()

    def android_jar(self, api_level: int) -> Path:
        return self.sdk_path / "platforms" / f"android-{api_level}" / "android.jar"

    def default_target_platform(self) -> int:
        platforms = self.sdk_path / "platforms"
        levels = [
            int(m.group(1))
            for p in (platforms.glob("android-*") if platforms.is_dir() else [])
            if (m := re.fullmatch(r"android-(\d+)", p.name)) and (p / "android.jar").is_file()
        ]
        if not levels:
            logger.warning(
                "No platforms installed under %s, assuming android-%d",
                platforms, FALLBACK_TARGET_PLATFORM,
            )
            return FALLBACK_TARGET_PLATFORM
        return max(levels)

    def platform_libraries(self, target: Target, api_level: int) -> set[str]:
        lib_dir = (
            self.llvm_prebuilt_dir / "sysroot" / "usr" / "lib"
            / target.ndk_triple / str(api_level)
        )
        if not lib_dir.is_dir():
            logger.warning("No platform libraries at %s", lib_dir)
            return set()
        return {p.name for p in lib_dir.iterdir() if p.suffix == ".so"}

    def run(
        self,
        tool: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        target: Target | None = None,
    ) -> ToolRun:
        binary = self.tool_path(tool)
        argv = [str(a) for a in args]
        logger.debug("Executing: %s %s (cwd=%s)", binary, " ".join(mask_secrets(argv)), cwd)

        try:
            result = subprocess.run(
                [str(binary), *argv],
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                errors="replace",
            )
        except OSError as e:
            return ToolRun(
                tool=str(binary),
                args=argv,
                cwd=str(cwd) if cwd else None,
                returncode=127,
                stderr=f"Cannot execute {binary}: {e}",
            )

        if result.stdout.strip():
            logger.debug("%s stdout: %s", tool, result.stdout.strip())

        return ToolRun(
            tool=str(binary),
            args=argv,
            cwd=str(cwd) if cwd else None,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
