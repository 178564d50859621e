"""
Build models — the immutable description of one APK build.

A ``BuildConfig`` is created once per build invocation and read by
every pipeline stage. The path helpers are pure: both container paths
derive only from ``(build_dir, apk_name)``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from apkforge.adapters.base import ToolchainAdapter
from apkforge.core.models.manifest import AndroidManifest


class StripConfig(str, Enum):
    """How debug symbols in added ``.so`` files are treated."""

    DEFAULT = "default"   # copy the library as-is
    STRIP = "strip"       # remove debug info before packaging
    SPLIT = "split"       # strip, keeping debug info in a sibling .dwarf file


class Key(BaseModel):
    """A signing keystore and its password."""

    path: Path
    password: SecretStr

    @classmethod
    def debug(cls) -> Key:
        """The conventional Android debug keystore."""
        return cls(
            path=Path.home() / ".android" / "debug.keystore",
            password=SecretStr("android"),
        )


class BuildConfig(BaseModel):
    """Everything the assembly pipeline needs, frozen for the build."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    toolchain: ToolchainAdapter
    build_dir: Path
    apk_name: str
    assets: Path | None = None
    resources: Path | None = None
    manifest: AndroidManifest
    disable_aapt_compression: bool = False
    strip: StripConfig = StripConfig.DEFAULT
    reverse_port_forward: dict[str, str] = Field(default_factory=dict)

    @field_validator("build_dir", "assets", "resources")
    @classmethod
    def _absolute(cls, v: Path | None) -> Path | None:
        # Tools run with cwd=build_dir, so relative paths would resolve twice
        return v.absolute() if v is not None else None

    def unaligned_apk(self) -> Path:
        """Intermediate container written by ``aapt package``."""
        return self.build_dir / f"{self.apk_name}-unaligned.apk"

    def apk(self) -> Path:
        """Final container written by ``zipalign`` and signed in place."""
        return self.build_dir / f"{self.apk_name}.apk"

    def compression_args(self) -> list[str]:
        """``aapt`` flags that force zero compression for every entry."""
        if self.disable_aapt_compression:
            return ["-0", ""]
        return []
