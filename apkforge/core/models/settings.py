"""
Build settings — what apk.yml declares.

Settings are the user-facing, serializable side of a build. They turn
into a frozen ``BuildConfig`` once a toolchain is chosen.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator

from apkforge.adapters.base import ToolchainAdapter
from apkforge.core.models.build import BuildConfig, Key, StripConfig
from apkforge.core.models.manifest import AndroidManifest
from apkforge.core.models.target import Target


class KeystoreSettings(BaseModel):
    path: Path
    password: SecretStr

    def to_key(self) -> Key:
        return Key(path=self.path, password=self.password)


class BuildSettings(BaseModel):
    """Root build declaration, loaded from apk.yml."""

    apk_name: str
    build_dir: Path = Path("target/apk")
    assets: Path | None = None
    resources: Path | None = None
    manifest: AndroidManifest
    strip: StripConfig = StripConfig.DEFAULT
    disable_aapt_compression: bool = False
    reverse_port_forward: dict[str, str] = Field(default_factory=dict)

    target: Target = Target.ARM64_V8A
    libs: list[Path] = Field(default_factory=list)
    runtime_libs: Path | None = None
    search_paths: list[Path] = Field(default_factory=list)
    keystore: KeystoreSettings | None = None

    @field_validator("target", mode="before")
    @classmethod
    def _target_from_abi(cls, v: Any) -> Any:
        # Accept the ABI name (arm64-v8a) as well as the triple
        if isinstance(v, str) and v not in {t.value for t in Target}:
            return Target.from_abi(v)
        return v

    def resolve_paths(self, base: Path) -> BuildSettings:
        """Copy with every relative path anchored at *base*."""

        def anchor(p: Path | None) -> Path | None:
            if p is None or p.is_absolute():
                return p
            return base / p

        update: dict[str, Any] = {
            "build_dir": anchor(self.build_dir),
            "assets": anchor(self.assets),
            "resources": anchor(self.resources),
            "runtime_libs": anchor(self.runtime_libs),
            "libs": [anchor(p) for p in self.libs],
            "search_paths": [anchor(p) for p in self.search_paths],
        }
        if self.keystore is not None:
            update["keystore"] = self.keystore.model_copy(
                update={"path": anchor(self.keystore.path)}
            )
        return self.model_copy(update=update)

    def signing_key(self) -> Key:
        """Declared keystore, or the debug keystore."""
        if self.keystore is None:
            return Key.debug()
        return self.keystore.to_key()

    def to_build_config(self, toolchain: ToolchainAdapter) -> BuildConfig:
        return BuildConfig(
            toolchain=toolchain,
            build_dir=self.build_dir,
            apk_name=self.apk_name,
            assets=self.assets,
            resources=self.resources,
            manifest=self.manifest,
            disable_aapt_compression=self.disable_aapt_compression,
            strip=self.strip,
            reverse_port_forward=self.reverse_port_forward,
        )
