"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from apkforge.adapters.mock import MockToolchain
from apkforge.core.models import AndroidManifest, BuildConfig, Sdk, StripConfig


@pytest.fixture
def toolchain() -> MockToolchain:
    """A toolchain that records invocations instead of running them."""
    return MockToolchain()


@pytest.fixture
def manifest() -> AndroidManifest:
    return AndroidManifest(package="com.example.native", sdk=Sdk(target_sdk_version=30))


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    return tmp_path / "build"


@pytest.fixture
def make_config(toolchain: MockToolchain, manifest: AndroidManifest, build_dir: Path):
    """Factory for BuildConfig with test defaults; override any field."""

    def _make(**overrides) -> BuildConfig:
        fields = {
            "toolchain": toolchain,
            "build_dir": build_dir,
            "apk_name": "demo",
            "manifest": manifest,
            "strip": StripConfig.DEFAULT,
        }
        fields.update(overrides)
        return BuildConfig(**fields)

    return _make


@pytest.fixture
def make_lib(tmp_path: Path):
    """Factory that writes a fake shared library and returns its path."""

    def _make(name: str = "libmain.so", directory: Path | None = None) -> Path:
        directory = directory or tmp_path / "out"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(b"\x7fELF" + name.encode())
        return path

    return _make
