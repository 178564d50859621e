"""
APK assembly — the staged build pipeline.

Each build state is its own type, and each transition lives only on
the state before it:

    create_apk(config)                  → UnalignedApk
    UnalignedApk.add_pending_libs_and_align() → UnsignedApk
    UnsignedApk.sign(key)               → Apk

There is no way to sign an unaligned container or to align before the
container exists. A handle that has transitioned is spent; using it
again raises ``HandleConsumed``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from apkforge.core.errors import HandleConsumed, IoPathError, PathNotFound, check
from apkforge.core.models.build import BuildConfig, Key
from apkforge.core.models.manifest import MANIFEST_FILE
from apkforge.core.models.target import Target
from apkforge.core.services.device import Apk
from apkforge.core.services.staging import LibraryStager, StagedLibrarySet

logger = logging.getLogger(__name__)

ZIP_ALIGNMENT = "4"


def create_apk(config: BuildConfig) -> UnalignedApk:
    """Write the manifest and create an empty unaligned container."""
    build_dir = config.build_dir
    try:
        build_dir.mkdir(parents=True, exist_ok=True)
        config.manifest.write_to(build_dir)
    except OSError as e:
        raise IoPathError(build_dir, e) from e

    target_sdk = config.manifest.sdk.target_sdk_version
    if target_sdk is None:
        target_sdk = config.toolchain.default_target_platform()

    args = [
        "package",
        "-f",
        "-F", str(config.unaligned_apk()),
        "-M", MANIFEST_FILE,
        "-I", str(config.toolchain.android_jar(target_sdk)),
        *config.compression_args(),
    ]
    if config.resources is not None:
        args += ["-S", str(config.resources)]
    if config.assets is not None:
        args += ["-A", str(config.assets)]

    check(config.toolchain.aapt(*args, cwd=build_dir))
    logger.info("Created %s (android-%d)", config.unaligned_apk().name, target_sdk)
    return UnalignedApk(config)


class _Handle:
    """One-shot build state."""

    def __init__(self, config: BuildConfig):
        self._config = config
        self._consumed = False

    @property
    def config(self) -> BuildConfig:
        return self._config

    def _ensure_live(self) -> None:
        if self._consumed:
            raise HandleConsumed(type(self).__name__)

    def _consume(self) -> BuildConfig:
        self._ensure_live()
        self._consumed = True
        return self._config


class UnalignedApk(_Handle):
    """Container exists; libraries are being staged."""

    def __init__(self, config: BuildConfig):
        super().__init__(config)
        self._stager = LibraryStager(config)

    @property
    def pending_libs(self) -> StagedLibrarySet:
        return self._stager.pending

    def add_lib(self, path: Path, target: Target) -> str:
        """Stage one ``.so``; returns its archive-internal path."""
        self._ensure_live()
        return self._stager.add_library(path, target)

    def add_lib_recursively(self, lib: Path, target: Target, search_paths: list[Path]) -> None:
        self._ensure_live()
        self._stager.add_library_recursively(lib, target, search_paths)

    def add_runtime_libs(self, path: Path, target: Target, search_paths: list[Path]) -> None:
        """Stage every ``.so`` in ``<path>/<abi>`` plus what they need."""
        self._ensure_live()
        self._stager.add_runtime_libraries(path, target, search_paths)

    def add_pending_libs_and_align(self) -> UnsignedApk:
        """Write all staged libraries in one batch, then zipalign."""
        config = self._consume()
        pending = self._stager.pending
        toolchain = config.toolchain

        for lib_path in pending:
            if not (config.build_dir / lib_path).is_file():
                raise PathNotFound(config.build_dir / lib_path)

        if len(pending):
            check(toolchain.aapt(
                "add",
                *config.compression_args(),
                str(config.unaligned_apk()),
                *pending,
                cwd=config.build_dir,
            ))
            logger.info("Added %d libraries", len(pending))

        check(toolchain.zipalign(
            "-f", "-v", ZIP_ALIGNMENT,
            str(config.unaligned_apk()),
            str(config.apk()),
            cwd=config.build_dir,
        ))
        logger.info("Aligned %s", config.apk().name)
        return UnsignedApk(config)


class UnsignedApk(_Handle):
    """Aligned at the final path, not yet signed."""

    @property
    def path(self) -> Path:
        return self._config.apk()

    def sign(self, key: Key) -> Apk:
        """Sign in place with *key* and hand back the finished APK."""
        config = self._consume()
        check(config.toolchain.apksigner(
            "sign",
            "--ks", str(key.path),
            "--ks-pass", f"pass:{key.password.get_secret_value()}",
            str(config.apk()),
            cwd=config.build_dir,
        ))
        logger.info("Signed %s", config.apk().name)
        return Apk.from_config(config)
