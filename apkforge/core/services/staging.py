"""
Library staging — copy native libraries into the build tree.

Each library lands at ``<build_dir>/lib/<abi>/<name>`` and is queued
under its archive-internal path until ``aapt add`` writes the whole
batch into the container. Archive paths always use ``/``: the device
loader expects it, whatever the host separator is.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator
from pathlib import Path, PurePath, PurePosixPath

from apkforge.core.errors import IoPathError, PathNotFound, check
from apkforge.core.models.build import BuildConfig, StripConfig
from apkforge.core.models.target import Target
from apkforge.core.services.readelf import find_library_path, needed_libraries

logger = logging.getLogger(__name__)

DEBUG_SUFFIX = ".dwarf"


class StagedLibrarySet:
    """Archive-internal paths queued for the next ``aapt add``."""

    def __init__(self) -> None:
        self._paths: set[str] = set()

    def add(self, archive_path: str) -> bool:
        """Queue a path. Returns False if it was already queued."""
        if archive_path in self._paths:
            return False
        self._paths.add(archive_path)
        return True

    def __contains__(self, archive_path: object) -> bool:
        return archive_path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[str]:
        # aapt takes the batch in any order; sorted keeps argv stable
        return iter(sorted(self._paths))

    def __repr__(self) -> str:
        return f"<StagedLibrarySet {sorted(self._paths)!r}>"


def archive_path(source: PurePath, target: Target) -> str:
    """``lib/<abi>/<filename>`` with forward slashes on every host."""
    name = PurePath(source).name.replace("\\", "/").rsplit("/", 1)[-1]
    return PurePosixPath("lib", target.android_abi, name).as_posix()


def _mkdir(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IoPathError(directory, e) from e


class LibraryStager:
    """Stages libraries for one build according to its strip policy."""

    def __init__(self, config: BuildConfig):
        self.config = config
        self.pending = StagedLibrarySet()

    def add_library(self, path: Path, target: Target) -> str:
        """Stage one library and return its archive-internal path."""
        path = Path(path)
        if not path.exists():
            raise PathNotFound(path)

        lib_path = archive_path(path, target)
        out = self.config.build_dir / lib_path
        _mkdir(out.parent)

        strip = self.config.strip
        toolchain = self.config.toolchain

        if strip is StripConfig.DEFAULT:
            try:
                shutil.copyfile(path, out)
            except OSError as e:
                raise IoPathError(out, e) from e
        else:
            check(toolchain.objcopy(target, "--strip-debug", str(path), str(out)))

            if strip is StripConfig.SPLIT:
                dwarf = out.with_suffix(DEBUG_SUFFIX)
                check(toolchain.objcopy(target, "--only-keep-debug", str(path), str(dwarf)))
                # Relative link so the debugger finds the side file next to the binary
                check(toolchain.objcopy(
                    target,
                    f"--add-gnu-debuglink={dwarf.name}",
                    out.name,
                    cwd=out.parent,
                ))

        if self.pending.add(lib_path):
            logger.info("Staged %s (%s)", lib_path, strip.value)
        return lib_path

    def platform_libraries(self, target: Target) -> set[str]:
        """Libraries the device provides at the manifest's minimum SDK."""
        min_sdk = self.config.manifest.sdk.min_sdk_version
        return set(self.config.toolchain.platform_libraries(target, min_sdk))

    def add_library_recursively(
        self,
        lib: Path,
        target: Target,
        search_paths: list[Path],
        provided: set[str] | None = None,
    ) -> None:
        """Stage *lib* and every needed library found on *search_paths*.

        Libraries the platform provides are never staged; each other
        library is staged once however many times it is referenced.
        *provided* carries that bookkeeping across calls.
        """
        toolchain = self.config.toolchain
        if provided is None:
            provided = self.platform_libraries(target)
        provided.add(Path(lib).name)

        worklist = [Path(lib)]
        while worklist:
            artifact = worklist.pop()
            self.add_library(artifact, target)

            for need in needed_libraries(toolchain, target, artifact):
                if need in provided:
                    continue
                provided.add(need)
                found = find_library_path(search_paths, need)
                if found is None:
                    logger.warning("Shared library %r needed by %s not found", need, artifact.name)
                    continue
                worklist.append(found)

    def add_runtime_libraries(
        self,
        root: Path,
        target: Target,
        search_paths: list[Path],
    ) -> None:
        """Stage every ``*.so`` under ``<root>/<abi>`` with its dependencies."""
        abi_dir = Path(root) / target.android_abi
        try:
            entries = sorted(abi_dir.iterdir())
        except OSError as e:
            raise IoPathError(abi_dir, e) from e

        libs = [entry for entry in entries if entry.suffix == ".so"]
        # Siblings are staged from this directory, never from search_paths
        provided = self.platform_libraries(target) | {lib.name for lib in libs}
        for lib in libs:
            self.add_library_recursively(lib, target, search_paths, provided)
