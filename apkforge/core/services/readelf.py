"""Dynamic-section queries — which shared libraries a binary needs."""

from __future__ import annotations

import re
from pathlib import Path

from apkforge.adapters.base import ToolchainAdapter
from apkforge.core.errors import check
from apkforge.core.models.target import Target

# 0x0000000000000001 (NEEDED)             Shared library: [liblog.so]
_NEEDED_RE = re.compile(r"\(NEEDED\)\s+Shared library:\s*\[([^\]]+)\]")


def parse_needed(output: str) -> list[str]:
    """Extract NEEDED entries from ``readelf -d`` output, in order."""
    return _NEEDED_RE.findall(output)


def needed_libraries(toolchain: ToolchainAdapter, target: Target, lib: Path) -> list[str]:
    """List the libraries *lib* links against."""
    run = check(toolchain.readelf(target, "-d", "-W", str(lib)))
    return parse_needed(run.stdout)


def find_library_path(search_paths: list[Path], name: str) -> Path | None:
    """First ``<search_path>/<name>`` that exists, or None."""
    for directory in search_paths:
        candidate = Path(directory) / name
        if candidate.is_file():
            return candidate
    return None
