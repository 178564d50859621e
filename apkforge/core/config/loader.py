"""
Configuration loader — reads apk.yml into build settings.

It reads YAML, validates against the Pydantic schema, anchors relative
paths at the file's directory, and returns typed settings.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from apkforge.adapters.base import ToolchainAdapter
from apkforge.core.errors import ApkError
from apkforge.core.models.build import BuildConfig
from apkforge.core.models.settings import BuildSettings

logger = logging.getLogger(__name__)

# Default config filename
BUILD_CONFIG_FILE = "apk.yml"


class ConfigError(ApkError):
    """Raised when apk.yml is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for apk.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to apk.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / BUILD_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_settings(path: Path | None = None) -> BuildSettings:
    """Load and validate build settings.

    Args:
        path: Explicit path to apk.yml. If None, searches upward.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(f"No {BUILD_CONFIG_FILE} found. Specify one with --config.")

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading build config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Settings may sit under an "apk" key or be flat
    if isinstance(data.get("apk"), dict):
        data = data["apk"]

    try:
        settings = BuildSettings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid build configuration: {e}") from e

    logger.info("Loaded build '%s' for %s", settings.apk_name, settings.manifest.package)
    return settings.resolve_paths(path.parent.resolve())


def load_build_config(
    toolchain: ToolchainAdapter,
    path: Path | None = None,
) -> tuple[BuildSettings, BuildConfig]:
    """Load apk.yml and bind it to *toolchain*."""
    settings = load_settings(path)
    return settings, settings.to_build_config(toolchain)
