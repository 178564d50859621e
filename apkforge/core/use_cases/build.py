"""
Build use case — run the whole pipeline for one apk.yml.
"""

from __future__ import annotations

import logging

from apkforge.core.models.build import BuildConfig
from apkforge.core.models.settings import BuildSettings
from apkforge.core.services.apk import create_apk
from apkforge.core.services.device import Apk

logger = logging.getLogger(__name__)


def build_apk(settings: BuildSettings, config: BuildConfig) -> Apk:
    """Create, stage libraries, align and sign.

    Explicit ``libs`` are staged with their dependencies first, then
    every ``.so`` under ``runtime_libs/<abi>``.
    """
    target = settings.target
    unaligned = create_apk(config)

    for lib in settings.libs:
        unaligned.add_lib_recursively(lib, target, settings.search_paths)

    if settings.runtime_libs is not None:
        unaligned.add_runtime_libs(settings.runtime_libs, target, settings.search_paths)

    apk = unaligned.add_pending_libs_and_align().sign(settings.signing_key())
    logger.info("Built %s", apk.path)
    return apk
