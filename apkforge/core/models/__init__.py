"""
Domain models — Pydantic types for the APK pipeline.

All models are re-exported here for convenient access:

    from apkforge.core.models import AndroidManifest, BuildConfig, Key, Target
"""

from apkforge.core.models.build import BuildConfig, Key, StripConfig
from apkforge.core.models.manifest import (
    Activity,
    AndroidManifest,
    Application,
    Sdk,
)
from apkforge.core.models.settings import BuildSettings, KeystoreSettings
from apkforge.core.models.target import Target

__all__ = [
    # manifest.py
    "Activity",
    "AndroidManifest",
    "Application",
    # build.py
    "BuildConfig",
    "BuildSettings",
    "Key",
    "KeystoreSettings",
    "Sdk",
    "StripConfig",
    # target.py
    "Target",
]
