"""
Manifest model — the subset of AndroidManifest.xml a native APK needs.

The manifest is declared in apk.yml, validated here, and serialized
into the build directory where ``aapt package`` picks it up.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from pydantic import BaseModel, Field

ANDROID_NS = "http://schemas.android.com/apk/res/android"
MANIFEST_FILE = "AndroidManifest.xml"

# The entry point ``adb shell am start`` launches.
NATIVE_ACTIVITY = "android.app.NativeActivity"

_XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'

ET.register_namespace("android", ANDROID_NS)


def _a(name: str) -> str:
    """Qualify an attribute name with the android namespace."""
    return f"{{{ANDROID_NS}}}{name}"


class Sdk(BaseModel):
    """``<uses-sdk>``: platform versions the app runs on."""

    min_sdk_version: int = 23
    target_sdk_version: int | None = None


class Activity(BaseModel):
    """The NativeActivity declaration."""

    lib_name: str | None = None     # android.app.lib_name meta-data
    orientation: str | None = None
    launcher: bool = True
    config_changes: str = "orientation|keyboardHidden|screenSize"


class Application(BaseModel):
    label: str = ""
    debuggable: bool = False
    has_code: bool = False
    activity: Activity = Field(default_factory=Activity)


class AndroidManifest(BaseModel):
    """Root manifest. ``package`` is the identity used on device."""

    package: str
    version_code: int = 1
    version_name: str = "0.1.0"
    sdk: Sdk = Field(default_factory=Sdk)
    application: Application = Field(default_factory=Application)

    def to_element(self) -> ET.Element:
        """Build the manifest element tree."""
        root = ET.Element("manifest", {
            "package": self.package,
            _a("versionCode"): str(self.version_code),
            _a("versionName"): self.version_name,
        })

        uses_sdk = {_a("minSdkVersion"): str(self.sdk.min_sdk_version)}
        if self.sdk.target_sdk_version is not None:
            uses_sdk[_a("targetSdkVersion")] = str(self.sdk.target_sdk_version)
        ET.SubElement(root, "uses-sdk", uses_sdk)

        app = self.application
        application = ET.SubElement(root, "application", {
            _a("label"): app.label or self.package,
            _a("debuggable"): str(app.debuggable).lower(),
            _a("hasCode"): str(app.has_code).lower(),
        })

        act = app.activity
        activity_attrs = {
            _a("name"): NATIVE_ACTIVITY,
            _a("exported"): "true",
            _a("configChanges"): act.config_changes,
        }
        if act.orientation:
            activity_attrs[_a("screenOrientation")] = act.orientation
        activity = ET.SubElement(application, "activity", activity_attrs)

        if act.lib_name:
            ET.SubElement(activity, "meta-data", {
                _a("name"): "android.app.lib_name",
                _a("value"): act.lib_name,
            })

        if act.launcher:
            intent_filter = ET.SubElement(activity, "intent-filter")
            ET.SubElement(intent_filter, "action", {_a("name"): "android.intent.action.MAIN"})
            ET.SubElement(intent_filter, "category", {_a("name"): "android.intent.category.LAUNCHER"})

        return root

    def to_xml(self) -> str:
        root = self.to_element()
        ET.indent(root)
        return _XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"

    def write_to(self, directory: Path) -> Path:
        """Write ``AndroidManifest.xml`` into *directory* and return its path."""
        path = directory / MANIFEST_FILE
        path.write_text(self.to_xml(), encoding="utf-8")
        return path
