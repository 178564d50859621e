"""
Device operations on a finished, signed APK.

Thin wrappers over ``adb``: install, launch, reverse port forwarding,
and resolving the app's numeric uid on the device.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from apkforge.adapters.base import ToolchainAdapter
from apkforge.core.errors import (
    NotAUid,
    PackageNotInOutput,
    UidNotInOutput,
    check,
)
from apkforge.core.models.build import BuildConfig
from apkforge.core.models.manifest import NATIVE_ACTIVITY

logger = logging.getLogger(__name__)

_U32_MAX = 2**32 - 1


def parse_uid(output: str, package: str) -> int:
    """Pick *package*'s uid out of ``pm list package -U`` output.

    ``pm`` filters by substring, so ``com.example`` also lists
    ``com.example.demo``. Only the line whose ``package:`` field equals
    *package* exactly is used.
    """
    for line in output.splitlines():
        fields = line.split()
        if not fields or fields[0] != f"package:{package}":
            continue

        uid = next((f for f in fields[1:] if f.startswith("uid:")), None)
        if uid is None:
            raise UidNotInOutput(output)
        value = uid.removeprefix("uid:")
        if not re.fullmatch(r"[0-9]+", value) or int(value) > _U32_MAX:
            raise NotAUid(value)
        return int(value)

    raise PackageNotInOutput(package, output)


class Apk:
    """A signed APK ready to deploy. Device operations only take this state."""

    def __init__(
        self,
        path: Path,
        package_name: str,
        toolchain: ToolchainAdapter,
        reverse_port_forward: dict[str, str] | None = None,
    ):
        self.path = Path(path)
        self.package_name = package_name
        self.toolchain = toolchain
        self.reverse_port_forward = dict(reverse_port_forward or {})

    @classmethod
    def from_config(cls, config: BuildConfig) -> Apk:
        return cls(
            path=config.apk(),
            package_name=config.manifest.package,
            toolchain=config.toolchain,
            reverse_port_forward=config.reverse_port_forward,
        )

    def reverse_port_forwarding(self, device: str | None = None) -> None:
        """Forward each device-side port back to the host.

        Stops at the first failure; entries already forwarded stay.
        """
        for local, remote in self.reverse_port_forward.items():
            logger.info("Reverse port forwarding from %s to %s", local, remote)
            check(self.toolchain.adb("reverse", local, remote, device=device))

    def install(self, device: str | None = None) -> None:
        logger.info("Installing %s", self.path)
        check(self.toolchain.adb("install", "-r", str(self.path), device=device))

    def uninstall(self, device: str | None = None) -> None:
        logger.info("Uninstalling %s", self.package_name)
        check(self.toolchain.adb("uninstall", self.package_name, device=device))

    def start(self, device: str | None = None) -> None:
        logger.info("Starting %s", self.package_name)
        check(self.toolchain.adb(
            "shell", "am", "start",
            "-a", "android.intent.action.MAIN",
            "-n", f"{self.package_name}/{NATIVE_ACTIVITY}",
            device=device,
        ))

    def uidof(self, device: str | None = None) -> int:
        """Numeric uid the package runs as on the device."""
        run = check(self.toolchain.adb(
            "shell", "pm", "list", "package", "-U", self.package_name,
            device=device,
        ))
        return parse_uid(run.stdout, self.package_name)

    def __repr__(self) -> str:
        return f"<Apk {self.package_name} path={str(self.path)!r}>"
