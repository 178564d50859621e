"""
Target model — the CPU architectures an APK can carry native code for.

Each target maps to the ``lib/<abi>/`` directory name the Android
package loader expects, and to the NDK sysroot triple used to find
platform libraries.
"""

from __future__ import annotations

from enum import Enum


class Target(str, Enum):
    """A compiled-code architecture, keyed by its rust/clang triple."""

    ARMV7_A = "armv7-linux-androideabi"
    ARM64_V8A = "aarch64-linux-android"
    X86 = "i686-linux-android"
    X86_64 = "x86_64-linux-android"

    @property
    def android_abi(self) -> str:
        """Archive-internal library directory name (``lib/<abi>/``)."""
        return _ABI_NAMES[self]

    @property
    def ndk_triple(self) -> str:
        """Sysroot library directory triple inside the NDK."""
        if self is Target.ARMV7_A:
            return "arm-linux-androideabi"
        return self.value

    @classmethod
    def from_abi(cls, abi: str) -> Target:
        """Look up a target by its Android ABI name (e.g. ``arm64-v8a``)."""
        for target, name in _ABI_NAMES.items():
            if name == abi:
                return target
        valid = ", ".join(sorted(_ABI_NAMES.values()))
        raise ValueError(f"Unknown Android ABI '{abi}'. Valid: {valid}")


_ABI_NAMES: dict[Target, str] = {
    Target.ARMV7_A: "armeabi-v7a",
    Target.ARM64_V8A: "arm64-v8a",
    Target.X86: "x86",
    Target.X86_64: "x86_64",
}
