"""Adapters — toolchain bindings for the external SDK tools.

Public re-exports for convenient access.
"""

from apkforge.adapters.base import ToolchainAdapter, ToolRun
from apkforge.adapters.mock import MockToolchain
from apkforge.adapters.sdk import SdkToolchain, ToolchainNotFound

__all__ = [
    "MockToolchain",
    "SdkToolchain",
    "ToolRun",
    "ToolchainAdapter",
    "ToolchainNotFound",
]
