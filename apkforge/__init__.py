"""apkforge — assemble, sign and deploy Android APKs from native libraries."""

__version__ = "0.1.0"
