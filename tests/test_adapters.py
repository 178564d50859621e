"""
Tests for toolchain adapters — mock toolchain and SDK layout resolution.

SdkToolchain runs are tested with subprocess.run patched out.
"""

import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from apkforge.adapters.base import ToolRun, mask_secrets
from apkforge.adapters.mock import MockToolchain
from apkforge.adapters.sdk import SdkToolchain, ToolchainNotFound
from apkforge.core.models import Target

# ── ToolRun ──────────────────────────────────────────────────────────


class TestToolRun:
    def test_ok(self):
        assert ToolRun(tool="aapt").ok
        assert not ToolRun(tool="aapt", returncode=2).ok

    def test_command_line_masks_password(self):
        run = ToolRun(tool="apksigner", args=["sign", "--ks-pass", "pass:hunter2", "a b.apk"])
        assert run.command_line() == "apksigner sign --ks-pass 'pass:****' 'a b.apk'"

    def test_mask_secrets(self):
        assert mask_secrets(["-x", "pass:abc"]) == ["-x", "pass:****"]


# ── Mock ─────────────────────────────────────────────────────────────


class TestMockToolchain:
    def test_default_success(self):
        mock = MockToolchain()
        run = mock.aapt("package", cwd=Path("/b"))
        assert run.ok
        assert run.cwd == "/b"
        assert mock.call_count == 1

    def test_set_failure_with_match(self):
        mock = MockToolchain()
        mock.set_failure("adb", error="boom", match="tcp:9000")
        assert mock.adb("reverse", "tcp:8000", "tcp:8000").ok
        failed = mock.adb("reverse", "tcp:9000", "tcp:9000")
        assert not failed.ok
        assert failed.stderr == "boom"

    def test_failure_beats_output(self):
        mock = MockToolchain()
        mock.set_output("readelf", "x")
        mock.set_failure("readelf")
        assert not mock.readelf(Target.X86, "-d", "lib.so").ok

    def test_adb_device(self):
        mock = MockToolchain()
        mock.adb("devices", device="abc")
        assert mock.calls("adb")[0].args == ["-s", "abc", "devices"]

    def test_objcopy_copies_output(self, tmp_path):
        src = tmp_path / "in.so"
        src.write_bytes(b"elf")
        MockToolchain().objcopy(Target.X86, "--strip-debug", str(src), str(tmp_path / "out.so"))
        assert (tmp_path / "out.so").read_bytes() == b"elf"

    def test_reset(self):
        mock = MockToolchain()
        mock.set_failure("aapt")
        mock.aapt("package")
        mock.reset()
        assert mock.call_count == 0
        assert mock.aapt("package").ok

    def test_lookups(self):
        mock = MockToolchain(target_platform=30, platform_libs={"libc.so"})
        assert mock.default_target_platform() == 30
        assert mock.platform_libraries(Target.X86, 23) == {"libc.so"}
        assert mock.android_jar(30).name == "android.jar"
        assert mock.is_available()


# ── SDK toolchain ────────────────────────────────────────────────────


@pytest.fixture
def sdk(tmp_path: Path) -> Path:
    """A fake SDK with two build-tools versions and two platforms."""
    root = tmp_path / "sdk"
    for version in ("30.0.3", "34.0.0", "9.0.0"):
        (root / "build-tools" / version).mkdir(parents=True)
    for api in (30, 33):
        platform = root / "platforms" / f"android-{api}"
        platform.mkdir(parents=True)
        (platform / "android.jar").write_bytes(b"")
    (root / "platforms" / "android-34").mkdir()  # incomplete, no jar
    return root


@pytest.fixture
def ndk(tmp_path: Path) -> Path:
    root = tmp_path / "ndk"
    host = {"darwin": "darwin-x86_64", "win32": "windows-x86_64"}.get(sys.platform, "linux-x86_64")
    lib_dir = (
        root / "toolchains" / "llvm" / "prebuilt" / host
        / "sysroot" / "usr" / "lib" / "aarch64-linux-android" / "23"
    )
    lib_dir.mkdir(parents=True)
    for name in ("libc.so", "liblog.so", "crtbegin_so.o"):
        (lib_dir / name).write_bytes(b"")
    return root


class TestSdkToolchain:
    def test_newest_build_tools(self, sdk, ndk):
        tc = SdkToolchain(sdk, ndk)
        assert tc.build_tools_dir == sdk / "build-tools" / "34.0.0"

    def test_pinned_build_tools(self, sdk, ndk):
        tc = SdkToolchain(sdk, ndk, build_tools_version="30.0.3")
        assert tc.tool_path("zipalign").parent == sdk / "build-tools" / "30.0.3"

    def test_tool_paths(self, sdk, ndk):
        tc = SdkToolchain(sdk, ndk)
        assert tc.tool_path("adb").parent == sdk / "platform-tools"
        assert tc.tool_path("objcopy").name.startswith("llvm-objcopy")
        assert tc.tool_path("readelf").parent.name == "bin"

    def test_unknown_tool(self, sdk, ndk):
        with pytest.raises(ValueError):
            SdkToolchain(sdk, ndk).tool_path("javac")

    def test_default_target_platform(self, sdk, ndk):
        assert SdkToolchain(sdk, ndk).default_target_platform() == 33

    def test_default_target_platform_fallback(self, tmp_path, ndk):
        assert SdkToolchain(tmp_path / "empty", ndk).default_target_platform() == 33

    def test_android_jar(self, sdk, ndk):
        assert SdkToolchain(sdk, ndk).android_jar(30) == sdk / "platforms" / "android-30" / "android.jar"

    def test_platform_libraries(self, sdk, ndk):
        tc = SdkToolchain(sdk, ndk)
        assert tc.platform_libraries(Target.ARM64_V8A, 23) == {"libc.so", "liblog.so"}
        assert tc.platform_libraries(Target.X86, 23) == set()

    def test_is_available(self, sdk, ndk, tmp_path):
        assert SdkToolchain(sdk, ndk).is_available()
        assert not SdkToolchain(sdk, tmp_path / "nope").is_available()

    @patch("apkforge.adapters.sdk.subprocess.run")
    def test_run_success(self, mock_run, sdk, ndk, tmp_path):
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="Verification succesful\n", stderr="",
        )
        tc = SdkToolchain(sdk, ndk)
        run = tc.zipalign("-f", "-v", "4", "a.apk", "b.apk", cwd=tmp_path)

        assert run.ok
        assert run.stdout.startswith("Verification")
        argv = mock_run.call_args.args[0]
        assert argv[0] == str(tc.tool_path("zipalign"))
        assert argv[1:] == ["-f", "-v", "4", "a.apk", "b.apk"]
        assert mock_run.call_args.kwargs["cwd"] == str(tmp_path)
        # no internal timeout
        assert "timeout" not in mock_run.call_args.kwargs

    @patch("apkforge.adapters.sdk.subprocess.run")
    def test_run_nonzero(self, mock_run, sdk, ndk):
        mock_run.return_value = subprocess.CompletedProcess(
            args=[], returncode=1, stdout="", stderr="error: device offline",
        )
        run = SdkToolchain(sdk, ndk).adb("install", "-r", "x.apk", device="emulator-5554")
        assert not run.ok
        assert run.stderr == "error: device offline"
        assert mock_run.call_args.args[0][1:3] == ["-s", "emulator-5554"]

    @pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell script")
    def test_undecodable_output_is_replaced(self, sdk, ndk):
        tc = SdkToolchain(sdk, ndk)
        script = tc.tool_path("aapt")
        script.write_text("#!/bin/sh\nprintf 'bad \\377 byte'\nexit 1\n")
        script.chmod(0o755)

        run = tc.aapt("dump", "badging")

        assert not run.ok
        assert run.stdout == "bad � byte"

    def test_missing_binary_is_a_failed_run(self, sdk, ndk):
        run = SdkToolchain(sdk, ndk).aapt("package")
        assert run.returncode == 127
        assert "Cannot execute" in run.stderr


class TestFromEnv:
    def test_env_vars(self, sdk, ndk, monkeypatch):
        monkeypatch.setenv("ANDROID_HOME", str(sdk))
        monkeypatch.setenv("ANDROID_NDK_ROOT", str(ndk))
        tc = SdkToolchain.from_env()
        assert tc.sdk_path == sdk
        assert tc.ndk_path == ndk

    def test_side_by_side_ndk(self, sdk, monkeypatch):
        for name in ("ANDROID_NDK_ROOT", "ANDROID_NDK_HOME", "NDK_HOME", "ANDROID_SDK_ROOT"):
            monkeypatch.delenv(name, raising=False)
        (sdk / "ndk" / "25.2.9519653").mkdir(parents=True)
        (sdk / "ndk" / "26.1.10909125").mkdir(parents=True)
        monkeypatch.setenv("ANDROID_HOME", str(sdk))
        assert SdkToolchain.from_env().ndk_path == sdk / "ndk" / "26.1.10909125"

    def test_no_sdk(self, monkeypatch):
        for name in ("ANDROID_HOME", "ANDROID_SDK_ROOT"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ToolchainNotFound, match="ANDROID_HOME"):
            SdkToolchain.from_env()

    def test_no_ndk(self, sdk, monkeypatch):
        for name in ("ANDROID_NDK_ROOT", "ANDROID_NDK_HOME", "NDK_HOME"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("ANDROID_HOME", str(sdk))
        with pytest.raises(ToolchainNotFound, match="NDK"):
            SdkToolchain.from_env()
