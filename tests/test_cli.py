"""
Tests for CLI commands — build, install, run, uid and global options.

The toolchain factory is patched to a MockToolchain; nothing is spawned.
"""

import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from apkforge.adapters.mock import MockToolchain
from apkforge.main import cli


@pytest.fixture
def mock_toolchain():
    toolchain = MockToolchain()
    with patch("apkforge.main.make_toolchain", return_value=toolchain):
        yield toolchain


@pytest.fixture
def config(tmp_path: Path, make_lib) -> Path:
    make_lib("libgame.so", tmp_path / "target")
    content = textwrap.dedent("""\
        apk_name: game
        build_dir: build
        target: arm64-v8a
        libs:
          - target/libgame.so
        reverse_port_forward:
          "tcp:8080": "tcp:8080"
        manifest:
          package: com.example.game
    """)
    path = tmp_path / "apk.yml"
    path.write_text(content)
    return path


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "signed Android APK" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestBuildCommand:
    def test_build(self, config, mock_toolchain):
        result = CliRunner().invoke(cli, ["--config", str(config), "build"])
        assert result.exit_code == 0, result.output
        assert "game.apk" in result.output
        tools = [r.tool for r in mock_toolchain.call_log]
        assert tools == ["aapt", "readelf", "aapt", "zipalign", "apksigner"]
        assert "lib/arm64-v8a/libgame.so" in mock_toolchain.calls("aapt")[1].args

    def test_tool_failure_exits_1(self, config, mock_toolchain):
        mock_toolchain.set_failure("zipalign", error="Unable to open 'game-unaligned.apk'")
        result = CliRunner().invoke(cli, ["--config", str(config), "build"])
        assert result.exit_code == 1
        assert "zipalign" in result.output

    def test_missing_config(self, tmp_path, mock_toolchain):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yml"), "build"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestDeviceCommands:
    def test_install(self, config, mock_toolchain):
        result = CliRunner().invoke(cli, ["--config", str(config), "install", "-d", "emu"])
        assert result.exit_code == 0, result.output
        install = mock_toolchain.calls("adb")[0]
        assert install.args[:4] == ["-s", "emu", "install", "-r"]

    def test_run(self, config, mock_toolchain):
        mock_toolchain.set_output("adb", "package:com.example.game uid:10234\n", match="list")
        result = CliRunner().invoke(cli, ["--config", str(config), "run", "--clean"])
        assert result.exit_code == 0, result.output
        assert "uid 10234" in result.output
        subcommands = [r.args[0] for r in mock_toolchain.calls("adb")]
        assert subcommands == ["uninstall", "install", "reverse", "shell", "shell"]

    def test_uid(self, config, mock_toolchain):
        mock_toolchain.set_output("adb", "package:com.example.game uid:10234\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "uid"])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "10234"
        # no build for a uid lookup
        assert mock_toolchain.calls("aapt") == []

    def test_uid_package_missing(self, config, mock_toolchain):
        mock_toolchain.set_output("adb", "package:com.example.game.beta uid:1\n")
        result = CliRunner().invoke(cli, ["--config", str(config), "uid"])
        assert result.exit_code == 1
        assert "com.example.game" in result.output
