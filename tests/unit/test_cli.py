"""
Unit tests for the command-line interface.
"""

import json

import pytest

from tasmota import __main__ as cli
from tasmota.api import INVALID


class FakeAPI:
    """Stands in for TasmotaAPI; answers from a fixed table."""

    def __init__(self, host_url, client=None):
        self.host_url = host_url

    def get_value(self, name):
        return "ON" if name == "Power" else INVALID

    def get_value_from_path(self, path):
        return "42"

    def get_modules(self):
        return {"0": "Generic"}

    def get_power(self):
        return -1

    def set_value(self, name, value):
        return value


@pytest.fixture(autouse=True)
def fake_api(monkeypatch):
    monkeypatch.setattr(cli, "TasmotaAPI", FakeAPI)
    monkeypatch.setattr(cli, "setup_logging", lambda config: None)


class TestMain:
    """Tests for main()."""

    def test_get(self, capsys):
        """Test reading a value."""
        assert cli.main(["http://plug", "get", "Power"]) == 0
        assert capsys.readouterr().out == "ON\n"

    def test_get_invalid(self, capsys):
        """Test that a sentinel result exits with 1."""
        assert cli.main(["http://plug", "get", "Nope"]) == 1
        assert capsys.readouterr().out == "INVALID\n"

    def test_path(self, capsys):
        """Test reading a path."""
        assert cli.main(["plug", "path", "StatusSNS:ENERGY:Power"]) == 0
        assert capsys.readouterr().out == "42\n"

    def test_modules(self, capsys):
        """Test the modules listing as JSON."""
        assert cli.main(["plug", "modules"]) == 0
        assert json.loads(capsys.readouterr().out) == {"0": "Generic"}

    def test_power_unknown(self, capsys):
        """Test that an unknown power state exits with 1."""
        assert cli.main(["plug", "power"]) == 1
        assert capsys.readouterr().out == "-1\n"

    def test_set(self, capsys):
        """Test writing a value."""
        assert cli.main(["plug", "set", "Power", "OFF"]) == 0
        assert capsys.readouterr().out == "OFF\n"

    def test_invalid_poll_timeout(self, capsys):
        """Test that invalid configuration exits with 2."""
        assert cli.main(["--poll-timeout", "0", "plug", "power"]) == 2
        assert "poll_timeout" in capsys.readouterr().err

    def test_version(self, capsys):
        """Test --version."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])

        assert exc_info.value.code == 0
        assert "pytasmota" in capsys.readouterr().out

    def test_missing_command(self):
        """Test that a command is required."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["plug"])

        assert exc_info.value.code == 2
