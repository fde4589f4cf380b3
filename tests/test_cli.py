"""Tests for the toolhost command line."""

import json

import pytest
from click.testing import CliRunner

from toolhost import __version__
from toolhost.cli.main import cli
from toolhost.validation.config import Config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "GLOBAL_CONFIG_DIR", tmp_path / "global")
    path = tmp_path / "config.yaml"
    path.write_text("registry:\n  modules: [toolhost.tools.builtin]\nlogging:\n  level: ERROR\n")
    return path


class TestCli:
    """Tests for the toolhost command."""

    def test_version(self, runner):
        """Test the --version flag."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_tools(self, runner, config_file):
        """Test listing tools."""
        result = runner.invoke(cli, ["tools", "-c", str(config_file)])

        assert result.exit_code == 0
        assert "Echo" in result.output
        assert "Get-ToolHostInfo" in result.output

    def test_call(self, runner, config_file):
        """Test running one tool from the command line."""
        result = runner.invoke(cli, ["call", "Echo", '{"Msg": "hi"}', "-c", str(config_file)])

        assert result.exit_code == 0
        assert result.stdout.strip() == "hi"

    def test_call_unknown_tool(self, runner, config_file):
        """Test that an unknown tool exits with status 2."""
        result = runner.invoke(cli, ["call", "Nope", "-c", str(config_file)])
        assert result.exit_code == 2

    def test_call_missing_required(self, runner, config_file):
        """Test that a failing call exits with status 1."""
        result = runner.invoke(cli, ["call", "Echo", "{}", "-c", str(config_file)])
        assert result.exit_code == 1

    def test_serve(self, runner, config_file):
        """Test serving a short session over stdin."""
        stdin = "\n".join([
            '{"jsonrpc":"2.0","id":1,"method":"initialize"}',
            '{"jsonrpc":"2.0","method":"notifications/initialized"}',
            '{"jsonrpc":"2.0","id":2,"method":"tools/call","params":{"name":"Echo","arguments":{"Msg":"hi"}}}',
        ]) + "\n"

        result = runner.invoke(cli, ["serve", "-c", str(config_file)], input=stdin)

        assert result.exit_code == 0
        lines = [json.loads(line) for line in result.stdout.splitlines()]
        assert [m["id"] for m in lines] == [1, 2]
        assert lines[1]["result"]["content"][0]["text"] == "hi"

    def test_serve_missing_config_exits_nonzero(self, runner, tmp_path):
        """Test that a missing config file exits with status 1."""
        result = runner.invoke(cli, ["serve", "-c", str(tmp_path / "missing.yaml")], input="")
        assert result.exit_code == 1

    def test_serve_invalid_config_exits_nonzero(self, runner, tmp_path, monkeypatch):
        """Test that an invalid config file exits with status 1."""
        monkeypatch.setattr(Config, "GLOBAL_CONFIG_DIR", tmp_path / "global")
        path = tmp_path / "bad.yaml"
        path.write_text("registry:\n  duplicates: sometimes\n")

        result = runner.invoke(cli, ["serve", "-c", str(path)], input="")
        assert result.exit_code == 1

    def test_init(self, runner, tmp_path, monkeypatch):
        """Test writing a default config file."""
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert (tmp_path / ".toolhost" / "config.yaml").exists()
