"""Smoke tests for the mcp-bridge CLI."""

from __future__ import annotations

from click.testing import CliRunner

from mcp_bridge.cli import main


def test_cli_help():
    """CLI --help exits cleanly."""
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "In-process MCP transport bridge" in result.output


def test_echo_help():
    """echo --help lists its options."""
    runner = CliRunner()
    result = runner.invoke(main, ["echo", "--help"])
    assert result.exit_code == 0
    assert "--message" in result.output
    assert "--verbose" in result.output


def test_version():
    """--version exits cleanly."""
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "version" in result.output


def test_echo_default_message():
    """echo with no options sends a single hello request."""
    runner = CliRunner()
    result = runner.invoke(main, ["echo"])
    assert result.exit_code == 0, result.output
    assert 'id=1 {"text": "hello"}' in result.output
    assert "Received 1/1 responses" in result.output


def test_echo_multiple_messages_in_order():
    """Each -m becomes one request; responses arrive in send order."""
    runner = CliRunner()
    result = runner.invoke(main, ["echo", "-m", "first", "-m", "second"])
    assert result.exit_code == 0, result.output
    first = result.output.index('id=1 {"text": "first"}')
    second = result.output.index('id=2 {"text": "second"}')
    assert first < second
    assert "Received 2/2 responses" in result.output


def test_echo_verbose_prints_payload():
    """--verbose adds the full JSON-RPC response."""
    runner = CliRunner()
    result = runner.invoke(main, ["echo", "-m", "hi", "--verbose"])
    assert result.exit_code == 0, result.output
    assert '"jsonrpc": "2.0"' in result.output
    assert '"echoed"' in result.output
