"""Tests for the command line entry point."""

import pytest
from typer.testing import CliRunner

from salien.bot.config import Settings
from salien.environment.cli.__main__ import app

runner = CliRunner()


def test_run_without_token_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "salien.environment.cli.__main__.settings",
        Settings(steam_token="", _env_file=None),
    )

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "run" in result.output
    assert "planets" in result.output
