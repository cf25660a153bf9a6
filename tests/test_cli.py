"""Tests for the airtable-mcp CLI."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from airtable_mcp.cli import cli
from airtable_mcp.errors import AirtableRequestError

pytestmark = pytest.mark.unit

ENV = {"AIRTABLE_API_KEY": "patSECRET123456", "AIRTABLE_BASE_ID": "appBASE"}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID", "DEFAULT_TABLE", "AIRTABLE_TABLE_IDS"):
        monkeypatch.delenv(var, raising=False)


class TestCheck:
    def test_reports_settings_without_secret(self, runner: CliRunner, clean_env: None) -> None:
        result = runner.invoke(cli, ["check"], env=ENV)
        assert result.exit_code == 0
        assert "appBASE" in result.output
        assert "patSECRE..." in result.output
        assert "patSECRET123456" not in result.output
        assert "(none)" in result.output

    def test_missing_config_exits_1(self, runner: CliRunner, clean_env: None) -> None:
        result = runner.invoke(cli, ["check"])
        assert result.exit_code == 1
        assert "AIRTABLE_API_KEY" in result.output


class TestTables:
    def test_prints_tables_as_json(self, runner: CliRunner, clean_env: None) -> None:
        tables = [{"id": "tblContacts00001", "name": "Contacts"}]
        with patch("airtable_mcp.cli._fetch_tables", new=AsyncMock(return_value=tables)):
            result = runner.invoke(cli, ["tables"], env=ENV)
        assert result.exit_code == 0
        assert json.loads(result.output) == tables

    def test_remote_error_exits_1(self, runner: CliRunner, clean_env: None) -> None:
        error = AirtableRequestError(status_code=401, message="Authentication required")
        with patch("airtable_mcp.cli._fetch_tables", new=AsyncMock(side_effect=error)):
            result = runner.invoke(cli, ["tables"], env=ENV)
        assert result.exit_code == 1
        assert "Authentication required" in result.output


class TestServe:
    def test_stdio_runs_stdio_transport(self, runner: CliRunner, clean_env: None) -> None:
        with patch("airtable_mcp.cli.AirtableDaemon") as daemon_cls:
            daemon_cls.return_value.run_stdio = AsyncMock()
            result = runner.invoke(cli, ["serve", "--transport", "stdio"], env=ENV)
        assert result.exit_code == 0
        daemon_cls.return_value.run_stdio.assert_awaited_once()

    def test_rejects_unknown_transport(self, runner: CliRunner, clean_env: None) -> None:
        result = runner.invoke(cli, ["serve", "--transport", "carrier-pigeon"], env=ENV)
        assert result.exit_code != 0

    def test_missing_config_exits_1(self, runner: CliRunner, clean_env: None) -> None:
        result = runner.invoke(cli, ["serve"])
        assert result.exit_code == 1
