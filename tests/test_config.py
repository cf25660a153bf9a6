"""Tests for configuration loading and credential validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from airtable_mcp.config import (
    DEFAULT_API_URL,
    AirtableConfig,
    LoggingConfig,
    load_config,
)
from airtable_mcp.credentials import CredentialError, redact, validate_credentials
from airtable_mcp.errors import ConfigError

pytestmark = pytest.mark.unit


@pytest.fixture
def env() -> dict[str, str]:
    return {"AIRTABLE_API_KEY": "patSECRET123456", "AIRTABLE_BASE_ID": "appBASE"}


class TestValidateCredentials:
    def test_all_present(self, env: dict[str, str]) -> None:
        validate_credentials(environ=env)

    def test_missing_vars_aggregated(self) -> None:
        with pytest.raises(CredentialError) as excinfo:
            validate_credentials(environ={})
        message = str(excinfo.value)
        assert "AIRTABLE_API_KEY" in message
        assert "AIRTABLE_BASE_ID" in message

    def test_empty_value_counts_as_missing(self, env: dict[str, str]) -> None:
        env["AIRTABLE_API_KEY"] = ""
        with pytest.raises(CredentialError, match="AIRTABLE_API_KEY"):
            validate_credentials(environ=env)

    def test_credential_error_is_config_error(self) -> None:
        assert issubclass(CredentialError, ConfigError)

    def test_redact(self) -> None:
        assert redact("patSECRET123456") == "patSECRE..."
        assert redact("") == "<empty>"


class TestLoadConfig:
    def test_minimal(self, env: dict[str, str]) -> None:
        config = load_config(env)
        assert config.airtable.api_key == "patSECRET123456"
        assert config.airtable.base_id == "appBASE"
        assert config.airtable.default_table is None
        assert config.airtable.table_ids == {}
        assert config.airtable.api_url == DEFAULT_API_URL
        assert config.logging == LoggingConfig()

    def test_missing_required_is_fatal(self) -> None:
        with pytest.raises(ConfigError):
            load_config({"AIRTABLE_API_KEY": "k"})

    def test_optional_values(self, env: dict[str, str]) -> None:
        env.update(
            {
                "DEFAULT_TABLE": " Contacts ",
                "AIRTABLE_TABLE_IDS": '{"Legacy": "tblLegacy0000001"}',
                "AIRTABLE_API_URL": "https://proxy.local/v0/",
                "LOG_LEVEL": "debug",
                "LOG_FORMAT": "JSON",
                "LOG_ROOT": "/tmp/logs",
            }
        )
        config = load_config(env)
        assert config.airtable.default_table == "Contacts"
        assert config.airtable.table_ids == {"Legacy": "tblLegacy0000001"}
        assert config.airtable.api_url == "https://proxy.local/v0"
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"
        assert config.logging.log_root == "/tmp/logs"

    def test_blank_default_table_is_none(self, env: dict[str, str]) -> None:
        env["DEFAULT_TABLE"] = "  "
        assert load_config(env).airtable.default_table is None

    @pytest.mark.parametrize(
        "raw",
        ["{not json", "[1, 2]", '{"Legacy": 5}', '{"Legacy": ""}'],
    )
    def test_bad_table_ids(self, env: dict[str, str], raw: str) -> None:
        env["AIRTABLE_TABLE_IDS"] = raw
        with pytest.raises(ConfigError, match="AIRTABLE_TABLE_IDS"):
            load_config(env)

    def test_bad_log_format(self, env: dict[str, str]) -> None:
        env["LOG_FORMAT"] = "xml"
        with pytest.raises(ConfigError, match="LOG_FORMAT"):
            load_config(env)


class TestAirtableConfig:
    def test_defaults(self) -> None:
        config = AirtableConfig(api_key="k", base_id="b")
        assert config.timeout_seconds == 30.0
        assert config.directory_ttl_seconds == 300.0
        assert config.search_batch_size == 3
        assert config.search_batch_delay_seconds == 0.3

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AirtableConfig(api_key="k", base_id="b", unknown="boom")

    def test_batch_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            AirtableConfig(api_key="k", base_id="b", search_batch_size=0)
