from __future__ import annotations

from pathlib import Path

import pytest

from services.imagegen.imagegen_core import ConfigError, load_config

BASE_ENV = {"CIVITAI_API_TOKEN": "env-token", "CIVITAI_MODEL": "urn:env:model"}


def test_defaults_from_environment() -> None:
    config = load_config({}, BASE_ENV)
    assert config.api_token == "env-token"
    assert config.model == "urn:env:model"
    assert config.output_dir is None
    assert config.output_format == "jpeg"
    assert config.polling_policy().interval_s == 2.0
    assert config.polling_policy().deadline_s == 300.0
    assert "localhost" in config.allowed_hosts


def test_cli_overrides_take_precedence(tmp_path: Path) -> None:
    config = load_config(
        {"CIVITAI_API_TOKEN": "cli-token", "CIVITAI_OUTPUT_DIR": str(tmp_path)},
        BASE_ENV,
    )
    assert config.api_token == "cli-token"
    assert config.output_dir == tmp_path


@pytest.mark.parametrize("missing", ["CIVITAI_API_TOKEN", "CIVITAI_MODEL"])
def test_required_keys(missing: str) -> None:
    env = {key: value for key, value in BASE_ENV.items() if key != missing}
    with pytest.raises(ConfigError) as excinfo:
        load_config({}, env)
    assert missing in excinfo.value.detail


def test_invalid_numbers_fall_back_to_defaults() -> None:
    config = load_config(
        {"CIVITAI_POLL_INTERVAL_S": "soon", "CIVITAI_POLL_TIMEOUT_S": "-3", "CIVITAI_HTTP_TIMEOUT_S": "7.5"},
        BASE_ENV,
    )
    assert config.poll_interval_s == 2.0
    assert config.poll_timeout_s == 300.0
    assert config.http_timeout_s == 7.5


def test_token_not_in_repr() -> None:
    assert "env-token" not in repr(load_config({}, BASE_ENV))


def test_allowed_hosts_parsed() -> None:
    config = load_config({"MCP_ALLOWED_HOSTS": "imagegen:9000, example.org ,"}, BASE_ENV)
    assert config.allowed_hosts == ("imagegen:9000", "example.org")
