import pytest

from edge_proxy.settings import UPSTREAM_BASE, Settings, parse_byte_limit, parse_seconds


def test_defaults() -> None:
    settings = Settings.from_env({})
    assert settings.upstream_base == UPSTREAM_BASE == "https://api.anthropic.com"
    assert settings.timeout == 600.0
    assert settings.connect_timeout == 10.0
    assert settings.max_body_bytes is None


def test_from_env_overrides() -> None:
    settings = Settings.from_env(
        {"PROXY_TIMEOUT": "30", "PROXY_CONNECT_TIMEOUT": "2.5", "PROXY_MAX_BODY_BYTES": "1024"}
    )
    assert settings.timeout == 30.0
    assert settings.connect_timeout == 2.5
    assert settings.max_body_bytes == 1024


def test_upstream_is_not_configurable() -> None:
    assert Settings.from_env({"UPSTREAM_BASE": "https://evil.example"}).upstream_base == UPSTREAM_BASE


def test_zero_disables_limits() -> None:
    assert parse_seconds("PROXY_TIMEOUT", "0") is None
    assert parse_byte_limit("PROXY_MAX_BODY_BYTES", "0") is None


@pytest.mark.parametrize("value", ["abc", "-1", ""])
def test_parse_seconds_invalid(value: str) -> None:
    with pytest.raises(ValueError, match="PROXY_TIMEOUT"):
        parse_seconds("PROXY_TIMEOUT", value)


@pytest.mark.parametrize("value", ["1.5", "-10", "lots"])
def test_parse_byte_limit_invalid(value: str) -> None:
    with pytest.raises(ValueError, match="PROXY_MAX_BODY_BYTES"):
        parse_byte_limit("PROXY_MAX_BODY_BYTES", value)
