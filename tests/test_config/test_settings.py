"""Tests for settings and relay configuration loading."""

import json
import logging

import pytest

from slack_relay.config import (
    DEFAULT_PUBLISH_TIMEOUT,
    RelayConfig,
    Settings,
    build_relay_config,
    load_signing_secret,
)
from slack_relay.relay.errors import ConfigurationError

ENV_VARS = [
    "LOG_LEVEL",
    "LOG_JSON",
    "CONFIG_FILE",
    "SECRET_FILE",
    "SLACK_SIGNING_SECRET",
    "REDIS_ENABLED",
    "REDIS_HOST",
    "REDIS_PORT",
    "REDIS_PASSWORD",
    "PUBLISH_TIMEOUT",
    "HOST",
    "PORT",
    "EVENT_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test from an empty relay environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps([{"slack-event-type": "message", "channel": "test-channel"}]))
    return path


class TestSettingsFromEnv:
    """Tests for Settings.from_env."""

    def test_defaults(self):
        settings = Settings.from_env()

        assert settings.LOG_LEVEL == "INFO"
        assert settings.LOG_JSON is False
        assert settings.CONFIG_FILE == "config.json"
        assert settings.SECRET_FILE == ".secret"
        assert settings.SLACK_SIGNING_SECRET is None
        assert settings.REDIS_ENABLED is True
        assert settings.REDIS_HOST == "localhost"
        assert settings.REDIS_PORT == 6379
        assert settings.REDIS_PASSWORD is None
        assert settings.PUBLISH_TIMEOUT == DEFAULT_PUBLISH_TIMEOUT
        assert settings.HOST == "0.0.0.0"
        assert settings.PORT == 8080
        assert settings.EVENT_PATH == "/slack"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("CONFIG_FILE", "/etc/relay/routes.json")
        monkeypatch.setenv("REDIS_HOST", "redis.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("REDIS_PASSWORD", "hunter2")
        monkeypatch.setenv("PUBLISH_TIMEOUT", "0.5")
        monkeypatch.setenv("EVENT_PATH", "/events")

        settings = Settings.from_env()

        assert settings.log_level == logging.DEBUG
        assert settings.CONFIG_FILE == "/etc/relay/routes.json"
        assert settings.redis_address == "redis.internal:6380"
        assert settings.REDIS_PASSWORD == "hunter2"
        assert settings.PUBLISH_TIMEOUT == 0.5
        assert settings.EVENT_PATH == "/events"

    def test_port_with_leading_colon(self, monkeypatch):
        monkeypatch.setenv("PORT", ":9090")

        assert Settings.from_env().PORT == 9090

    @pytest.mark.parametrize("name", ["PORT", "REDIS_PORT"])
    def test_invalid_integer_falls_back(self, monkeypatch, name):
        monkeypatch.setenv(name, "not-a-port")

        settings = Settings.from_env()

        assert getattr(settings, name) == getattr(Settings(), name)

    def test_invalid_float_falls_back(self, monkeypatch):
        monkeypatch.setenv("PUBLISH_TIMEOUT", "soon")

        assert Settings.from_env().PUBLISH_TIMEOUT == DEFAULT_PUBLISH_TIMEOUT

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("true", True),
            ("1", True),
            ("YES", True),
            ("on", True),
            ("false", False),
            ("0", False),
            ("off", False),
            ("maybe", True),
        ],
    )
    def test_redis_enabled(self, monkeypatch, value, expected):
        monkeypatch.setenv("REDIS_ENABLED", value)

        assert Settings.from_env().REDIS_ENABLED is expected

    def test_empty_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "")
        monkeypatch.setenv("SLACK_SIGNING_SECRET", "")
        monkeypatch.setenv("HOST", "")

        settings = Settings.from_env()

        assert settings.LOG_LEVEL == "INFO"
        assert settings.SLACK_SIGNING_SECRET is None
        assert settings.HOST == "0.0.0.0"

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARN", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("VERBOSE", logging.INFO),
        ],
    )
    def test_log_level(self, level, expected):
        assert Settings(LOG_LEVEL=level).log_level == expected


class TestRelayConfig:
    """Tests for RelayConfig."""

    def test_defaults(self):
        config = RelayConfig()

        assert len(config.route_table) == 0
        assert config.verification_enabled is False
        assert config.debug_payloads is False

    def test_verification_enabled(self):
        assert RelayConfig(signing_secret=b"secret").verification_enabled is True

    def test_debug_payloads(self):
        assert RelayConfig(log_level=logging.DEBUG).debug_payloads is True
        assert RelayConfig(log_level=logging.WARNING).debug_payloads is False

    def test_immutable(self):
        config = RelayConfig()

        with pytest.raises(AttributeError):
            config.signing_secret = b"changed"


class TestLoadSigningSecret:
    """Tests for load_signing_secret."""

    def test_reads_and_trims_file(self, tmp_path):
        secret_file = tmp_path / ".secret"
        secret_file.write_text("  abc123\n")

        secret = load_signing_secret(Settings(SECRET_FILE=str(secret_file)))

        assert secret == b"abc123"

    def test_missing_file(self, tmp_path):
        settings = Settings(SECRET_FILE=str(tmp_path / "absent"))

        assert load_signing_secret(settings) == b""

    def test_whitespace_only_file(self, tmp_path):
        secret_file = tmp_path / ".secret"
        secret_file.write_text("\n\n")

        assert load_signing_secret(Settings(SECRET_FILE=str(secret_file))) == b""

    def test_environment_wins(self, tmp_path):
        secret_file = tmp_path / ".secret"
        secret_file.write_text("from-file")
        settings = Settings(SECRET_FILE=str(secret_file), SLACK_SIGNING_SECRET="from-env\n")

        assert load_signing_secret(settings) == b"from-env"


class TestBuildRelayConfig:
    """Tests for build_relay_config."""

    def test_builds_config(self, tmp_path, config_file):
        secret_file = tmp_path / ".secret"
        secret_file.write_text("abc123\n")
        settings = Settings(
            CONFIG_FILE=str(config_file),
            SECRET_FILE=str(secret_file),
            LOG_LEVEL="DEBUG",
        )

        config = build_relay_config(settings)

        assert config.route_table.topic_for("message") == "test-channel"
        assert config.signing_secret == b"abc123"
        assert config.log_level == logging.DEBUG

    def test_missing_secret_disables_verification(self, tmp_path, config_file):
        settings = Settings(CONFIG_FILE=str(config_file), SECRET_FILE=str(tmp_path / "absent"))

        config = build_relay_config(settings)

        assert config.verification_enabled is False

    def test_missing_route_file(self, tmp_path):
        settings = Settings(CONFIG_FILE=str(tmp_path / "absent.json"))

        with pytest.raises(ConfigurationError) as exc_info:
            build_relay_config(settings)

        assert "Cannot read route configuration" in exc_info.value.message
