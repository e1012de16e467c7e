"""
Tests for Pydantic configuration models.

Each section is loaded from a controlled environment so the values set by
the test conftest do not leak into the defaults under test.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from planning_poker.config import get_config, reset_config
from planning_poker.config.models import AppConfig, CORSConfig, LoggingConfig, ServerConfig, SessionConfig


class TestServerConfig:
    """Test ServerConfig validation."""

    def test_defaults(self):
        """Test default bind address and port."""
        with patch.dict(os.environ, {}, clear=True):
            config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.port == 3000

    def test_server_port_from_env(self):
        """Test SERVER_PORT is honoured."""
        with patch.dict(os.environ, {"SERVER_PORT": "8080"}, clear=True):
            assert ServerConfig().port == 8080

    def test_bare_port_from_env(self):
        """Test PORT (as set by hosting platforms) is honoured."""
        with patch.dict(os.environ, {"PORT": "5000"}, clear=True):
            assert ServerConfig().port == 5000

    @pytest.mark.parametrize("port", ["0", "65536", "-1"])
    def test_invalid_port_rejected(self, port):
        """Test ports outside 1..65535 fail validation."""
        with patch.dict(os.environ, {"SERVER_PORT": port}, clear=True):
            with pytest.raises(ValidationError, match="Port must be between 1 and 65535"):
                ServerConfig()


class TestCORSConfig:
    """Test CORSConfig parsing."""

    def test_defaults_allow_any_origin(self):
        """Test the default allows every origin."""
        with patch.dict(os.environ, {}, clear=True):
            config = CORSConfig()

        assert config.allow_origins == ["*"]
        assert config.socketio_origins == "*"
        assert config.allow_methods == ["GET", "POST"]

    def test_csv_origins(self):
        """Test a comma-separated origin list."""
        with patch.dict(
            os.environ, {"CORS_ALLOW_ORIGINS": "http://localhost:5173, https://poker.example.com"}, clear=True
        ):
            config = CORSConfig()

        assert config.allow_origins == ["http://localhost:5173", "https://poker.example.com"]
        assert config.socketio_origins == ["http://localhost:5173", "https://poker.example.com"]

    def test_json_origins(self):
        """Test a JSON array origin list."""
        with patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": '["https://a.example", "https://b.example"]'}, clear=True):
            assert CORSConfig().allow_origins == ["https://a.example", "https://b.example"]

    def test_frontend_url_alias(self):
        """Test FRONTEND_URL is accepted as the single allowed origin."""
        with patch.dict(os.environ, {"FRONTEND_URL": "https://poker.example.com"}, clear=True):
            assert CORSConfig().allow_origins == ["https://poker.example.com"]

    def test_empty_origins_rejected(self):
        """Test an empty origin list fails validation."""
        with patch.dict(os.environ, {"CORS_ALLOW_ORIGINS": " "}, clear=True):
            with pytest.raises(ValidationError, match="At least one allowed origin is required"):
                CORSConfig()

    def test_methods_upper_cased(self):
        """Test methods are normalized to upper case."""
        assert CORSConfig(allow_origins=["*"], allow_methods="get,post,options").allow_methods == [
            "GET",
            "POST",
            "OPTIONS",
        ]


class TestLoggingConfig:
    """Test LoggingConfig validation."""

    def test_defaults(self):
        """Test default logging configuration."""
        with patch.dict(os.environ, {}, clear=True):
            config = LoggingConfig()

        assert config.environment == "local"
        assert config.level == "INFO"
        assert config.format == "human"
        assert config.disable_logging is False

    def test_level_upper_cased(self):
        """Test log levels are case-insensitive."""
        with patch.dict(os.environ, {"LOGGING_LEVEL": "debug"}, clear=True):
            assert LoggingConfig().level == "DEBUG"

    @pytest.mark.parametrize(
        ("env_var", "value"),
        [("LOGGING_ENVIRONMENT", "staging"), ("LOGGING_LEVEL", "LOUD"), ("LOGGING_FORMAT", "xml")],
    )
    def test_invalid_values_rejected(self, env_var, value):
        """Test unknown environments, levels and formats fail validation."""
        with patch.dict(os.environ, {env_var: value}, clear=True):
            with pytest.raises(ValidationError):
                LoggingConfig()

    def test_to_legacy_dict(self):
        """Test the dict handed to setup_enhanced_logging."""
        with patch.dict(os.environ, {"LOGGING_FORMAT": "json"}, clear=True):
            legacy = LoggingConfig().to_legacy_dict()

        assert legacy == {"environment": "local", "level": "INFO", "format": "json", "disable_logging": False}


class TestSessionConfig:
    """Test SessionConfig validation."""

    def test_defaults(self):
        """Test the thirty second grace period and fibonacci scale."""
        with patch.dict(os.environ, {}, clear=True):
            config = SessionConfig()

        assert config.admin_grace_period_seconds == 30.0
        assert config.default_sizing_technique == "fibonacci"

    def test_from_env(self):
        """Test session settings come from SESSION_ variables."""
        env = {"SESSION_ADMIN_GRACE_PERIOD_SECONDS": "2.5", "SESSION_DEFAULT_SIZING_TECHNIQUE": " t-shirt "}
        with patch.dict(os.environ, env, clear=True):
            config = SessionConfig()

        assert config.admin_grace_period_seconds == 2.5
        assert config.default_sizing_technique == "t-shirt"

    @pytest.mark.parametrize("value", ["0", "-5"])
    def test_non_positive_grace_period_rejected(self, value):
        """Test the grace period must be positive."""
        with patch.dict(os.environ, {"SESSION_ADMIN_GRACE_PERIOD_SECONDS": value}, clear=True):
            with pytest.raises(ValidationError, match="Admin grace period must be positive"):
                SessionConfig()

    def test_blank_sizing_technique_rejected(self):
        """Test an empty default technique fails validation."""
        with patch.dict(os.environ, {"SESSION_DEFAULT_SIZING_TECHNIQUE": "  "}, clear=True):
            with pytest.raises(ValidationError):
                SessionConfig()


class TestAppConfig:
    """Test the composite configuration and its accessors."""

    def test_sections_loaded_from_env(self):
        """Test every section reads its own prefix."""
        env = {
            "SERVER_PORT": "4000",
            "CORS_ALLOW_ORIGINS": "https://poker.example.com",
            "LOGGING_LEVEL": "WARNING",
            "SESSION_ADMIN_GRACE_PERIOD_SECONDS": "10",
        }
        with patch.dict(os.environ, env, clear=True):
            config = AppConfig()

        assert config.server.port == 4000
        assert config.cors.allow_origins == ["https://poker.example.com"]
        assert config.logging.level == "WARNING"
        assert config.session.admin_grace_period_seconds == 10.0

    def test_sections_loaded_from_dotenv_file(self, tmp_path, monkeypatch):
        """Test every section reads the .env file in the working directory."""
        (tmp_path / ".env").write_text(
            "SERVER_PORT=4555\n"
            "CORS_ALLOW_ORIGINS=https://poker.example.com\n"
            "LOGGING_LEVEL=ERROR\n"
            "SESSION_ADMIN_GRACE_PERIOD_SECONDS=7\n",
            encoding="utf-8",
        )
        monkeypatch.chdir(tmp_path)

        with patch.dict(os.environ, {}, clear=True):
            config = AppConfig()

        assert config.server.port == 4555
        assert config.cors.allow_origins == ["https://poker.example.com"]
        assert config.logging.level == "ERROR"
        assert config.session.admin_grace_period_seconds == 7.0

    def test_environment_overrides_dotenv_file(self, tmp_path, monkeypatch):
        """Test a real environment variable wins over the .env file."""
        (tmp_path / ".env").write_text("SERVER_PORT=4555\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        with patch.dict(os.environ, {"SERVER_PORT": "4666"}, clear=True):
            assert AppConfig().server.port == 4666

    def test_to_legacy_dict_shape(self):
        """Test the flattened dict carries every section."""
        with patch.dict(os.environ, {}, clear=True):
            legacy = AppConfig().to_legacy_dict()

        assert legacy["port"] == 3000
        assert legacy["logging"]["level"] == "INFO"
        assert legacy["cors"]["allow_origins"] == ["*"]
        assert legacy["session"]["admin_grace_period_seconds"] == 30.0

    def test_get_config_is_fresh_in_tests(self):
        """Test get_config() reloads under pytest so env patches apply."""
        with patch.dict(os.environ, {"SERVER_PORT": "4100"}):
            assert get_config().server.port == 4100
        with patch.dict(os.environ, {"SERVER_PORT": "4200"}):
            assert get_config().server.port == 4200

    def test_get_config_cached_outside_tests(self):
        """Test production mode returns one cached instance."""
        reset_config()
        with patch("planning_poker.config._is_test_mode", return_value=False):
            first = get_config()
            second = get_config()
        reset_config()

        assert first is second
