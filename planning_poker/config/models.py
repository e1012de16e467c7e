"""
Pydantic-based configuration models for the planning poker server.

Every section is a BaseSettings model with its own environment prefix;
AppConfig aggregates them and also reads an optional .env file.
"""

import json
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a string from the environment as JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, list | tuple):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class ServerConfig(BaseSettings):
    """Server network configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("server_port", "port"),
        description="Server port (SERVER_PORT, or PORT as set by most hosting platforms)",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            logger.error("Invalid server port", port=v, valid_range="1-65535")
            raise ValueError("Port must be between 1 and 65535")
        return v

    model_config = {
        "env_prefix": "SERVER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


class CORSConfig(BaseSettings):
    """Cross-origin configuration shared by the Socket.IO handshake and the HTTP API."""

    allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("allow_origins", "cors_allow_origins", "cors_origins", "frontend_url"),
        description="Origins permitted to open a Socket.IO connection or call the HTTP API",
    )
    allow_methods: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["GET", "POST"],
        validation_alias=AliasChoices("allow_methods", "cors_allow_methods", "cors_methods"),
        description="HTTP methods permitted by CORS responses",
    )

    @field_validator("allow_origins", mode="before")
    @classmethod
    def parse_allow_origins(cls, value: object) -> list[str]:
        """Accept a JSON list, a CSV string, or a single origin."""
        origins = _parse_env_list(value)
        if not origins:
            raise ValueError("At least one allowed origin is required")
        return origins

    @field_validator("allow_methods", mode="before")
    @classmethod
    def parse_allow_methods(cls, value: object) -> list[str]:
        """Normalize methods to upper case."""
        return [method.upper() for method in _parse_env_list(value)]

    model_config = {
        "env_prefix": "CORS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def socketio_origins(self) -> str | list[str]:
        """Value for python-socketio's ``cors_allowed_origins``."""
        if "*" in self.allow_origins:
            return "*"
        return list(self.allow_origins)


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="local", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="human", description="Log format")
    disable_logging: bool = Field(default=False, description="Disable all logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "e2e_test", "production"]
        if v not in valid_environments:
            logger.error("Invalid logging environment", environment=v, valid_environments=valid_environments)
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["json", "human", "colored"]
        if v not in valid_formats:
            raise ValueError(f"Log format must be one of {valid_formats}, got '{v}'")
        return v

    model_config = {
        "env_prefix": "LOGGING_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def to_legacy_dict(self) -> dict:
        """Convert to the dict shape expected by setup_enhanced_logging."""
        return {
            "environment": self.environment,
            "level": self.level,
            "format": self.format,
            "disable_logging": self.disable_logging,
        }


class SessionConfig(BaseSettings):
    """Estimation session behaviour."""

    admin_grace_period_seconds: float = Field(
        default=30.0,
        description="How long a session survives after its admin disconnects",
    )
    default_sizing_technique: str = Field(
        default="fibonacci",
        description="Sizing technique assigned to newly created sessions",
    )

    @field_validator("admin_grace_period_seconds")
    @classmethod
    def validate_grace_period(cls, v: float) -> float:
        """Validate grace period is positive."""
        if v <= 0:
            raise ValueError("Admin grace period must be positive")
        return v

    @field_validator("default_sizing_technique")
    @classmethod
    def validate_sizing_technique(cls, v: str) -> str:
        """Validate the default technique is a non-empty identifier."""
        if not v.strip():
            raise ValueError("Default sizing technique cannot be empty")
        return v.strip()

    model_config = {
        "env_prefix": "SESSION_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    Access via the get_config() function.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    cors: CORSConfig = Field(default_factory=CORSConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Convert to a plain dict for logging setup and diagnostics."""
        return {
            "host": self.server.host,
            "port": self.server.port,
            "logging": self.logging.to_legacy_dict(),
            "cors": {
                "allow_origins": self.cors.allow_origins,
                "allow_methods": self.cors.allow_methods,
            },
            "session": {
                "admin_grace_period_seconds": self.session.admin_grace_period_seconds,
                "default_sizing_technique": self.session.default_sizing_technique,
            },
        }
