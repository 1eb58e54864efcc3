"""
Configuration Management

Provides configuration classes and environment-based configuration loading.
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .constants import DEFAULT_ENCODING, DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT
from .exceptions import ConfigurationError
from .models import Server, User


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def _env_optional_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass
class ClientConfig:
    """IRC client configuration settings."""

    host: str = DEFAULT_SERVER_HOST
    port: int = DEFAULT_SERVER_PORT
    ssl: bool = False
    nick: str = "guest"
    username: str = ""
    real_name: str = ""
    channels: List[str] = field(default_factory=list)
    accept_all_certs: bool = False

    # Deadlines; None blocks without a limit
    connect_timeout: Optional[float] = None
    read_timeout: Optional[float] = None

    encoding: str = DEFAULT_ENCODING
    isolate_handler_errors: bool = True
    trace_wire: bool = True
    log_level: str = "INFO"

    def validate(self) -> None:
        """Validate configuration values."""
        errors: List[str] = []

        if not isinstance(self.host, str) or not self.host.strip():
            errors.append("host must be a non-empty string")

        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            errors.append("port must be an integer between 1 and 65535")

        if not isinstance(self.nick, str) or not self.nick.strip() or " " in self.nick:
            errors.append("nick must be a non-empty string without spaces")

        if not isinstance(self.channels, list) or not all(
            isinstance(channel, str) and channel.strip() and " " not in channel
            for channel in self.channels
        ):
            errors.append("channels must be a list of channel names without spaces")

        for name in ("connect_timeout", "read_timeout"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, (int, float)) or value <= 0):
                errors.append(f"{name} must be a positive number or None")

        try:
            "".encode(self.encoding)
        except (LookupError, TypeError):
            errors.append(f"encoding {self.encoding!r} is not a known codec")

        if str(self.log_level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append("log_level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")

        if errors:
            raise ConfigurationError(f"Client configuration validation failed: {'; '.join(errors)}")

    def to_server(self) -> Server:
        """Build the server descriptor for this configuration."""
        return Server(host=self.host, port=self.port, ssl=self.ssl)

    def to_user(self) -> User:
        """Build the identity requested at registration."""
        return User(nick=self.nick, user=self.username, real_name=self.real_name)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        try:
            channels_value = os.getenv("IRC_CHANNELS", "")
            config = cls(
                host=os.getenv("IRC_HOST", cls.host),
                port=int(os.getenv("IRC_PORT", str(cls.port))),
                ssl=_env_bool("IRC_SSL", cls.ssl),
                nick=os.getenv("IRC_NICK", cls.nick),
                username=os.getenv("IRC_USERNAME", cls.username),
                real_name=os.getenv("IRC_REAL_NAME", cls.real_name),
                channels=[c for c in channels_value.split(",") if c.strip()],
                accept_all_certs=_env_bool("IRC_ACCEPT_ALL_CERTS", cls.accept_all_certs),
                connect_timeout=_env_optional_float("IRC_CONNECT_TIMEOUT", cls.connect_timeout),
                read_timeout=_env_optional_float("IRC_READ_TIMEOUT", cls.read_timeout),
                encoding=os.getenv("IRC_ENCODING", cls.encoding),
                isolate_handler_errors=_env_bool("IRC_ISOLATE_HANDLER_ERRORS", cls.isolate_handler_errors),
                trace_wire=_env_bool("IRC_TRACE_WIRE", cls.trace_wire),
                log_level=os.getenv("IRC_LOG_LEVEL", cls.log_level),
            )
            config.validate()
            return config
        except ValueError as e:
            raise ConfigurationError(f"Failed to load client configuration from environment: {e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """Create configuration from dictionary."""
        try:
            # Filter only known fields
            field_names = {f.name for f in fields(cls)}
            filtered_data = {k: v for k, v in data.items() if k in field_names}
            config = cls(**filtered_data)
            config.validate()
            return config
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Failed to create client configuration from dictionary: {e}")


class ConfigurationLoader:
    """Configuration loader with support for multiple sources."""

    DEFAULT_CONFIG_PATHS = [
        "irc_config.json",
        ".irc_config.json",
        "irc_config.yaml",
        ".irc_config.yaml",
        "irc_config.yml",
        ".irc_config.yml",
    ]

    @staticmethod
    def find_default_path() -> Optional[str]:
        """Return the first default configuration file that exists."""
        for path in ConfigurationLoader.DEFAULT_CONFIG_PATHS:
            if os.path.exists(path):
                return path
        return None

    @staticmethod
    def load_from_file(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Load configuration from a JSON or YAML file.

        Args:
            config_path: Path to configuration file. If None, looks for default locations.

        Returns:
            Dictionary containing configuration values.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed.
        """
        if config_path is None:
            config_path = ConfigurationLoader.find_default_path()

        if config_path is None:
            return {}

        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if config_path.suffix not in (".json", ".yml", ".yaml"):
            raise ConfigurationError(f"Unsupported configuration file format: {config_path.suffix}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if config_path.suffix == ".json":
                    data = json.load(f)
                else:
                    try:
                        import yaml
                    except ImportError:
                        raise ConfigurationError(
                            "PyYAML is required for YAML configuration files. "
                            "Install with: pip install irc-client-core[yaml]"
                        )
                    data = yaml.safe_load(f) or {}
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}")
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")
        return data

    @staticmethod
    def load_client_config(
        config_path: Optional[Union[str, Path]] = None,
        use_env: bool = True
    ) -> ClientConfig:
        """
        Load client configuration from file and/or environment.

        Values from the environment override values from the file
        wherever they differ from the defaults.

        Args:
            config_path: Path to configuration file.
            use_env: Whether to load from environment variables.

        Returns:
            ClientConfig instance.
        """
        config_data: Dict[str, Any] = {}

        if config_path or ConfigurationLoader.find_default_path():
            file_config = ConfigurationLoader.load_from_file(config_path)
            config_data.update(file_config.get("client", {}))

        if config_data:
            config = ClientConfig.from_dict(config_data)
        else:
            config = ClientConfig()

        if use_env:
            env_config = ClientConfig.from_env()
            default_config = ClientConfig()
            for config_field in fields(ClientConfig):
                env_value = getattr(env_config, config_field.name)
                default_value = getattr(default_config, config_field.name)
                if env_value != default_value:
                    setattr(config, config_field.name, env_value)

        config.validate()
        return config
