"""
Configuration management for API-X Python SDK

Loads per-environment server, signing, HTTP and logging settings from a JSON
document. Credentials are never read from the document: they come from the
``APIX_API_KEY`` and ``APIX_APP_KEY`` environment variables. ``APIX_SCHEME``,
``APIX_HOST`` and ``APIX_PORT`` override the server of the selected
environment, and ``APIX_ENVIRONMENT`` selects it.
"""

import os
import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ..exceptions import ConfigError, ValidationError
from ..http_client import APIXHttpClient, HttpClientConfig
from ..request import RequestBuilder, new_builder
from ..signing import DEFAULT_SALT_LENGTH

ENV_API_KEY = "APIX_API_KEY"
ENV_APP_KEY = "APIX_APP_KEY"
ENV_ENVIRONMENT = "APIX_ENVIRONMENT"
ENV_SCHEME = "APIX_SCHEME"
ENV_HOST = "APIX_HOST"
ENV_PORT = "APIX_PORT"
ENV_CONFIG_FILE = "APIX_CONFIG_FILE"

CONFIG_FORMAT_VERSION = "1.0"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_NAME = "apix_sdk"


@dataclass
class ServerSettings:
    """Server location for one environment"""
    scheme: Optional[str] = "https"
    host: Optional[str] = None
    port: Optional[int] = None


@dataclass
class SigningSettings:
    """Session token policy"""
    salted: bool = False
    salt_length: int = DEFAULT_SALT_LENGTH
    strict: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"
    format: str = DEFAULT_LOG_FORMAT


@dataclass
class EnvironmentConfig:
    """Environment-specific configuration"""
    server: ServerSettings = field(default_factory=ServerSettings)
    signing: SigningSettings = field(default_factory=SigningSettings)
    http: HttpClientConfig = field(default_factory=HttpClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass
class DefaultConfig:
    """Default configuration values"""
    environment: str


@dataclass
class APIXConfig:
    """Configuration document structure"""
    config_format_version: str
    environments: Dict[str, EnvironmentConfig]
    defaults: DefaultConfig


def configure_logging(level: Union[str, int] = "WARNING", fmt: str = DEFAULT_LOG_FORMAT) -> logging.Logger:
    """
    Attach a stream handler to the ``apix_sdk`` logger.

    Only the SDK's own logger is touched; calling this twice does not add a
    second handler.

    Args:
        level: Level name or number
        fmt: ``logging.Formatter`` format string

    Returns:
        logging.Logger: The configured SDK logger

    Raises:
        ConfigError: If the level name is unknown
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ConfigError(f"Unknown log level '{level}'", "INVALID_LOG_LEVEL")
        level = resolved

    sdk_logger = logging.getLogger("apix_sdk")
    sdk_logger.setLevel(level)

    handler = next((h for h in sdk_logger.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        sdk_logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(fmt))

    return sdk_logger


class APIXConfigManager:
    """Configuration manager for API-X Python SDK"""

    def __init__(
        self,
        config: APIXConfig,
        environment: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None
    ):
        self.config = config
        self.env = os.environ if env is None else env
        self.current_environment = environment or self.env.get(ENV_ENVIRONMENT) or config.defaults.environment
        self._validate()

    @classmethod
    def from_json(
        cls,
        json_string: str,
        environment: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None
    ) -> 'APIXConfigManager':
        """Load configuration from JSON string"""
        try:
            data = json.loads(json_string)
            config = cls._parse_config_dict(data)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")
        except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
            raise ConfigError(f"Invalid configuration format: {e}", "INVALID_FORMAT")
        return cls(config, environment, env)

    @classmethod
    def from_file(
        cls,
        file_path: Union[str, Path],
        environment: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None
    ) -> 'APIXConfigManager':
        """Load configuration from file"""
        try:
            path = Path(file_path)
            with open(path, 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}", "FILE_ERROR")
        return cls.from_json(json_string, environment, env)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'APIXConfigManager':
        """
        Build a single-environment configuration from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``

        Returns:
            APIXConfigManager: Manager for an environment named after
                ``APIX_ENVIRONMENT`` (``default`` when unset)
        """
        env = os.environ if env is None else env
        name = env.get(ENV_ENVIRONMENT) or "default"
        config = APIXConfig(
            config_format_version=CONFIG_FORMAT_VERSION,
            environments={name: EnvironmentConfig()},
            defaults=DefaultConfig(environment=name)
        )
        return cls(config, name, env)

    @classmethod
    def load_default(
        cls,
        environment: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None
    ) -> 'APIXConfigManager':
        """Load configuration from ``APIX_CONFIG_FILE`` or a common location"""
        env = os.environ if env is None else env

        explicit = env.get(ENV_CONFIG_FILE)
        if explicit:
            return cls.from_file(explicit, environment, env)

        default_paths = [
            Path("apix-config.json"),
            Path("config/apix-config.json"),
            Path.home() / ".config" / "apix" / "config.json",
        ]

        for path in default_paths:
            if path.exists():
                return cls.from_file(path, environment, env)

        raise ConfigError("Default configuration file not found", "FILE_NOT_FOUND")

    def set_environment(self, environment: str) -> None:
        """Set current environment"""
        if environment not in self.config.environments:
            raise ConfigError(f"Environment '{environment}' not found", "ENVIRONMENT_NOT_FOUND")
        self.current_environment = environment

    def get_current_environment(self) -> str:
        """Get current environment name"""
        return self.current_environment

    def list_environments(self) -> List[str]:
        """List available environments"""
        return list(self.config.environments.keys())

    def get_current_environment_config(self) -> EnvironmentConfig:
        """Get current environment configuration with environment variable overrides applied"""
        env_config = self.config.environments.get(self.current_environment)
        if not env_config:
            raise ConfigError(f"Environment '{self.current_environment}' not found", "ENVIRONMENT_NOT_FOUND")
        return replace(env_config, server=self._server_with_overrides(env_config.server))

    def get_credentials(self) -> Dict[str, str]:
        """
        Read credentials from the environment.

        Returns:
            dict: ``api_key`` and ``app_key``

        Raises:
            ConfigError: If either variable is unset or empty
        """
        api_key = self.env.get(ENV_API_KEY)
        app_key = self.env.get(ENV_APP_KEY)
        missing = [name for name, value in ((ENV_API_KEY, api_key), (ENV_APP_KEY, app_key)) if not value]
        if missing:
            raise ConfigError(f"Missing credentials: {', '.join(missing)}", "MISSING_CREDENTIALS")
        return {'api_key': api_key, 'app_key': app_key}

    def to_request_builder(self, api_key: Optional[str] = None, app_key: Optional[str] = None) -> RequestBuilder:
        """
        Create a request builder for the current environment.

        Args:
            api_key: Explicit API key; read from the environment when omitted
            app_key: Explicit app key; read from the environment when omitted

        Returns:
            RequestBuilder: Builder configured for the current environment
        """
        if api_key is None or app_key is None:
            credentials = self.get_credentials()
            api_key = api_key if api_key is not None else credentials['api_key']
            app_key = app_key if app_key is not None else credentials['app_key']

        env_config = self.get_current_environment_config()
        server = env_config.server
        signing = env_config.signing

        return new_builder(
            api_key,
            app_key,
            scheme=server.scheme,
            host=server.host,
            port=server.port,
            salted=signing.salted,
            salt_length=signing.salt_length,
            strict=signing.strict
        )

    def to_http_client_config(self) -> HttpClientConfig:
        """Get HTTP client configuration for current environment"""
        return self.get_current_environment_config().http

    def create_http_client(self) -> APIXHttpClient:
        return APIXHttpClient(self.to_http_client_config())

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration for current environment"""
        return self.get_current_environment_config().logging

    def configure_logging(self) -> logging.Logger:
        """Apply the current environment's logging configuration"""
        logging_config = self.get_logging_config()
        return configure_logging(logging_config.level, logging_config.format)

    def _server_with_overrides(self, server: ServerSettings) -> ServerSettings:
        overrides: Dict[str, Any] = {}
        if self.env.get(ENV_SCHEME):
            overrides['scheme'] = self.env[ENV_SCHEME]
        if self.env.get(ENV_HOST):
            overrides['host'] = self.env[ENV_HOST]
        if self.env.get(ENV_PORT):
            try:
                overrides['port'] = int(self.env[ENV_PORT])
            except ValueError:
                raise ConfigError(f"Invalid {ENV_PORT}: {self.env[ENV_PORT]!r}", "INVALID_PORT")
        return replace(server, **overrides) if overrides else server

    def _validate(self) -> None:
        """Validate the configuration"""
        if self.config.defaults.environment not in self.config.environments:
            raise ConfigError(
                f"Default environment '{self.config.defaults.environment}' not found",
                "INVALID_DEFAULT_ENVIRONMENT"
            )

        if self.current_environment not in self.config.environments:
            raise ConfigError(f"Environment '{self.current_environment}' not found", "ENVIRONMENT_NOT_FOUND")

        for env_name, env_config in self.config.environments.items():
            port = env_config.server.port
            if port is not None and (isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535):
                raise ConfigError(f"Environment '{env_name}' has invalid port {port!r}", "INVALID_PORT")

            signing = env_config.signing
            salt_length = signing.salt_length
            if isinstance(salt_length, bool) or not isinstance(salt_length, int) or salt_length <= 0:
                raise ConfigError(
                    f"Environment '{env_name}' has invalid salt_length {salt_length!r}",
                    "INVALID_SIGNING_CONFIG"
                )

            for flag in ('salted', 'strict'):
                if not isinstance(getattr(signing, flag), bool):
                    raise ConfigError(
                        f"Environment '{env_name}' signing.{flag} must be true or false",
                        "INVALID_SIGNING_CONFIG"
                    )

    @staticmethod
    def _parse_config_dict(data: Dict[str, Any]) -> APIXConfig:
        """Parse configuration dictionary into structured objects"""
        environments = {}
        for env_name, env_data in data['environments'].items():
            environments[env_name] = EnvironmentConfig(
                server=ServerSettings(**env_data.get('server', {})),
                signing=SigningSettings(**env_data.get('signing', {})),
                http=HttpClientConfig(**env_data.get('http', {})),
                logging=LoggingConfig(**env_data.get('logging', {}))
            )

        return APIXConfig(
            config_format_version=data.get('config_format_version', CONFIG_FORMAT_VERSION),
            environments=environments,
            defaults=DefaultConfig(**data['defaults'])
        )


def load_config_from_json(json_string: str, environment: Optional[str] = None) -> APIXConfigManager:
    """Load configuration from JSON string"""
    return APIXConfigManager.from_json(json_string, environment)


def load_config_from_file(file_path: Union[str, Path], environment: Optional[str] = None) -> APIXConfigManager:
    """Load configuration from file"""
    return APIXConfigManager.from_file(file_path, environment)


def load_config_from_env() -> APIXConfigManager:
    """Load configuration from environment variables only"""
    return APIXConfigManager.from_env()


def load_default_config(environment: Optional[str] = None) -> APIXConfigManager:
    """Load default configuration"""
    return APIXConfigManager.load_default(environment)
