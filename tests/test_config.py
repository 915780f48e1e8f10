"""
Tests for API-X configuration management
"""

import json
import logging

import pytest

from apix_sdk import ConfigError, ConstructionError, HttpMethod
from apix_sdk.config import (
    APIXConfigManager,
    EnvironmentConfig,
    configure_logging,
    load_config_from_json,
)
from apix_sdk.http_client import APIXHttpClient

from conftest import API_KEY, APP_KEY

SAMPLE_CONFIG = {
    "config_format_version": "1.0",
    "environments": {
        "dev": {
            "server": {"scheme": "http", "host": "localhost", "port": 9001},
            "logging": {"level": "DEBUG"}
        },
        "prod": {
            "server": {"scheme": "https", "host": "api.example.com"},
            "signing": {"salted": True, "salt_length": 64, "strict": True},
            "http": {"timeout": 10.0, "retry_attempts": 2}
        }
    },
    "defaults": {"environment": "dev"}
}

CREDENTIALS_ENV = {"APIX_API_KEY": API_KEY, "APIX_APP_KEY": APP_KEY}


def manager_for(config=None, environment=None, **env):
    return APIXConfigManager.from_json(json.dumps(config or SAMPLE_CONFIG), environment, env)


@pytest.fixture
def sdk_logger():
    """SDK logger restored to its original state after the test"""
    sdk_logger = logging.getLogger("apix_sdk")
    level, handlers = sdk_logger.level, list(sdk_logger.handlers)
    yield sdk_logger
    for handler in list(sdk_logger.handlers):
        if handler not in handlers:
            sdk_logger.removeHandler(handler)
    sdk_logger.setLevel(level)


class TestConfigLoading:
    """Test configuration parsing"""

    def test_from_json(self):
        """Test environments and defaults are parsed"""
        manager = manager_for()

        assert manager.list_environments() == ["dev", "prod"]
        assert manager.get_current_environment() == "dev"

        dev = manager.get_current_environment_config()
        assert isinstance(dev, EnvironmentConfig)
        assert dev.server.host == "localhost"
        assert dev.server.port == 9001
        assert dev.signing.salted is False
        assert dev.signing.salt_length == 256
        assert dev.http.timeout == 30.0
        assert dev.logging.level == "DEBUG"

    def test_set_environment(self):
        """Test switching environments"""
        manager = manager_for()
        manager.set_environment("prod")

        prod = manager.get_current_environment_config()
        assert prod.server.scheme == "https"
        assert prod.signing.salted is True
        assert prod.signing.strict is True
        assert manager.to_http_client_config().retry_attempts == 2

        with pytest.raises(ConfigError) as exc_info:
            manager.set_environment("staging")
        assert exc_info.value.code == "ENVIRONMENT_NOT_FOUND"

    def test_environment_selection(self):
        """Test explicit argument beats APIX_ENVIRONMENT beats defaults"""
        assert manager_for(APIX_ENVIRONMENT="prod").get_current_environment() == "prod"
        assert manager_for(environment="dev", APIX_ENVIRONMENT="prod").get_current_environment() == "dev"

        with pytest.raises(ConfigError) as exc_info:
            manager_for(APIX_ENVIRONMENT="staging")
        assert exc_info.value.code == "ENVIRONMENT_NOT_FOUND"

    def test_parse_errors(self):
        """Test malformed documents"""
        with pytest.raises(ConfigError) as exc_info:
            APIXConfigManager.from_json("{not json", env={})
        assert exc_info.value.code == "PARSE_ERROR"

        with pytest.raises(ConfigError) as exc_info:
            APIXConfigManager.from_json(json.dumps({"environments": {}}), env={})
        assert exc_info.value.code == "INVALID_FORMAT"

        bad_field = json.loads(json.dumps(SAMPLE_CONFIG))
        bad_field["environments"]["dev"]["server"]["hostname"] = "x"
        with pytest.raises(ConfigError) as exc_info:
            manager_for(bad_field)
        assert exc_info.value.code == "INVALID_FORMAT"

        bad_http = json.loads(json.dumps(SAMPLE_CONFIG))
        bad_http["environments"]["dev"]["http"] = {"timeout": -1}
        with pytest.raises(ConfigError) as exc_info:
            manager_for(bad_http)
        assert exc_info.value.code == "INVALID_FORMAT"

    def test_validation_errors(self):
        """Test semantic validation"""
        missing_default = dict(SAMPLE_CONFIG, defaults={"environment": "qa"})
        with pytest.raises(ConfigError) as exc_info:
            manager_for(missing_default)
        assert exc_info.value.code == "INVALID_DEFAULT_ENVIRONMENT"

        bad_port = json.loads(json.dumps(SAMPLE_CONFIG))
        bad_port["environments"]["dev"]["server"]["port"] = 70000
        with pytest.raises(ConfigError) as exc_info:
            manager_for(bad_port)
        assert exc_info.value.code == "INVALID_PORT"

        bad_salt = json.loads(json.dumps(SAMPLE_CONFIG))
        bad_salt["environments"]["prod"]["signing"]["salt_length"] = 0
        with pytest.raises(ConfigError) as exc_info:
            manager_for(bad_salt)
        assert exc_info.value.code == "INVALID_SIGNING_CONFIG"

    @pytest.mark.parametrize("signing", [
        {"salt_length": "big"},
        {"salt_length": 12.5},
        {"salt_length": True},
        {"salted": "yes"},
        {"strict": 1},
    ])
    def test_signing_types(self, signing):
        """Test signing settings of the wrong type are configuration errors"""
        config = json.loads(json.dumps(SAMPLE_CONFIG))
        config["environments"]["dev"]["signing"] = signing

        with pytest.raises(ConfigError) as exc_info:
            manager_for(config)
        assert exc_info.value.code == "INVALID_SIGNING_CONFIG"

    def test_from_file(self, tmp_path):
        """Test loading from disk"""
        path = tmp_path / "apix-config.json"
        path.write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")

        manager = APIXConfigManager.from_file(path, "prod", env={})
        assert manager.get_current_environment() == "prod"

        with pytest.raises(ConfigError) as exc_info:
            APIXConfigManager.from_file(tmp_path / "missing.json", env={})
        assert exc_info.value.code == "FILE_ERROR"

    def test_load_default_from_env_variable(self, tmp_path):
        """Test APIX_CONFIG_FILE is honoured first"""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")

        manager = APIXConfigManager.load_default(env={"APIX_CONFIG_FILE": str(path)})
        assert manager.list_environments() == ["dev", "prod"]

    def test_load_default_search_path(self, tmp_path, monkeypatch):
        """Test the working directory is searched"""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        with pytest.raises(ConfigError) as exc_info:
            APIXConfigManager.load_default(env={})
        assert exc_info.value.code == "FILE_NOT_FOUND"

        (tmp_path / "apix-config.json").write_text(json.dumps(SAMPLE_CONFIG), encoding="utf-8")
        assert APIXConfigManager.load_default(env={}).get_current_environment() == "dev"

    def test_from_env(self):
        """Test environment-only configuration"""
        env = dict(CREDENTIALS_ENV, APIX_HOST="api.example.com", APIX_PORT="8443")
        manager = APIXConfigManager.from_env(env)

        assert manager.list_environments() == ["default"]
        server = manager.get_current_environment_config().server
        assert (server.scheme, server.host, server.port) == ("https", "api.example.com", 8443)

        named = APIXConfigManager.from_env({"APIX_ENVIRONMENT": "ci"})
        assert named.get_current_environment() == "ci"

    def test_load_config_from_json_helper(self, monkeypatch):
        monkeypatch.delenv("APIX_ENVIRONMENT", raising=False)
        manager = load_config_from_json(json.dumps(SAMPLE_CONFIG), "prod")
        assert manager.get_current_environment() == "prod"


class TestEnvironmentOverrides:
    """Test server overrides and credentials from the environment"""

    def test_server_overrides(self):
        """Test APIX_SCHEME, APIX_HOST and APIX_PORT win over the document"""
        manager = manager_for(APIX_SCHEME="https", APIX_HOST="override.example.com", APIX_PORT="443")
        server = manager.get_current_environment_config().server

        assert server.scheme == "https"
        assert server.host == "override.example.com"
        assert server.port == 443

        # The stored document is unchanged
        assert manager.config.environments["dev"].server.host == "localhost"

    def test_invalid_port_override(self):
        manager = manager_for(APIX_PORT="eighty")
        with pytest.raises(ConfigError) as exc_info:
            manager.get_current_environment_config()
        assert exc_info.value.code == "INVALID_PORT"

    def test_credentials(self):
        """Test credentials come only from the environment"""
        assert manager_for(**CREDENTIALS_ENV).get_credentials() == {'api_key': API_KEY, 'app_key': APP_KEY}

        with pytest.raises(ConfigError) as exc_info:
            manager_for(APIX_API_KEY=API_KEY).get_credentials()
        assert exc_info.value.code == "MISSING_CREDENTIALS"
        assert "APIX_APP_KEY" in str(exc_info.value)

    def test_to_request_builder(self):
        """Test builder reflects server and signing settings"""
        manager = manager_for(environment="prod", **CREDENTIALS_ENV)
        builder = manager.to_request_builder()

        assert builder.api_key == API_KEY
        assert builder.host == "api.example.com"
        assert builder.salted and builder.strict
        assert builder.salt_length == 64

        request = builder.get("/test", entity="/apix")
        assert request.host == "api.example.com"
        assert request.salt is not None

    def test_to_request_builder_explicit_keys(self):
        """Test explicit keys do not need the environment"""
        builder = manager_for().to_request_builder("explicit-api", "explicit-app")
        assert builder.api_key == "explicit-api"

        request = builder.assemble(HttpMethod.GET, "/m")
        assert request.url.startswith("http://localhost:9001/m?api_key=explicit-api")

    def test_from_env_without_host_cannot_build_requests(self):
        """Test a builder without host fails at assembly, not before"""
        builder = APIXConfigManager.from_env(CREDENTIALS_ENV).to_request_builder()
        with pytest.raises(ConstructionError):
            builder.get("/m")

    def test_create_http_client(self):
        manager = manager_for(environment="prod")
        with manager.create_http_client() as client:
            assert isinstance(client, APIXHttpClient)
            assert client.config.timeout == 10.0


class TestLoggingConfiguration:
    """Test SDK logging setup"""

    def test_configure_logging(self, sdk_logger):
        """Test level and single handler"""
        result = configure_logging("info")
        assert result is sdk_logger
        assert sdk_logger.level == logging.INFO

        configure_logging(logging.DEBUG, "%(message)s")
        named = [h for h in sdk_logger.handlers if h.get_name() == "apix_sdk"]
        assert len(named) == 1
        assert sdk_logger.level == logging.DEBUG
        assert named[0].formatter._fmt == "%(message)s"

    def test_unknown_level(self, sdk_logger):
        with pytest.raises(ConfigError) as exc_info:
            configure_logging("chatty")
        assert exc_info.value.code == "INVALID_LOG_LEVEL"

    def test_manager_configure_logging(self, sdk_logger):
        """Test the environment's logging section is applied"""
        manager_for().configure_logging()
        assert sdk_logger.level == logging.DEBUG

    def test_sdk_messages_reach_handlers(self, sdk_logger, caplog):
        """Test library loggers propagate through the SDK logger"""
        configure_logging("DEBUG")
        manager = manager_for(environment="prod")

        with caplog.at_level(logging.DEBUG, logger="apix_sdk"):
            manager.to_request_builder("k", "a").get("/test", entity="/apix")

        assert any(r.name == "apix_sdk.request.builder" for r in caplog.records)
