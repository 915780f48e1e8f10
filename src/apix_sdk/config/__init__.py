"""
Configuration management for API-X Python SDK

This module loads per-environment settings and turns them into request
builders, HTTP clients and logging setup.
"""

from .client_config import (
    APIXConfig,
    APIXConfigManager,
    EnvironmentConfig,
    ServerSettings,
    SigningSettings,
    LoggingConfig,
    DefaultConfig,
    configure_logging,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
    load_default_config,
)

__all__ = [
    'APIXConfig',
    'APIXConfigManager',
    'EnvironmentConfig',
    'ServerSettings',
    'SigningSettings',
    'LoggingConfig',
    'DefaultConfig',
    'configure_logging',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
    'load_default_config',
]
