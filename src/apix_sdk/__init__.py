"""
API-X Python SDK
Request construction and session token signing for API-X servers
"""

from .version import __version__
from .constants import (
    URLScheme,
    QueryItemKey,
    HTTPHeaderField,
    HTTPHeaderValue,
)
from .exceptions import (
    APIXSDKError,
    ValidationError,
    ConstructionError,
    EncodingError,
    ServerCommunicationError,
    ConfigError,
)
from .signing import (
    RequestSigner,
    sign,
    build_app_session_id,
    HttpMethod,
    Credentials,
    SigningInputs,
    SigningError,
    SigningErrorCodes,
    format_http_date,
    generate_date_string,
    generate_salt,
    canonicalize_body,
    sha256_hex,
)
from .request import (
    ServerLocation,
    RequestSpec,
    AssembledRequest,
    RequestBuilder,
    FluentRequestBuilder,
    new_builder,
    create_request_builder,
)
from .http_client import (
    APIXHttpClient,
    AsyncAPIXHttpClient,
    HttpClientConfig,
    create_client,
)
from .config import (
    APIXConfigManager,
    configure_logging,
    load_config_from_file,
    load_config_from_env,
)

__all__ = [
    '__version__',
    # Wire constants
    'URLScheme',
    'QueryItemKey',
    'HTTPHeaderField',
    'HTTPHeaderValue',
    # Exceptions
    'APIXSDKError',
    'ValidationError',
    'ConstructionError',
    'EncodingError',
    'ServerCommunicationError',
    'ConfigError',
    # Signing
    'RequestSigner',
    'sign',
    'build_app_session_id',
    'HttpMethod',
    'Credentials',
    'SigningInputs',
    'SigningError',
    'SigningErrorCodes',
    'format_http_date',
    'generate_date_string',
    'generate_salt',
    'canonicalize_body',
    'sha256_hex',
    # Request assembly
    'ServerLocation',
    'RequestSpec',
    'AssembledRequest',
    'RequestBuilder',
    'FluentRequestBuilder',
    'new_builder',
    'create_request_builder',
    # HTTP client
    'APIXHttpClient',
    'AsyncAPIXHttpClient',
    'HttpClientConfig',
    'create_client',
    # Configuration
    'APIXConfigManager',
    'configure_logging',
    'load_config_from_file',
    'load_config_from_env',
]
