"""
API-X Python SDK - Request Signing Module

Session token derivation and the canonicalization primitives it relies on.
"""

from .types import (
    HttpMethod,
    Credentials,
    SigningInputs,
    SigningError,
    SigningErrorCodes,
    Clock,
    RandomSource,
)

from .session_signer import (
    RequestSigner,
    sign,
    build_signing_string,
    build_app_session_id,
    sign_request_body,
)

from .utils import (
    DEFAULT_SALT_LENGTH,
    utc_now,
    format_http_date,
    generate_date_string,
    validate_date_string,
    generate_salt,
    canonicalize_body,
    to_base64,
    to_hex,
    sha256_hex,
    is_session_token,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'RequestSigner',
    'sign',
    'build_signing_string',
    'build_app_session_id',
    'sign_request_body',
    # Types
    'HttpMethod',
    'Credentials',
    'SigningInputs',
    'SigningError',
    'SigningErrorCodes',
    'Clock',
    'RandomSource',
    # Utilities
    'DEFAULT_SALT_LENGTH',
    'utc_now',
    'format_http_date',
    'generate_date_string',
    'validate_date_string',
    'generate_salt',
    'canonicalize_body',
    'to_base64',
    'to_hex',
    'sha256_hex',
    'is_session_token',
]
