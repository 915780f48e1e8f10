"""
Type definitions for API-X request signing

This module provides the data classes shared by the signer and the request
builder: HTTP methods, application credentials and the per-request signing
inputs, plus the signing error type.
"""

from datetime import datetime
from typing import Dict, Optional, Callable, Any
from dataclasses import dataclass, field
from enum import Enum


class HttpMethod(str, Enum):
    """HTTP methods accepted by API-X servers"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclass(frozen=True)
class Credentials:
    """
    Application identity for API-X requests

    Attributes:
        api_key: Public key, sent as the ``api_key`` query parameter
        app_key: Shared secret, only ever mixed into the session token
    """
    api_key: str
    app_key: str = field(repr=False)

    def __post_init__(self):
        """Validate credentials"""
        if not isinstance(self.api_key, str) or not self.api_key:
            raise ValueError("API key cannot be empty")

        if not isinstance(self.app_key, str) or not self.app_key:
            raise ValueError("App key cannot be empty")


@dataclass(frozen=True)
class SigningInputs:
    """
    Canonical inputs for one session token

    Attributes:
        date_string: RFC 1123 date sent in the Date header
        body: Canonical JSON body bytes, None when the request has no body
        salt: Random salt bytes, None for unsalted requests
    """
    date_string: str
    body: Optional[bytes] = None
    salt: Optional[bytes] = None


class SigningError(Exception):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    INVALID_APP_KEY = "INVALID_APP_KEY"
    INVALID_DATE = "INVALID_DATE"
    INVALID_INPUT = "INVALID_INPUT"
    ENCODING_FAILED = "ENCODING_FAILED"
    BODY_SERIALIZATION_FAILED = "BODY_SERIALIZATION_FAILED"
    RANDOM_SOURCE_FAILED = "RANDOM_SOURCE_FAILED"


# Type aliases for injected collaborators
Clock = Callable[[], datetime]
RandomSource = Callable[[int], bytes]
