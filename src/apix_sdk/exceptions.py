"""
Exception classes for API-X Python SDK
"""

from typing import Optional, Dict, Any


class APIXSDKError(Exception):
    """Base exception for all API-X SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(APIXSDKError):
    """Exception raised for validation failures"""
    pass


class ConstructionError(APIXSDKError):
    """Exception raised when a request cannot be assembled (bad server location, no salt)"""

    def __init__(self, message: str, error_code: str = "CONSTRUCTION_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class EncodingError(APIXSDKError):
    """Exception raised in strict mode when the body or signing input cannot be encoded"""

    def __init__(self, message: str, error_code: str = "ENCODING_FAILED", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ServerCommunicationError(APIXSDKError):
    """Exception raised for server communication errors"""

    INVALID_DATA = "INVALID_DATA"
    INVALID_DATA_TYPE = "INVALID_DATA_TYPE"
    HTTP_ERROR = "HTTP_ERROR"
    TIMEOUT = "TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    REQUEST_FAILED = "REQUEST_FAILED"
    REQUEST_ALREADY_SENT = "REQUEST_ALREADY_SENT"

    def __init__(self, message: str, error_code: str = "SERVER_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status

    @property
    def is_retryable(self) -> bool:
        """Whether a freshly assembled request may succeed where this one failed"""
        if self.error_code in (self.TIMEOUT, self.CONNECTION_ERROR):
            return True
        return self.http_status == 429 or self.http_status >= 500


class ConfigError(APIXSDKError):
    """Configuration loading and validation error"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, code or "CONFIG_ERROR")
        self.code = code
