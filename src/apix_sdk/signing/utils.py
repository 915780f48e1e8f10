"""
Utility functions for API-X request signing

This module provides the primitives the signer and builder are composed of:
clock and salt generation, RFC 1123 date formatting, key-sorted JSON
canonicalization, base64 and SHA-256 hex helpers.
"""

import re
import json
import base64
import hashlib
import secrets
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any, Mapping, Optional

from .types import SigningError, SigningErrorCodes

DEFAULT_SALT_LENGTH = 256

_HTTP_DATE_PATTERN = re.compile(
    r'^(Mon|Tue|Wed|Thu|Fri|Sat|Sun), \d{2} '
    r'(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec) \d{4} '
    r'\d{2}:\d{2}:\d{2} GMT$'
)


def utc_now() -> datetime:
    """
    Current time as an aware UTC datetime.

    Returns:
        datetime: Current time in UTC
    """
    return datetime.now(timezone.utc)


def format_http_date(moment: datetime) -> str:
    """
    Format a datetime as an RFC 1123 date in GMT.

    Naive datetimes are taken to be UTC. Day and month names are English
    regardless of the process locale.

    Args:
        moment: Point in time to format

    Returns:
        str: Date such as ``Sat, 12 Feb 2022 07:52:00 GMT``
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def generate_date_string(clock=None) -> str:
    """
    Generate the Date header value for a new request.

    Args:
        clock: Optional callable returning the current datetime

    Returns:
        str: RFC 1123 GMT date string
    """
    return format_http_date((clock or utc_now)())


def validate_date_string(date_string: str) -> bool:
    """
    Validate that a string is an RFC 1123 GMT date.

    Args:
        date_string: Date string to validate

    Returns:
        bool: True if the string has the expected shape and parses
    """
    if not isinstance(date_string, str) or not _HTTP_DATE_PATTERN.match(date_string):
        return False

    try:
        parsedate_to_datetime(date_string)
    except (TypeError, ValueError):
        return False
    return True


def generate_salt(length: int = DEFAULT_SALT_LENGTH, random_source=None) -> bytes:
    """
    Generate random salt bytes for a salted request.

    Args:
        length: Number of bytes to generate
        random_source: Optional callable ``(n) -> bytes``; defaults to
            ``secrets.token_bytes``

    Returns:
        bytes: Salt of exactly ``length`` bytes

    Raises:
        SigningError: If the random source fails or returns the wrong size
    """
    if length <= 0:
        raise SigningError(
            f"Salt length must be positive, got {length}",
            SigningErrorCodes.INVALID_INPUT,
            {"length": length}
        )

    source = random_source or secrets.token_bytes
    try:
        salt = source(length)
    except Exception as e:
        raise SigningError(
            f"Failed to generate salt: {e}",
            SigningErrorCodes.RANDOM_SOURCE_FAILED,
            {"original_error": str(e)}
        ) from e

    if not isinstance(salt, (bytes, bytearray)) or len(salt) != length:
        raise SigningError(
            "Random source returned an invalid salt",
            SigningErrorCodes.RANDOM_SOURCE_FAILED,
            {"length": length}
        )
    return bytes(salt)


def canonicalize_body(body: Mapping[str, Any]) -> bytes:
    """
    Serialize a request body to canonical JSON bytes.

    Keys are sorted at every level and separators are compact, so the
    signer and any verifier hash identical bytes.

    Args:
        body: JSON object to serialize

    Returns:
        bytes: UTF-8 encoded canonical JSON

    Raises:
        SigningError: If the body is not a JSON-encodable object
    """
    if not isinstance(body, Mapping):
        raise SigningError(
            f"Request body must be a mapping, got {type(body).__name__}",
            SigningErrorCodes.BODY_SERIALIZATION_FAILED,
            {"body_type": type(body).__name__}
        )

    try:
        text = json.dumps(
            dict(body),
            sort_keys=True,
            separators=(',', ':'),
            ensure_ascii=False,
            allow_nan=False,
        )
        return text.encode('utf-8')
    except (TypeError, ValueError) as e:
        raise SigningError(
            f"Request body is not JSON serializable: {e}",
            SigningErrorCodes.BODY_SERIALIZATION_FAILED,
            {"original_error": str(e)}
        ) from e


def to_base64(data: Optional[bytes]) -> str:
    """
    Standard base64 encoding, empty string for None.

    Args:
        data: Bytes to encode

    Returns:
        str: Base64 text with padding
    """
    if data is None:
        return ""
    return base64.b64encode(data).decode('ascii')


def to_hex(data: bytes) -> str:
    """
    Convert bytes to lowercase hex string.

    Args:
        data: Bytes to convert

    Returns:
        str: Lowercase hex string, two characters per byte
    """
    return data.hex().lower()


def sha256_hex(data: bytes) -> str:
    """
    SHA-256 digest as lowercase hex.

    Args:
        data: Bytes to hash

    Returns:
        str: 64 character hex digest
    """
    return to_hex(hashlib.sha256(data).digest())


def is_session_token(value: str) -> bool:
    """Check that a value looks like a session token (64 lowercase hex chars)"""
    return isinstance(value, str) and re.fullmatch(r'[0-9a-f]{64}', value) is not None
