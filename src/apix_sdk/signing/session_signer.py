"""
API-X session token signer

The session token proves possession of the app key without sending it and is
unique per request. It is the lowercase hex SHA-256 of

    base64(body) + app_key + date_string + base64(salt)

where an absent body or salt contributes an empty string. The server
recomputes the same concatenation, so the order is part of the wire contract.
"""

from typing import Any, Mapping, Optional

from .types import SigningError, SigningErrorCodes, SigningInputs
from .utils import canonicalize_body, sha256_hex, to_base64


class RequestSigner:
    """
    Derives ``app_session_id`` tokens for API-X requests.

    The signer holds no state beyond the app key and is safe to share
    between threads.
    """

    def __init__(self, app_key: str):
        """
        Initialize the signer.

        Args:
            app_key: Shared application secret

        Raises:
            SigningError: If the app key is empty
        """
        if not isinstance(app_key, str) or not app_key:
            raise SigningError(
                "App key cannot be empty",
                SigningErrorCodes.INVALID_APP_KEY
            )
        self._app_key = app_key

    def __repr__(self) -> str:
        return "RequestSigner(app_key=<redacted>)"

    def sign(
        self,
        date_string: str,
        body: Optional[bytes] = None,
        salt: Optional[bytes] = None
    ) -> str:
        """
        Compute the session token for one request.

        Args:
            date_string: Value of the request's Date header
            body: Canonical body bytes, None if the request has no body
            salt: Salt bytes sent in the ``salt`` header, None if unsalted

        Returns:
            str: 64 character lowercase hex token

        Raises:
            SigningError: If the inputs cannot be encoded as UTF-8
        """
        return sign(self._app_key, body, date_string, salt)

    def sign_inputs(self, inputs: SigningInputs) -> str:
        """Compute the session token from a ``SigningInputs`` value."""
        return self.sign(inputs.date_string, inputs.body, inputs.salt)


def build_signing_string(
    app_key: str,
    body: Optional[bytes],
    date_string: str,
    salt: Optional[bytes] = None
) -> str:
    """
    Build the string that is hashed into the session token.

    Args:
        app_key: Shared application secret
        body: Canonical body bytes or None
        date_string: RFC 1123 date string
        salt: Salt bytes or None

    Returns:
        str: Concatenated signing string
    """
    if not isinstance(date_string, str):
        raise SigningError(
            f"Date string must be str, got {type(date_string).__name__}",
            SigningErrorCodes.INVALID_DATE
        )
    for name, value in (("body", body), ("salt", salt)):
        if value is not None and not isinstance(value, (bytes, bytearray)):
            raise SigningError(
                f"{name} must be bytes or None, got {type(value).__name__}",
                SigningErrorCodes.INVALID_INPUT,
                {"field": name}
            )

    return to_base64(body) + app_key + date_string + to_base64(salt)


def sign(
    app_key: str,
    body: Optional[bytes],
    date_string: str,
    salt: Optional[bytes] = None
) -> str:
    """
    Compute an API-X session token.

    Args:
        app_key: Shared application secret
        body: Canonical body bytes or None
        date_string: RFC 1123 date string
        salt: Salt bytes or None

    Returns:
        str: 64 character lowercase hex token

    Raises:
        SigningError: If the signing string cannot be encoded as UTF-8
    """
    signing_string = build_signing_string(app_key, body, date_string, salt)

    try:
        data = signing_string.encode('utf-8')
    except UnicodeEncodeError as e:
        raise SigningError(
            f"Signing input is not UTF-8 encodable: {e.reason}",
            SigningErrorCodes.ENCODING_FAILED,
            {"position": e.start}
        ) from e

    return sha256_hex(data)


def build_app_session_id(
    app_key: str,
    date_string: str,
    body: Optional[bytes] = None,
    salt: Optional[bytes] = None
) -> str:
    """Keyword-friendly alias of :func:`sign`."""
    return sign(app_key, body, date_string, salt)


def sign_request_body(
    app_key: str,
    body: Optional[Mapping[str, Any]],
    date_string: str,
    salt: Optional[bytes] = None
) -> str:
    """
    Canonicalize a JSON object body and compute its session token.

    Args:
        app_key: Shared application secret
        body: JSON object body, None for requests without a body
        date_string: RFC 1123 date string
        salt: Salt bytes or None

    Returns:
        str: 64 character lowercase hex token

    Raises:
        SigningError: If the body is not serializable or the signing input
            cannot be encoded
    """
    body_bytes = canonicalize_body(body) if body is not None else None
    return sign(app_key, body_bytes, date_string, salt)
