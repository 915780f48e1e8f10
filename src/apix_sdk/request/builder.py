"""
API-X request builder

This module assembles complete, signed API-X requests. A ``RequestBuilder``
is an immutable value holding credentials, server location and signing
policy; configuration changes return a new builder, so one instance can be
shared freely between threads.
"""

import logging
import secrets
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Union

from ..constants import QueryItemKey, HTTPHeaderField, HTTPHeaderValue
from ..exceptions import ConstructionError, EncodingError, ValidationError
from ..signing import (
    Clock,
    Credentials,
    HttpMethod,
    RandomSource,
    RequestSigner,
    SigningError,
    DEFAULT_SALT_LENGTH,
    canonicalize_body,
    generate_date_string,
    generate_salt,
    to_base64,
    utc_now,
)
from .types import AssembledRequest, RequestSpec, ServerLocation
from .url import build_url, join_path

logger = logging.getLogger(__name__)

QueryParameters = Optional[Mapping[str, str]]
RequestBody = Optional[Mapping[str, Any]]


def _coerce_http_method(http_method: Union[HttpMethod, str]) -> HttpMethod:
    if isinstance(http_method, HttpMethod):
        return http_method
    try:
        return HttpMethod(str(http_method).upper())
    except ValueError:
        raise ValidationError(
            f"Unsupported HTTP method: {http_method}",
            "INVALID_METHOD",
            {'http_method': http_method}
        )


def _validate_query_parameters(query_parameters: QueryParameters) -> Mapping[str, str]:
    if query_parameters is None:
        return {}
    for key, value in query_parameters.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValidationError(
                f"Query parameters must map str to str, got {key!r}: {value!r}",
                "INVALID_QUERY_PARAMETER",
                {'key': repr(key)}
            )
    return query_parameters


@dataclass(frozen=True)
class RequestBuilder:
    """
    Builds signed API-X requests.

    Attributes:
        credentials: API key and app key
        location: Server scheme, host and port
        salted: Mix a fresh random salt into every token and send it in the
            ``salt`` header
        salt_length: Salt size in bytes
        strict: Raise ``EncodingError`` instead of degrading when the body
            cannot be serialized or the signing input cannot be encoded
        clock: Returns the current time; injected for deterministic tests
        random_source: Returns ``n`` random bytes
    """
    credentials: Credentials
    location: ServerLocation = field(default_factory=ServerLocation)
    salted: bool = False
    salt_length: int = DEFAULT_SALT_LENGTH
    strict: bool = False
    clock: Clock = field(default=utc_now, repr=False, compare=False)
    random_source: RandomSource = field(default=secrets.token_bytes, repr=False, compare=False)
    _signer: RequestSigner = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.salt_length <= 0:
            raise ValidationError("Salt length must be positive", "INVALID_SALT_LENGTH")
        object.__setattr__(self, '_signer', RequestSigner(self.credentials.app_key))

    @classmethod
    def builder(cls, api_key: str, app_key: str) -> 'FluentRequestBuilder':
        """
        Start a fluent, single-request builder.

        Args:
            api_key: Public API key
            app_key: Application secret

        Returns:
            FluentRequestBuilder: Chainable builder ending in ``build()``
        """
        from .fluent import FluentRequestBuilder
        return FluentRequestBuilder(api_key, app_key)

    # Configuration

    @property
    def api_key(self) -> str:
        return self.credentials.api_key

    @property
    def scheme(self) -> Optional[str]:
        return self.location.scheme

    @property
    def host(self) -> Optional[str]:
        return self.location.host

    @property
    def port(self) -> Optional[int]:
        return self.location.port

    def with_scheme(self, scheme: Optional[str]) -> 'RequestBuilder':
        """Return a copy using ``scheme``; None unsets it."""
        return replace(self, location=replace(self.location, scheme=scheme))

    def with_host(self, host: Optional[str]) -> 'RequestBuilder':
        """Return a copy using ``host``; None unsets it."""
        return replace(self, location=replace(self.location, host=host))

    def with_port(self, port: Optional[int]) -> 'RequestBuilder':
        """Return a copy using ``port``; None unsets it."""
        return replace(self, location=replace(self.location, port=port))

    def with_location(self, location: ServerLocation) -> 'RequestBuilder':
        return replace(self, location=location)

    def with_salt(self, salted: bool = True, salt_length: Optional[int] = None) -> 'RequestBuilder':
        """Return a copy with salting switched on or off."""
        return replace(
            self,
            salted=salted,
            salt_length=self.salt_length if salt_length is None else salt_length
        )

    def with_strict(self, strict: bool = True) -> 'RequestBuilder':
        return replace(self, strict=strict)

    # Assembly

    def assemble(
        self,
        http_method: Union[HttpMethod, str],
        method: str,
        entity: Optional[str] = None,
        query_parameters: QueryParameters = None,
        body: RequestBody = None
    ) -> AssembledRequest:
        """
        Assemble a signed request.

        Args:
            http_method: HTTP verb
            method: Method path component (may be empty)
            entity: Optional entity path component placed before ``method``
            query_parameters: Caller query parameters; ``api_key`` and
                ``app_session_id`` are always replaced by computed values
            body: Optional JSON object body

        Returns:
            AssembledRequest: Ready-to-send request

        Raises:
            ConstructionError: If the server location is incomplete or
                malformed, or salt cannot be generated
            EncodingError: In strict mode, if the body or signing input
                cannot be encoded
            ValidationError: On an unsupported HTTP method or non-string
                query parameters
        """
        verb = _coerce_http_method(http_method)
        if not isinstance(method, str):
            raise ValidationError("Method must be a string", "INVALID_METHOD_PATH")
        parameters = _validate_query_parameters(query_parameters)

        body_bytes = self._encode_body(body)
        date_string = generate_date_string(self.clock)

        salt_bytes = None
        if self.salted:
            try:
                salt_bytes = generate_salt(self.salt_length, self.random_source)
            except SigningError as e:
                raise ConstructionError(
                    f"Cannot build salted request: {e.message}",
                    details={'code': e.code}
                ) from e

        session_id = self._session_id(date_string, body_bytes, salt_bytes)

        final_parameters = dict(parameters)
        final_parameters.update({
            QueryItemKey.API_KEY: self.credentials.api_key,
            QueryItemKey.APP_SESSION_ID: session_id,
        })

        path = join_path(entity, method)
        url = build_url(self.location, path, final_parameters)

        headers = {
            HTTPHeaderField.DATE: date_string,
            HTTPHeaderField.CONTENT_TYPE: HTTPHeaderValue.CONTENT_TYPE_JSON,
            HTTPHeaderField.ACCEPT: HTTPHeaderValue.CONTENT_TYPE_JSON,
        }
        salt_b64 = None
        if salt_bytes is not None:
            salt_b64 = to_base64(salt_bytes)
            headers[HTTPHeaderField.SALT] = salt_b64

        logger.debug(f"Assembled {verb.value} request for {path or '/'}")

        return AssembledRequest(
            url=url,
            http_method=verb,
            headers=headers,
            body=body_bytes,
            date_string=date_string,
            session_id=session_id,
            salt=salt_b64
        )

    def assemble_spec(self, spec: RequestSpec) -> AssembledRequest:
        """Assemble a request from a ``RequestSpec``."""
        return self.assemble(
            spec.http_method,
            spec.method,
            entity=spec.entity,
            query_parameters=spec.query_parameters,
            body=spec.body
        )

    def get(self, method: str, entity: Optional[str] = None,
            query_parameters: QueryParameters = None) -> AssembledRequest:
        return self.assemble(HttpMethod.GET, method, entity, query_parameters)

    def post(self, method: str, entity: Optional[str] = None,
             query_parameters: QueryParameters = None, body: RequestBody = None) -> AssembledRequest:
        return self.assemble(HttpMethod.POST, method, entity, query_parameters, body)

    def put(self, method: str, entity: Optional[str] = None,
            query_parameters: QueryParameters = None, body: RequestBody = None) -> AssembledRequest:
        return self.assemble(HttpMethod.PUT, method, entity, query_parameters, body)

    def delete(self, method: str, entity: Optional[str] = None,
               query_parameters: QueryParameters = None, body: RequestBody = None) -> AssembledRequest:
        return self.assemble(HttpMethod.DELETE, method, entity, query_parameters, body)

    def patch(self, method: str, entity: Optional[str] = None,
              query_parameters: QueryParameters = None, body: RequestBody = None) -> AssembledRequest:
        return self.assemble(HttpMethod.PATCH, method, entity, query_parameters, body)

    def _encode_body(self, body: RequestBody) -> Optional[bytes]:
        if body is None:
            return None
        try:
            return canonicalize_body(body)
        except SigningError as e:
            if self.strict:
                raise EncodingError(f"Request body cannot be serialized: {e.message}", details=e.details) from e
            logger.warning(f"Sending request without body, serialization failed: {e.message}")
            return None

    def _session_id(self, date_string: str, body: Optional[bytes], salt: Optional[bytes]) -> str:
        try:
            return self._signer.sign(date_string, body, salt)
        except SigningError as e:
            if self.strict:
                raise EncodingError(f"Session token cannot be computed: {e.message}", details=e.details) from e
            logger.warning(f"Sending request with empty app_session_id: {e.message}")
            return ""


def new_builder(
    api_key: str,
    app_key: str,
    scheme: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    **options: Any
) -> RequestBuilder:
    """
    Create a request builder.

    Args:
        api_key: Public API key
        app_key: Application secret
        scheme: Optional URL scheme
        host: Optional server host
        port: Optional server port
        **options: ``salted``, ``salt_length``, ``strict``, ``clock``,
            ``random_source``

    Returns:
        RequestBuilder: Configured builder

    Raises:
        ValidationError: If a key is empty
    """
    try:
        credentials = Credentials(api_key=api_key, app_key=app_key)
    except ValueError as e:
        raise ValidationError(str(e), "INVALID_CREDENTIALS")

    return RequestBuilder(
        credentials=credentials,
        location=ServerLocation(scheme=scheme, host=host, port=port),
        **options
    )
