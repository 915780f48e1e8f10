"""
Fluent builder for single API-X requests
"""

from typing import Any, Dict, Mapping, Optional, Union

from ..signing import Clock, HttpMethod, RandomSource
from .builder import RequestBuilder, new_builder
from .types import AssembledRequest, RequestSpec


class FluentRequestBuilder:
    """
    Builder for one API-X request with a chainable API.

    Example::

        request = (RequestBuilder.builder(api_key, app_key)
                   .scheme("https")
                   .host("api.example.com")
                   .http_method(HttpMethod.POST)
                   .entity("/entity")
                   .method("/method")
                   .http_body({"bodyParam1": "value1"})
                   .build())

    Every ``build()`` call assembles a fresh request with its own date and
    token.
    """

    def __init__(self, api_key: str, app_key: str):
        self._api_key = api_key
        self._app_key = app_key
        self._scheme: Optional[str] = None
        self._host: Optional[str] = None
        self._port: Optional[int] = None
        self._http_method: Union[HttpMethod, str] = HttpMethod.GET
        self._entity: Optional[str] = None
        self._method: str = ""
        self._parameters: Dict[str, str] = {}
        self._http_body: Optional[Mapping[str, Any]] = None
        self._options: Dict[str, Any] = {}

    def scheme(self, scheme: Optional[str]) -> 'FluentRequestBuilder':
        self._scheme = scheme
        return self

    def host(self, host: Optional[str]) -> 'FluentRequestBuilder':
        self._host = host
        return self

    def port(self, port: Optional[int]) -> 'FluentRequestBuilder':
        self._port = port
        return self

    def http_method(self, http_method: Union[HttpMethod, str]) -> 'FluentRequestBuilder':
        self._http_method = http_method
        return self

    def entity(self, entity: Optional[str]) -> 'FluentRequestBuilder':
        self._entity = entity
        return self

    def method(self, method: str) -> 'FluentRequestBuilder':
        self._method = method
        return self

    def parameters(self, parameters: Mapping[str, str]) -> 'FluentRequestBuilder':
        """
        Replace the query parameters.

        Args:
            parameters: Query parameters to send

        Returns:
            FluentRequestBuilder: Self for method chaining
        """
        self._parameters = dict(parameters)
        return self

    def add_parameter(self, name: str, value: str) -> 'FluentRequestBuilder':
        self._parameters[name] = value
        return self

    def http_body(self, body: Optional[Mapping[str, Any]]) -> 'FluentRequestBuilder':
        self._http_body = body
        return self

    def salted(self, enabled: bool = True, salt_length: Optional[int] = None) -> 'FluentRequestBuilder':
        """
        Enable or disable the salted token variant.

        Args:
            enabled: Whether to salt the token
            salt_length: Optional salt size in bytes

        Returns:
            FluentRequestBuilder: Self for method chaining
        """
        self._options['salted'] = enabled
        if salt_length is not None:
            self._options['salt_length'] = salt_length
        return self

    def strict(self, enabled: bool = True) -> 'FluentRequestBuilder':
        self._options['strict'] = enabled
        return self

    def clock(self, clock: Clock) -> 'FluentRequestBuilder':
        self._options['clock'] = clock
        return self

    def random_source(self, random_source: RandomSource) -> 'FluentRequestBuilder':
        self._options['random_source'] = random_source
        return self

    def to_request_builder(self) -> RequestBuilder:
        """Immutable builder carrying the configuration gathered so far"""
        return new_builder(
            self._api_key,
            self._app_key,
            scheme=self._scheme,
            host=self._host,
            port=self._port,
            **self._options
        )

    def to_spec(self) -> RequestSpec:
        return RequestSpec(
            http_method=self._http_method,
            method=self._method,
            entity=self._entity,
            query_parameters=dict(self._parameters),
            body=self._http_body
        )

    def build(self) -> AssembledRequest:
        """
        Assemble the request.

        Returns:
            AssembledRequest: Signed request

        Raises:
            ConstructionError: If scheme or host is missing or malformed
        """
        return self.to_request_builder().assemble_spec(self.to_spec())


def create_request_builder(api_key: str, app_key: str) -> FluentRequestBuilder:
    """Create a fluent request builder"""
    return FluentRequestBuilder(api_key, app_key)
