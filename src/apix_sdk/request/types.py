"""
Type definitions for API-X request assembly

This module provides the server location, the logical request a caller asks
for, and the fully formed request handed to a transport.
"""

from typing import Any, Dict, Mapping, Optional, Union
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import urlsplit, parse_qsl

from ..constants import QueryItemKey, HTTPHeaderField
from ..signing.types import HttpMethod


@dataclass(frozen=True)
class ServerLocation:
    """
    Where requests are sent

    Attributes:
        scheme: URL scheme, usually ``https``
        host: Server host name or address
        port: Optional explicit port
    """
    scheme: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None

    @property
    def is_complete(self) -> bool:
        """Whether scheme and host are both set"""
        return bool(self.scheme) and bool(self.host)


@dataclass(frozen=True)
class RequestSpec:
    """
    Logical API-X operation requested by the caller

    Attributes:
        http_method: HTTP verb
        method: API method path segment (may be empty)
        entity: Optional entity path segment placed before ``method``
        query_parameters: Caller supplied query parameters
        body: Optional JSON object body
    """
    http_method: HttpMethod
    method: str
    entity: Optional[str] = None
    query_parameters: Mapping[str, str] = field(default_factory=dict)
    body: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class AssembledRequest:
    """
    Fully formed, signed API-X request

    A request is single use: the server rejects a repeated ``app_session_id``,
    so every transmission attempt, retries included, needs a newly assembled
    request.

    Attributes:
        url: Absolute URL including the query string
        http_method: HTTP verb
        headers: Read-only headers to send unmodified
        body: Canonical JSON body bytes, None when there is no body
        date_string: Date header value the token was derived from
        session_id: The ``app_session_id`` token
        salt: Base64 salt sent in the ``salt`` header, None if unsalted
    """
    url: str
    http_method: HttpMethod
    headers: Mapping[str, str]
    body: Optional[bytes]
    date_string: str
    session_id: str
    salt: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'headers', MappingProxyType(dict(self.headers)))

    @property
    def method(self) -> str:
        """HTTP verb as a plain string"""
        return self.http_method.value

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme

    @property
    def host(self) -> Optional[str]:
        return urlsplit(self.url).hostname

    @property
    def port(self) -> Optional[int]:
        return urlsplit(self.url).port

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    @property
    def query_parameters(self) -> Dict[str, str]:
        """Decoded query parameters of the final URL"""
        return dict(parse_qsl(urlsplit(self.url).query, keep_blank_values=True))

    @property
    def api_key(self) -> Optional[str]:
        return self.query_parameters.get(QueryItemKey.API_KEY)

    @property
    def date(self) -> Optional[str]:
        return self.headers.get(HTTPHeaderField.DATE)

    def to_requests_kwargs(self) -> Dict[str, Union[str, bytes, Dict[str, str], None]]:
        """
        Arguments for ``requests.Session.request``.

        Returns:
            dict: ``method``, ``url``, ``headers`` and ``data``
        """
        return {
            'method': self.method,
            'url': self.url,
            'headers': dict(self.headers),
            'data': self.body,
        }
