"""
API-X Python SDK - Request Assembly Module

Builds complete, signed API-X requests ready for any HTTP transport.
"""

from .types import (
    ServerLocation,
    RequestSpec,
    AssembledRequest,
)

from .url import (
    join_path,
    build_url,
)

from .builder import (
    RequestBuilder,
    new_builder,
)

from .fluent import (
    FluentRequestBuilder,
    create_request_builder,
)

__all__ = [
    'ServerLocation',
    'RequestSpec',
    'AssembledRequest',
    'join_path',
    'build_url',
    'RequestBuilder',
    'new_builder',
    'FluentRequestBuilder',
    'create_request_builder',
]
