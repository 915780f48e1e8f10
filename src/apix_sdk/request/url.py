"""
URL construction for API-X requests
"""

import re
from typing import Mapping, Optional
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from ..exceptions import ConstructionError
from .types import ServerLocation

# RFC 3986 scheme
_SCHEME_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9+.\-]*$')
_INVALID_HOST_CHARS = re.compile(r'[\s/?#@\\%]')
# pchar minus '/', which only ever separates segments
_SEGMENT_SAFE = "!$&'()*+,;=:@-._~"


def join_path(entity: Optional[str], method: str) -> str:
    """
    Join entity and method into a URL path.

    Each argument may carry its own leading or trailing slashes; the result
    is the segment-wise join with a single leading slash, so
    ``join_path("/entity", "/method") == "/entity/method"``.

    Args:
        entity: Optional entity component
        method: Method component, may be empty

    Returns:
        str: Percent-encoded absolute path, or ``""`` when there are no segments
    """
    components = [method] if entity is None else [entity, method]
    segments = [
        segment
        for component in components
        for segment in (component or "").split('/')
        if segment
    ]
    if not segments:
        return ""
    return '/' + '/'.join(quote(segment, safe=_SEGMENT_SAFE) for segment in segments)


def _netloc(location: ServerLocation) -> str:
    scheme, host, port = location.scheme, location.host, location.port

    if not scheme or not isinstance(scheme, str) or not _SCHEME_PATTERN.match(scheme):
        raise ConstructionError(
            f"Invalid or missing URL scheme: {scheme!r}",
            details={'scheme': scheme}
        )

    if not host or not isinstance(host, str):
        raise ConstructionError("Server host is not set", details={'host': host})

    if host.startswith('['):
        if not host.endswith(']') or len(host) < 3:
            raise ConstructionError(f"Invalid host: {host!r}", details={'host': host})
        netloc = host
    elif _INVALID_HOST_CHARS.search(host):
        raise ConstructionError(f"Invalid host: {host!r}", details={'host': host})
    elif ':' in host:
        netloc = f'[{host}]'
    else:
        netloc = host

    if port is not None:
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 65535:
            raise ConstructionError(f"Invalid port: {port!r}", details={'port': port})
        netloc = f'{netloc}:{port}'

    return netloc


def build_url(location: ServerLocation, path: str, query_parameters: Mapping[str, str]) -> str:
    """
    Build an absolute URL from a server location, path and query parameters.

    Args:
        location: Scheme, host and optional port
        path: Absolute path as returned by :func:`join_path`
        query_parameters: One query item per entry, in mapping order

    Returns:
        str: Absolute URL

    Raises:
        ConstructionError: If scheme or host is missing or unparseable
    """
    netloc = _netloc(location)
    query = urlencode(list(query_parameters.items()), quote_via=quote, safe='')
    url = urlunsplit((location.scheme, netloc, path, query, ''))

    try:
        parsed = urlsplit(url)
        hostname, _ = parsed.hostname, parsed.port
    except ValueError as e:
        raise ConstructionError(f"Malformed URL {url!r}: {e}", details={'url': url}) from e

    if not hostname:
        raise ConstructionError(f"Malformed URL {url!r}: no host", details={'url': url})

    return url
