"""
HTTP client integration for API-X server communication

This module sends assembled API-X requests. The synchronous client is built
on ``requests``, the asynchronous one on ``httpx``. Neither resends a signed
request on its own: transport level retries are disabled, and ``call()``
assembles a brand new request (fresh date, salt and token) for every attempt.
"""

import json
import time
import asyncio
import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, Iterable, Optional, Union

import httpx
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import ServerCommunicationError, ValidationError
from .request import AssembledRequest, RequestBuilder
from .signing import HttpMethod
from .version import __version__

logger = logging.getLogger(__name__)

JSONObject = Dict[str, Any]
Completion = Callable[[Optional[JSONObject], Optional[Exception]], None]


@dataclass
class HttpClientConfig:
    """Configuration for API-X server communication"""
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 0
    retry_backoff_factor: float = 0.3
    max_retry_delay: float = 10.0
    user_agent: str = f"APIX-Python-SDK/{__version__}"
    replay_window: int = 1024
    max_workers: int = 4

    def __post_init__(self):
        """Validate client configuration."""
        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")

        if self.retry_backoff_factor < 0:
            raise ValidationError("Retry backoff factor must be non-negative")

        if self.max_retry_delay < 0:
            raise ValidationError("Max retry delay must be non-negative")

        if self.replay_window < 0:
            raise ValidationError("Replay window must be non-negative")

        if self.max_workers <= 0:
            raise ValidationError("Max workers must be positive")

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0 based)."""
        return min(self.retry_backoff_factor * (2 ** attempt), self.max_retry_delay)


class _SentRequests:
    """Bounded, thread-safe record of session ids already transmitted"""

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._seen: 'OrderedDict[str, None]' = OrderedDict()
        self._lock = threading.Lock()

    def claim(self, request: AssembledRequest) -> None:
        session_id = request.session_id
        if not session_id or self.max_size == 0:
            return
        with self._lock:
            if session_id in self._seen:
                raise ServerCommunicationError(
                    "Request was already sent; assemble a new request for every attempt",
                    ServerCommunicationError.REQUEST_ALREADY_SENT,
                    details={'url': request.url}
                )
            self._seen[session_id] = None
            while len(self._seen) > self.max_size:
                self._seen.popitem(last=False)


# Re-assemblies allowed in one call() when a token collides with one already sent
MAX_REASSEMBLIES = 3


def _is_collision(error: ServerCommunicationError, reassemblies: int) -> bool:
    return error.error_code == ServerCommunicationError.REQUEST_ALREADY_SENT and reassemblies < MAX_REASSEMBLIES


def _until_next_second() -> float:
    """Seconds until the wall clock, and so the Date header, changes"""
    return 1.0 - (time.time() % 1.0)


def _retry_delay(config: HttpClientConfig, builder: RequestBuilder, attempt: int) -> float:
    delay = config.backoff_delay(attempt)
    if not builder.salted:
        # Date has one second resolution; an unsalted token repeats within it
        delay = max(delay, 1.0)
    return delay


def _error_for_status(status_code: int, reason: str, content: bytes) -> ServerCommunicationError:
    try:
        error_data = json.loads(content)
        if isinstance(error_data, dict) and isinstance(error_data.get('error'), dict):
            error_info = error_data['error']
            message = error_info.get('message', f'HTTP {status_code}')
            code = error_info.get('code', 'HTTP_ERROR')
        else:
            message = f'HTTP {status_code}: {reason}'
            code = 'HTTP_ERROR'
    except (json.JSONDecodeError, UnicodeDecodeError):
        message = f'HTTP {status_code}: {reason}'
        code = 'HTTP_ERROR'

    return ServerCommunicationError(
        f"Server request failed: {message}",
        ServerCommunicationError.HTTP_ERROR,
        http_status=status_code,
        details={'status_code': status_code, 'code': code}
    )


def parse_json_object(data: Optional[bytes]) -> JSONObject:
    """
    Decode a response body that must be a JSON object.

    Args:
        data: Raw response body

    Returns:
        dict: Decoded JSON object

    Raises:
        ServerCommunicationError: ``INVALID_DATA`` for an empty body,
            ``INVALID_DATA_TYPE`` if the body is not a JSON object
    """
    if not data:
        raise ServerCommunicationError(
            "Server returned no data",
            ServerCommunicationError.INVALID_DATA
        )

    try:
        decoded = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ServerCommunicationError(
            f"Invalid JSON response: {e}",
            ServerCommunicationError.INVALID_DATA_TYPE
        )

    if not isinstance(decoded, dict):
        raise ServerCommunicationError(
            f"Expected a JSON object, got {type(decoded).__name__}",
            ServerCommunicationError.INVALID_DATA_TYPE
        )
    return decoded


class APIXHttpClient:
    """
    HTTP client for communicating with API-X servers.

    Requests must come from a :class:`RequestBuilder`. Each assembled request
    may be sent once; the client refuses to transmit a session id twice.
    """

    def __init__(
        self,
        config: Optional[HttpClientConfig] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the HTTP client.

        Args:
            config: Client configuration, defaults apply when omitted
            session: Optional existing ``requests`` session to use
        """
        self.config = config or HttpClientConfig()
        self.session = session or self._create_session()
        self._sent = _SentRequests(self.config.replay_window)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

        logger.info("Initialized API-X HTTP client")

    def _create_session(self) -> requests.Session:
        """Create HTTP session; the transport must never resend a signed request."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=Retry(total=0, connect=0, read=0, redirect=0, raise_on_status=False))
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'User-Agent': self.config.user_agent
        })

        return session

    def data(self, request: AssembledRequest) -> bytes:
        """
        Send a request and return the raw response body.

        Args:
            request: Freshly assembled request

        Returns:
            bytes: Response body

        Raises:
            ServerCommunicationError: On network errors, non-2xx responses or
                if the request was already sent
        """
        self._sent.claim(request)

        try:
            logger.debug(f"Making {request.method} request to {request.path or '/'}")
            response = self.session.request(
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
                **request.to_requests_kwargs()
            )
        except requests.exceptions.Timeout:
            raise ServerCommunicationError(
                f"Request timeout after {self.config.timeout} seconds",
                ServerCommunicationError.TIMEOUT
            )
        except requests.exceptions.ConnectionError as e:
            raise ServerCommunicationError(f"Connection error: {e}", ServerCommunicationError.CONNECTION_ERROR)
        except requests.exceptions.RequestException as e:
            raise ServerCommunicationError(f"Request failed: {e}", ServerCommunicationError.REQUEST_FAILED)

        if not response.ok:
            raise _error_for_status(response.status_code, response.reason, response.content)

        return response.content

    def json(self, request: AssembledRequest) -> JSONObject:
        """
        Send a request and decode the JSON object it returns.

        Args:
            request: Freshly assembled request

        Returns:
            dict: Response JSON object

        Raises:
            ServerCommunicationError: On transport failure, or with
                ``INVALID_DATA`` / ``INVALID_DATA_TYPE`` for unusable bodies
        """
        return parse_json_object(self.data(request))

    def execute(self, request: AssembledRequest, completion: Optional[Completion] = None) -> Future:
        """
        Send a request on a worker thread.

        ``completion`` receives ``(response, None)`` on success and
        ``(None, error)`` on a ``ServerCommunicationError``.

        Args:
            request: Freshly assembled request
            completion: Optional completion handler

        Returns:
            Future: Resolves to the response JSON object
        """
        def run() -> Optional[JSONObject]:
            try:
                result = self.json(request)
            except ServerCommunicationError as e:
                if completion is None:
                    raise
                completion(None, e)
                return None
            if completion is not None:
                completion(result, None)
            return result

        return self._get_executor().submit(run)

    def call(
        self,
        builder: RequestBuilder,
        http_method: Union[HttpMethod, str],
        method: str,
        entity: Optional[str] = None,
        query_parameters: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None
    ) -> JSONObject:
        """
        Assemble, send and decode a request, retrying with fresh requests.

        Timeouts, connection errors, 429 and 5xx responses are retried up to
        ``config.retry_attempts`` times. Every attempt is a newly assembled
        request. An unsalted request assembled in the same second as one
        already sent carries the same token; it is never transmitted, and the
        request is assembled again once the Date has moved on.

        Returns:
            dict: Response JSON object

        Raises:
            ServerCommunicationError: When the last attempt fails
            ConstructionError: If the builder cannot assemble the request
        """
        attempt = 0
        reassemblies = 0
        while True:
            request = builder.assemble(http_method, method, entity, query_parameters, body)
            try:
                return self.json(request)
            except ServerCommunicationError as e:
                if _is_collision(e, reassemblies):
                    reassemblies += 1
                    delay = _until_next_second()
                    logger.debug(f"Token for {request.path or '/'} already used, reassembling in {delay:.2f}s")
                    time.sleep(delay)
                    continue
                if not e.is_retryable or attempt >= self.config.retry_attempts:
                    raise
                delay = _retry_delay(self.config, builder, attempt)
                logger.warning(f"Request to {request.path or '/'} failed ({e}), retrying in {delay:.2f}s")
                time.sleep(delay)
                attempt += 1

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.config.max_workers,
                    thread_name_prefix="apix-client"
                )
            return self._executor

    def close(self) -> None:
        """Close the HTTP session and worker threads."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None
        self.session.close()
        logger.debug("HTTP session closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncAPIXHttpClient:
    """
    Asynchronous API-X client on top of ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        config: Optional[HttpClientConfig] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or HttpClientConfig()
        self.client = client or httpx.AsyncClient(
            verify=self.config.verify_ssl,
            timeout=self.config.timeout,
            headers={'User-Agent': self.config.user_agent}
        )
        self._sent = _SentRequests(self.config.replay_window)

    async def data(self, request: AssembledRequest) -> bytes:
        """Send a request and return the raw response body."""
        self._sent.claim(request)

        try:
            logger.debug(f"Making async {request.method} request to {request.path or '/'}")
            response = await self.client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                content=request.body
            )
        except httpx.TimeoutException:
            raise ServerCommunicationError(
                f"Request timeout after {self.config.timeout} seconds",
                ServerCommunicationError.TIMEOUT
            )
        except httpx.TransportError as e:
            raise ServerCommunicationError(f"Connection error: {e}", ServerCommunicationError.CONNECTION_ERROR)
        except httpx.HTTPError as e:
            raise ServerCommunicationError(f"Request failed: {e}", ServerCommunicationError.REQUEST_FAILED)

        if not response.is_success:
            raise _error_for_status(response.status_code, response.reason_phrase, response.content)

        return response.content

    async def json(self, request: AssembledRequest) -> JSONObject:
        """Send a request and decode the JSON object it returns."""
        return parse_json_object(await self.data(request))

    async def call(
        self,
        builder: RequestBuilder,
        http_method: Union[HttpMethod, str],
        method: str,
        entity: Optional[str] = None,
        query_parameters: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None
    ) -> JSONObject:
        """Async counterpart of :meth:`APIXHttpClient.call`."""
        attempt = 0
        reassemblies = 0
        while True:
            request = builder.assemble(http_method, method, entity, query_parameters, body)
            try:
                return await self.json(request)
            except ServerCommunicationError as e:
                if _is_collision(e, reassemblies):
                    reassemblies += 1
                    delay = _until_next_second()
                    logger.debug(f"Token for {request.path or '/'} already used, reassembling in {delay:.2f}s")
                    await asyncio.sleep(delay)
                    continue
                if not e.is_retryable or attempt >= self.config.retry_attempts:
                    raise
                delay = _retry_delay(self.config, builder, attempt)
                logger.warning(f"Request to {request.path or '/'} failed ({e}), retrying in {delay:.2f}s")
                await asyncio.sleep(delay)
                attempt += 1

    async def stream_data(self, assembled: Iterable[AssembledRequest]) -> AsyncIterator[bytes]:
        """
        Yield the raw response body of each request in order.

        Iteration stops at the first failure, which is raised to the consumer.

        Args:
            assembled: Assembled requests, each sent once

        Yields:
            bytes: Response body per request
        """
        for request in assembled:
            yield await self.data(request)

    async def stream_json(self, assembled: Iterable[AssembledRequest]) -> AsyncIterator[JSONObject]:
        """Like :meth:`stream_data`, decoding each body as a JSON object."""
        async for data in self.stream_data(assembled):
            yield parse_json_object(data)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def create_client(
    timeout: float = 30.0,
    verify_ssl: bool = True,
    retry_attempts: int = 0
) -> APIXHttpClient:
    """
    Create API-X HTTP client with default configuration.

    Args:
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify SSL certificates
        retry_attempts: Number of fresh-request retries made by ``call()``

    Returns:
        APIXHttpClient: Configured HTTP client
    """
    config = HttpClientConfig(
        timeout=timeout,
        verify_ssl=verify_ssl,
        retry_attempts=retry_attempts
    )
    return APIXHttpClient(config)
