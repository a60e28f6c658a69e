# src/kraken_spot_sdk/rest/dispatcher.py

# --- Built Ins ---
import asyncio
from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Any, Generic, Optional, TypeVar

# --- Installed ---
import aiohttp
import orjson
from loguru import logger as log
from pydantic import ConfigDict, TypeAdapter, ValidationError

# --- Local Application Imports ---
from ..auth.authorizer import HEADER_API_KEY, HEADER_API_SIGN, Authorizer
from ..auth.signer import encode_form
from ..core.context import RequestContext
from ..core.errors import (
    ConfigurationError,
    ContentTypeError,
    DecodeError,
    KrakenSdkError,
    MissingCredentialsError,
    RequestCancelledError,
    StatusError,
    TransportError,
)
from ..core.models import (
    FORM_CONTENT_TYPE,
    AppBaseModel,
    PreparedRequest,
    RequestDescriptor,
    ResponseMetadata,
)

PayloadT = TypeVar("PayloadT")

HEADER_CONTENT_TYPE = "Content-Type"
HEADER_USER_AGENT = "User-Agent"

# Headers set by the pipeline. Caller supplied values are dropped.
MANAGED_HEADERS = frozenset(
    h.lower() for h in (HEADER_CONTENT_TYPE, HEADER_USER_AGENT, HEADER_API_KEY, HEADER_API_SIGN)
)

JSON_CONTENT_TYPE = "application/json"
STREAM_CONTENT_TYPES = frozenset({"application/octet-stream", "application/zip"})


def _media_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";")[0].strip().lower()


@lru_cache(maxsize=256)
def _adapter_for(receiver: Any) -> TypeAdapter:
    return TypeAdapter(receiver)


class RawStream:
    """
    Binary response body handed to the caller still open.

    The caller owns the underlying connection and must close the stream on
    every path, preferably with `async with`.
    """

    def __init__(self, response: aiohttp.ClientResponse, content_type: str):
        self._response = response
        self.content_type = content_type
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self) -> bytes:
        """Reads the whole remaining body."""
        return await self._response.read()

    async def iter_chunks(self, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        async for chunk in self._response.content.iter_chunked(chunk_size):
            yield chunk

    def close(self):
        if not self._closed:
            self._response.release()
            self._closed = True

    async def __aenter__(self) -> "RawStream":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()


class DispatchResult(AppBaseModel, Generic[PayloadT]):
    """Outcome of a successful dispatch: the payload and the response metadata."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    payload: PayloadT
    metadata: ResponseMetadata


class RestDispatcher:
    """
    Builds, authorizes, sends and classifies requests to the REST API.

    Each call is a single round trip. Nothing is retried. The only state shared
    between calls is the (immutable) configuration and the authorizer.
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        http_session: Optional[aiohttp.ClientSession] = None,
        authorizer: Optional[Authorizer] = None,
        request_timeout_s: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.http_session = http_session
        self.authorizer = authorizer
        self.request_timeout_s = request_timeout_s

    @property
    def public_only(self) -> bool:
        return self.authorizer is None

    def build(self, descriptor: RequestDescriptor) -> PreparedRequest:
        """Builds the outgoing request. No I/O happens here."""
        url = f"{self.base_url}{descriptor.path}"
        if descriptor.query:
            url = f"{url}?{encode_form(descriptor.query)}"

        body = None
        if descriptor.body is not None:
            if _media_type(descriptor.content_type) != FORM_CONTENT_TYPE:
                raise ConfigurationError(
                    f"unsupported request Content-Type '{descriptor.content_type}': "
                    f"only {FORM_CONTENT_TYPE} bodies can be sent",
                    operation=descriptor.operation,
                )
            body = encode_form(descriptor.body).encode()

        headers = {k: v for k, v in descriptor.headers.items() if k.lower() not in MANAGED_HEADERS}
        headers[HEADER_USER_AGENT] = self.user_agent
        if descriptor.content_type:
            headers[HEADER_CONTENT_TYPE] = descriptor.content_type

        return PreparedRequest(method=descriptor.method.upper(), url=url, headers=headers, body=body)

    async def authorize(
        self,
        request: PreparedRequest,
        ctx: Optional[RequestContext] = None,
    ) -> PreparedRequest:
        if self.authorizer is not None:
            return await self.authorizer.authorize(request, ctx)
        if not request.is_public:
            raise MissingCredentialsError(request.path)
        return request

    async def send(
        self,
        descriptor: RequestDescriptor,
        receiver: Any = None,
        ctx: Optional[RequestContext] = None,
    ) -> DispatchResult:
        """
        Sends the request described by `descriptor` and classifies the response.

        JSON bodies are decoded into `receiver` (any type pydantic can validate,
        raw JSON when None). Binary bodies are returned as an open `RawStream`
        whatever the receiver.
        """
        operation = descriptor.operation
        try:
            if ctx is not None and ctx.done():
                raise RequestCancelledError(f"aborting request: {ctx.reason()}")
            request = await self.authorize(self.build(descriptor), ctx)
            log.debug(f"[API CALL] {operation} {request.method} {request.path}")
            response = await self._transmit(request, ctx)
            return await self._classify(response, receiver)
        except KrakenSdkError as e:
            if e.operation is None:
                e.operation = operation
            raise

    def _timeout_for(self, ctx: Optional[RequestContext]) -> Optional[aiohttp.ClientTimeout]:
        if ctx is not None and ctx.has_deadline:
            remaining = ctx.remaining()
            # aiohttp reads a zero total as "no timeout".
            if remaining <= 0:
                raise RequestCancelledError(f"aborting request: {ctx.reason()}")
            return aiohttp.ClientTimeout(total=remaining)
        if self.request_timeout_s is not None:
            return aiohttp.ClientTimeout(total=self.request_timeout_s)
        return None

    async def _transmit(
        self,
        request: PreparedRequest,
        ctx: Optional[RequestContext],
    ) -> aiohttp.ClientResponse:
        if self.http_session is None or self.http_session.closed:
            raise ConfigurationError("HTTP session is not active. Call connect() first.")

        kwargs: dict[str, Any] = {"headers": request.headers}
        if request.body is not None:
            kwargs["data"] = request.body
        timeout = self._timeout_for(ctx)
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            return await self.http_session.request(request.method, request.url, **kwargs)
        except asyncio.TimeoutError as e:
            if ctx is not None and ctx.deadline_exceeded():
                raise RequestCancelledError(f"aborting request: {ctx.reason()}") from e
            log.error(f"Timeout while calling {request.path}")
            raise TransportError("failed to process HTTP request: timeout") from e
        except aiohttp.ClientError as e:
            log.error(f"HTTP error while calling {request.path}: {e}")
            raise TransportError(f"failed to process HTTP request: {e}") from e

    async def _classify(self, response: aiohttp.ClientResponse, receiver: Any) -> DispatchResult:
        raw_content_type = response.headers.get(HEADER_CONTENT_TYPE, "")
        media_type = _media_type(raw_content_type)
        metadata = ResponseMetadata(
            status=response.status,
            content_type=media_type,
            headers=dict(response.headers),
        )

        # A status other than 200 means the request did not reliably reach the
        # API backend: the body is not interpreted.
        if response.status != 200:
            response.release()
            log.error(f"Kraken API replied with status {response.status} for {response.url}")
            raise StatusError(response.status, metadata=metadata)

        if media_type in STREAM_CONTENT_TYPES:
            log.debug(f"Handing an open {media_type} body over to the caller")
            return DispatchResult(payload=RawStream(response, media_type), metadata=metadata)

        if media_type != JSON_CONTENT_TYPE:
            response.release()
            log.error(f"Unsupported response Content-Type '{raw_content_type}'")
            raise ContentTypeError(raw_content_type, metadata=metadata)

        try:
            body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"failed to read response body: {e}", metadata=metadata) from e
        finally:
            response.release()

        try:
            data = orjson.loads(body)
            payload = _adapter_for(receiver).validate_python(data) if receiver is not None else data
        except (orjson.JSONDecodeError, ValidationError) as e:
            log.error(f"Failed to parse JSON response: {e}")
            raise DecodeError(f"failed to parse JSON response: {e}", metadata=metadata) from e

        return DispatchResult(payload=payload, metadata=metadata)
