from __future__ import annotations

import importlib
import logging
from collections.abc import AsyncIterable, AsyncIterator

from edge_proxy.settings import Settings

httpx = importlib.import_module("httpx")

logger = logging.getLogger(__name__)

# Framing headers the HTTP client sets itself.
CLIENT_OWNED_HEADERS = frozenset({"connection", "keep-alive", "transfer-encoding"})
# Not copied onto the outbound response; the ASGI server frames the body.
RESPONSE_SKIP_HEADERS = frozenset({"connection", "keep-alive", "transfer-encoding", "content-length"})

BODYLESS_METHODS = frozenset({"GET", "HEAD"})


class UpstreamError(Exception):
    pass


class BodyTooLarge(Exception):
    def __init__(self, limit: int) -> None:
        super().__init__(f"Request body exceeds the {limit} byte limit")
        self.limit = limit


class BodyTee:
    """Async byte iterator that forwards a stream and optionally keeps a copy.

    The copy only ever holds chunks already handed to the consumer. With a
    ``limit`` set, ``BodyTooLarge`` is raised before the first chunk that
    would cross it is forwarded or copied.
    """

    def __init__(
        self, source: AsyncIterable[bytes], *, keep_copy: bool, limit: int | None = None
    ) -> None:
        self._source = source
        self._copy = bytearray() if keep_copy else None
        self._limit = limit
        self._seen = 0

    @property
    def copy(self) -> bytes | None:
        return None if self._copy is None else bytes(self._copy)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._source:
            if not chunk:
                continue
            self._seen += len(chunk)
            if self._limit is not None and self._seen > self._limit:
                raise BodyTooLarge(self._limit)
            if self._copy is not None:
                self._copy.extend(chunk)
            yield chunk


def create_client(settings: Settings) -> httpx.AsyncClient:
    timeout = httpx.Timeout(settings.timeout, connect=settings.connect_timeout)
    return httpx.AsyncClient(timeout=timeout, follow_redirects=True)


def build_target_url(base: str, raw_path: str, query: str) -> str:
    url = base.rstrip("/") + raw_path
    if query:
        url = f"{url}?{query}"
    return url


async def dispatch(
    client: httpx.AsyncClient,
    *,
    method: str,
    url: str,
    headers: list[tuple[str, str]],
    body: AsyncIterable[bytes] | None,
) -> httpx.Response:
    """Send one request upstream and return the response with its body unread.

    ``body`` is ``None`` when the inbound request declared no body. Headers the
    client would add on its own (``User-Agent``, ``Accept-Encoding``, ...) are
    only sent when the inbound request carried them.
    """
    headers = [(k, v) for k, v in headers if k.lower() not in CLIENT_OWNED_HEADERS]
    content = None if method.upper() in BODYLESS_METHODS else body

    logger.debug("dispatch %s -> %s", method, url)
    request = client.build_request(method=method, url=url, headers=headers, content=content)
    inbound = {k.lower() for k, _ in headers}
    for name in client.headers.keys():
        if name not in inbound and name != "host" and name in request.headers:
            del request.headers[name]
    try:
        return await client.send(request, stream=True)
    except (httpx.HTTPError, httpx.StreamError) as exc:
        raise UpstreamError(str(exc) or type(exc).__name__) from exc


async def read_body(response: httpx.Response) -> bytes:
    # Raw bytes, so Content-Encoding stays valid for the client.
    try:
        return b"".join([chunk async for chunk in response.aiter_raw()])
    except (httpx.HTTPError, httpx.StreamError) as exc:
        raise UpstreamError(str(exc) or type(exc).__name__) from exc
    finally:
        await response.aclose()


async def relay(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_raw():
            yield chunk
    finally:
        await response.aclose()


def response_headers(response: httpx.Response, *, keep_length: bool = False) -> list[tuple[bytes, bytes]]:
    """Upstream headers as raw pairs, repeats (``set-cookie``) preserved."""
    skip = RESPONSE_SKIP_HEADERS - {"content-length"} if keep_length else RESPONSE_SKIP_HEADERS
    return [
        (k.lower(), v) for k, v in response.headers.raw if k.decode("latin-1").lower() not in skip
    ]
