import contextlib
import importlib
import logging

from edge_proxy.classifier import is_streaming, wants_body_copy
from edge_proxy.cors import MutableHeaders, apply_cors_headers, cors_headers, preflight_response
from edge_proxy.headers import sanitize_headers
from edge_proxy.settings import Settings
from edge_proxy.upstream import (
    BodyTee,
    BodyTooLarge,
    UpstreamError,
    build_target_url,
    create_client,
    dispatch,
    read_body,
    relay,
    response_headers,
)

httpx = importlib.import_module("httpx")
fastapi = importlib.import_module("fastapi")
fastapi_responses = importlib.import_module("fastapi.responses")

FastAPI = fastapi.FastAPI
Request = fastapi.Request
Response = fastapi_responses.Response
JSONResponse = fastapi_responses.JSONResponse
StreamingResponse = fastapi_responses.StreamingResponse

logger = logging.getLogger(__name__)

PROXY_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def error_response(request: Request, status_code: int, message: str, error_type: str) -> Response:
    headers = cors_headers(request.headers)
    return JSONResponse(
        {"error": {"message": message, "type": error_type}},
        status_code=status_code,
        headers=dict(headers),
    )


def declared_length(request: Request) -> int | None:
    value = request.headers.get("content-length")
    if value is None or not value.strip().isdigit():
        return None
    return int(value)


def inbound_target(request: Request) -> tuple[str, str]:
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    return path, query


def declares_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


def too_large_response(request: Request, limit: int) -> Response:
    return error_response(
        request, 413, f"Request body exceeds the {limit} byte limit", "request_too_large"
    )


async def forward(request: Request) -> Response:
    settings: Settings = request.app.state.settings
    client: httpx.AsyncClient = request.app.state.client
    limit = settings.max_body_bytes

    length = declared_length(request)
    if limit is not None and length is not None and length > limit:
        return too_large_response(request, limit)

    method = request.method
    path, query = inbound_target(request)
    content_type = request.headers.get("content-type", "")
    body = None
    if declares_body(request):
        body = BodyTee(
            request.stream(), keep_copy=wants_body_copy(method, content_type), limit=limit
        )

    try:
        upstream = await dispatch(
            client,
            method=method,
            url=build_target_url(settings.upstream_base, path, query),
            headers=sanitize_headers(request.headers.items()),
            body=body,
        )
    except BodyTooLarge as e:
        logger.warning("rejected %s %s: %s", method, path, e)
        return too_large_response(request, e.limit)
    except UpstreamError as e:
        logger.warning("upstream request failed for %s %s: %s", method, path, e)
        return error_response(request, 502, f"Proxy error: {e}", "proxy_error")

    streaming = is_streaming(
        method=method,
        path=path,
        accept=request.headers.get("accept", ""),
        request_content_type=content_type,
        response_content_type=upstream.headers.get("content-type", ""),
        body=body.copy if body is not None else None,
    )

    if streaming:
        headers = MutableHeaders(raw=response_headers(upstream))
        apply_cors_headers(headers, request.headers)
        return StreamingResponse(
            relay(upstream),
            status_code=upstream.status_code,
            headers=headers,
            background=upstream.aclose,
        )

    headers = MutableHeaders(raw=response_headers(upstream, keep_length=method == "HEAD"))
    apply_cors_headers(headers, request.headers)
    try:
        content = await read_body(upstream)
    except UpstreamError as e:
        logger.warning("upstream body read failed for %s %s: %s", method, path, e)
        return error_response(request, 502, f"Proxy error: {e}", "proxy_error")
    return Response(content=content, status_code=upstream.status_code, headers=headers)


async def proxy(request: Request) -> Response:
    if request.method == "OPTIONS":
        return preflight_response(request.headers)
    return await forward(request)


def create_app(settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    client = client or create_client(settings)

    @contextlib.asynccontextmanager
    async def lifespan(app):
        yield
        await client.aclose()

    # No docs routes: every path belongs to upstream.
    app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.client = client
    app.add_api_route(
        "/{path:path}",
        proxy,
        methods=list(PROXY_METHODS),
        include_in_schema=False,
    )
    return app


app = create_app()
