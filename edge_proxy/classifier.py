from __future__ import annotations

import json
import logging

logger = logging.getLogger(__name__)

STREAM_CONTENT_TYPES = ("text/event-stream", "application/x-ndjson")


class ClassifierParseError(ValueError):
    pass


def is_json(content_type: str) -> bool:
    return "application/json" in content_type


def parse_stream_flag(body: bytes) -> bool:
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ClassifierParseError(f"request body is not JSON: {e}") from e
    return isinstance(payload, dict) and payload.get("stream") is True


def body_requests_stream(body: bytes) -> bool:
    try:
        return parse_stream_flag(body)
    except ClassifierParseError as e:
        logger.debug("stream flag check skipped: %s", e)
        return False


def is_streaming(
    *,
    method: str,
    path: str,
    accept: str,
    request_content_type: str,
    response_content_type: str,
    body: bytes | None = None,
) -> bool:
    """Decide whether the upstream response is relayed as a stream.

    ``body`` is the copy of the request body seen on its way upstream, or
    ``None`` when no copy was kept.
    """
    if any(t in response_content_type for t in STREAM_CONTENT_TYPES):
        return True
    if "text/event-stream" in accept:
        return True
    # Treat every JSON call to a messages endpoint as streaming-capable.
    if "/messages" in path and is_json(request_content_type):
        return True
    if body is not None and wants_body_copy(method, request_content_type):
        return body_requests_stream(body)
    return False


def wants_body_copy(method: str, request_content_type: str) -> bool:
    return method == "POST" and is_json(request_content_type)
