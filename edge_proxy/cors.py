from __future__ import annotations

import importlib
from collections.abc import Mapping

_starlette_datastructures = importlib.import_module("starlette.datastructures")
_starlette_responses = importlib.import_module("starlette.responses")

MutableHeaders = _starlette_datastructures.MutableHeaders
Response = _starlette_responses.Response

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS, PATCH"
MAX_AGE = "86400"
VARY_TOKENS = ("Origin", "Access-Control-Request-Headers")


def merge_vary(existing: str | None) -> str:
    parts = [p.strip() for p in existing.split(",")] if existing else []
    parts = [p for p in parts if p]
    for token in VARY_TOKENS:
        if token not in parts:
            parts.append(token)
    return ", ".join(parts)


def apply_cors_headers(headers: MutableHeaders, request_headers: Mapping[str, str]) -> None:
    """Set the permissive CORS headers on ``headers`` in place.

    ``request_headers`` must be case-insensitive (Starlette ``Headers``).
    Existing ``Vary`` lines are folded into one. Safe to call more than once
    on the same header set.
    """
    headers["Access-Control-Allow-Origin"] = request_headers.get("origin") or "*"
    headers["Access-Control-Allow-Headers"] = (
        request_headers.get("access-control-request-headers") or "*"
    )
    headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
    headers["Access-Control-Max-Age"] = MAX_AGE
    headers["Vary"] = merge_vary(", ".join(headers.getlist("vary")))


def cors_headers(request_headers: Mapping[str, str]) -> MutableHeaders:
    headers = MutableHeaders()
    apply_cors_headers(headers, request_headers)
    return headers


def preflight_response(request_headers: Mapping[str, str]) -> Response:
    # 204 carries neither content-type nor content-length.
    return Response(status_code=204, headers=dict(cors_headers(request_headers)))
