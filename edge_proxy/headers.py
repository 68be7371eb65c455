from __future__ import annotations

from collections.abc import Iterable

# Fixed denylist. Platform headers that are not listed here pass through.
STRIPPED_HEADERS = frozenset(
    {
        "host",
        "cf-connecting-ip",
        "cf-ipcountry",
        "cf-ray",
        "cf-visitor",
        "cf-region",
        "cf-region-code",
        "cf-metro-code",
        "cf-postal-code",
        "cf-timezone",
        "forwarded",
        "x-forwarded-for",
        "x-forwarded-proto",
        "x-forwarded-host",
        "x-real-ip",
        "true-client-ip",
    }
)


def sanitize_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Drop client-identifying and proxy-chain headers, keep everything else.

    Repeated headers stay as separate entries in their original order.
    """
    return [(k, v) for k, v in headers if k.lower() not in STRIPPED_HEADERS]
