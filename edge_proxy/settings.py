from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

UPSTREAM_BASE = "https://api.anthropic.com"


def parse_seconds(name: str, value: str) -> float | None:
    try:
        seconds = float(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from None
    if seconds < 0:
        raise ValueError(f"{name} must not be negative, got {value!r}")
    return seconds or None


def parse_byte_limit(name: str, value: str) -> int | None:
    try:
        limit = int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer byte count, got {value!r}") from None
    if limit < 0:
        raise ValueError(f"{name} must not be negative, got {value!r}")
    return limit or None


@dataclass(frozen=True)
class Settings:
    upstream_base: str = UPSTREAM_BASE
    timeout: float | None = 600.0
    connect_timeout: float | None = 10.0
    max_body_bytes: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            timeout=parse_seconds("PROXY_TIMEOUT", env.get("PROXY_TIMEOUT", "600")),
            connect_timeout=parse_seconds(
                "PROXY_CONNECT_TIMEOUT", env.get("PROXY_CONNECT_TIMEOUT", "10")
            ),
            max_body_bytes=parse_byte_limit(
                "PROXY_MAX_BODY_BYTES", env.get("PROXY_MAX_BODY_BYTES", "0")
            ),
        )
