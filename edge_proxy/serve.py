from __future__ import annotations

import argparse
import importlib
import logging

uvicorn = importlib.import_module("uvicorn")

LOG_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def python_log_level(name: str) -> int:
    # uvicorn's "trace" sits below DEBUG; plain loggers stop at DEBUG.
    return logging.DEBUG if name == "trace" else getattr(logging, name.upper())


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the edge proxy in front of the Claude API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--log-level", default="info", choices=LOG_LEVELS)
    args = parser.parse_args()

    logging.basicConfig(
        level=python_log_level(args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("edge_proxy.main:app", host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
