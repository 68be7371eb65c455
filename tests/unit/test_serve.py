import logging

import pytest

from edge_proxy import serve


@pytest.mark.parametrize(
    "name, expected",
    [
        ("critical", logging.CRITICAL),
        ("warning", logging.WARNING),
        ("info", logging.INFO),
        ("debug", logging.DEBUG),
        ("trace", logging.DEBUG),
    ],
)
def test_python_log_level(name: str, expected: int) -> None:
    assert serve.python_log_level(name) == expected


def test_main_runs_uvicorn_with_cli_options(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(serve.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr("sys.argv", ["edge-proxy", "--port", "9000", "--log-level", "debug"])

    serve.main()

    assert calls == [("edge_proxy.main:app", {"host": "0.0.0.0", "port": 9000, "log_level": "debug"})]
