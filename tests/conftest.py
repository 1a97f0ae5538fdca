from __future__ import annotations

import httpx
import pytest


def _handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/missing":
        return httpx.Response(404)
    size = int(request.url.params.get("size", "16"))
    return httpx.Response(200, content=b"x" * size)


@pytest.fixture
def mock_transport() -> httpx.MockTransport:
    return httpx.MockTransport(_handler)


@pytest.fixture
def mock_client(mock_transport: httpx.MockTransport):
    with httpx.Client(transport=mock_transport) as client:
        yield client


@pytest.fixture(autouse=True)
def _clean_lab_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "GIL_LAB_HTTP_BASE",
        "GIL_LAB_HTTP_TIMEOUT",
        "GIL_LAB_RETRIES",
        "GIL_LAB_BACKOFF",
        "GIL_LAB_PRIME_BOUND",
        "GIL_LAB_TASKS",
        "GIL_LAB_WORKERS",
        "GIL_LAB_START_METHOD",
    ):
        monkeypatch.delenv(name, raising=False)
