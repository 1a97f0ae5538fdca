"""
Local FastAPI service (real HTTP) for the I/O-bound benchmarks.

GET /bytes?size=N&delay_ms=D  sleeps D ms, then returns N bytes.

Run:
  gil-lab serve --port 8008
or
  uvicorn gil_lab.http_service:app --host 127.0.0.1 --port 8008
"""

from __future__ import annotations

import time

from fastapi import FastAPI, Query
from fastapi.responses import Response

MAX_SIZE = 10 * 1024 * 1024
MAX_DELAY_MS = 10_000

app = FastAPI(title="gil-lab HTTP service", version="1.0")


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/bytes")
def payload(
    size: int = Query(1024, ge=0, le=MAX_SIZE),
    delay_ms: int = Query(0, ge=0, le=MAX_DELAY_MS),
) -> Response:
    # sync endpoint: FastAPI runs it in its threadpool, so the sleep blocks one worker, not the loop
    if delay_ms:
        time.sleep(delay_ms / 1000.0)
    return Response(content=b"x" * size, media_type="application/octet-stream")


def serve(host: str = "127.0.0.1", port: int = 8008) -> None:
    import uvicorn

    uvicorn.run(app, host=host, port=port, log_config=None)
