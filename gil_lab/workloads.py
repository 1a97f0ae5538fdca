"""
The two workloads the report compares.

- CPU-bound: list the primes below n by trial division. Pure Python, so it
  holds the GIL for its whole run.
- I/O-bound: download a URL and report how many bytes came back. Almost all
  of the wall time is spent waiting on the socket, with the GIL released.

Both are plain module-level functions so ProcessPoolExecutor can pickle them.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from urllib.parse import urlparse

import httpx

from .errors import DownloadError, InvalidInputError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_BACKOFF_S = 0.3


def _check_bound(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidInputError(f"bound must be an int, got {type(n).__name__}")
    if n < 1:
        raise InvalidInputError(f"bound must be positive, got {n}")


def _check_url(url: str) -> None:
    if not isinstance(url, str) or not url.strip():
        raise InvalidInputError("url must be a non-empty string")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError(f"not an http(s) URL: {url!r}")


def primes_below(n: int) -> list[int]:
    _check_bound(n)
    primes: list[int] = []
    for candidate in range(2, n):
        root = math.isqrt(candidate)
        is_prime = True
        for p in primes:
            if p > root:
                break
            if candidate % p == 0:
                is_prime = False
                break
        if is_prime:
            primes.append(candidate)
    return primes


def count_primes_below(n: int) -> int:
    # ships an int back across the process boundary instead of the whole list
    return len(primes_below(n))


def io_wait(wait_s: float) -> float:
    """Sleep as a stand-in for a network wait when no endpoint is available."""
    if wait_s < 0:
        raise InvalidInputError(f"wait must be >= 0, got {wait_s}")
    time.sleep(wait_s)
    return wait_s


def _get_once(client: httpx.Client, url: str) -> int:
    r = client.get(url)
    r.raise_for_status()
    return len(r.content)


def _check_retry_args(retries: int, backoff_s: float) -> None:
    if retries < 0:
        raise InvalidInputError(f"retries must be >= 0, got {retries}")
    if backoff_s < 0:
        raise InvalidInputError(f"backoff must be >= 0, got {backoff_s}")


def download_size(
    url: str,
    *,
    client: httpx.Client | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    retries: int = 0,
    backoff_s: float = DEFAULT_BACKOFF_S,
) -> int:
    """GET ``url`` and return the number of body bytes.

    Without ``client`` a short-lived one is opened, which is what process
    workers need since a client cannot be shared across processes.
    Any httpx error (transport, redirects, decoding, HTTP status) is retried
    with exponential backoff; when attempts run out a DownloadError is raised
    from the last error.
    """
    _check_url(url)
    _check_retry_args(retries, backoff_s)

    if client is None:
        with httpx.Client(timeout=timeout_s, follow_redirects=True) as own:
            return download_size(url, client=own, retries=retries, backoff_s=backoff_s)

    last: Exception | None = None
    for attempt in range(retries + 1):
        try:
            return _get_once(client, url)
        except httpx.HTTPError as e:
            last = e
            if attempt < retries:
                delay = backoff_s * (2**attempt)
                log.warning("GET %s failed (%s), retry %d/%d in %.2fs", url, e, attempt + 1, retries, delay)
                time.sleep(delay)
    raise DownloadError(url, f"failed after {retries + 1} attempt(s): {last}") from last


async def async_download_size(
    client: httpx.AsyncClient,
    url: str,
    sem: asyncio.Semaphore,
    retries: int = 0,
    backoff_s: float = DEFAULT_BACKOFF_S,
) -> int:
    """Same contract as download_size; the backoff awaits instead of blocking the loop."""
    _check_url(url)
    _check_retry_args(retries, backoff_s)

    last: Exception | None = None
    for attempt in range(retries + 1):
        async with sem:
            try:
                r = await client.get(url)
                r.raise_for_status()
                return len(r.content)
            except httpx.HTTPError as e:
                last = e
        if attempt < retries:
            delay = backoff_s * (2**attempt)
            log.warning("GET %s failed (%s), retry %d/%d in %.2fs", url, last, attempt + 1, retries, delay)
            await asyncio.sleep(delay)
    raise DownloadError(url, f"failed after {retries + 1} attempt(s): {last}") from last
