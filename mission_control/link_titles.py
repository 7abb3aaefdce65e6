"""
Remote page title lookup for captured links.

The fetch runs on a small worker pool so a slow site only ever holds up the
request that asked for it, and the caller waits at most ``timeout`` seconds
in total. Any failure (network error, timeout, non-HTML body, no <title>)
yields None. Nothing here raises.
"""
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Optional

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 5.0
MAX_BYTES = 50_000
USER_AGENT = "MissionControl/1.0 (+link preview)"

_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="link-title")


def extract_title(markup: str) -> Optional[str]:
    """First <title> text, unescaped and whitespace-collapsed."""
    soup = BeautifulSoup(markup or "", "html.parser")
    if soup.title is None:
        return None
    title = re.sub(r"\s+", " ", soup.title.get_text()).strip()
    return title or None


def _read_head(url: str, timeout: float, max_bytes: int) -> str:
    """GET ``url`` and return at most ``max_bytes`` of its body as text.

    Reading stops once ``timeout`` seconds have passed in total, so a site
    that trickles bytes cannot hold a pool thread indefinitely.
    """
    deadline = time.monotonic() + timeout
    with requests.get(
        url,
        stream=True,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        allow_redirects=True,
    ) as r:
        r.raise_for_status()
        chunks = []
        received = 0
        for chunk in r.iter_content(chunk_size=8192):
            if not chunk:
                continue
            chunks.append(chunk)
            received += len(chunk)
            if received >= max_bytes:
                break
            if time.monotonic() >= deadline:
                logger.debug(f"Stopped reading {url} at {received} bytes: deadline passed")
                break
        body = b"".join(chunks)[:max_bytes]
        encoding = r.encoding or "utf-8"
    return body.decode(encoding, errors="replace")


def fetch_title(url: str, timeout: float = FETCH_TIMEOUT, max_bytes: int = MAX_BYTES) -> Optional[str]:
    """Page title for ``url``, or None on any failure or after ``timeout`` seconds."""
    future = _pool.submit(_read_head, url, timeout, max_bytes)
    try:
        return extract_title(future.result(timeout=timeout))
    except FutureTimeout:
        future.cancel()
        logger.info(f"Title fetch for {url} timed out after {timeout}s")
    except Exception as e:
        logger.info(f"Title fetch for {url} failed: {e}")
    return None
