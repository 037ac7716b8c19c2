"""httpx client used for rule downloads."""

from __future__ import annotations

import httpx

USER_AGENT = "nudelink/0.1.0 (+rules refresh)"


def create_http_client(*, proxy_url: str | None = None, timeout: float = 30.0) -> httpx.Client:
    """Client that follows redirects and asks intermediaries not to serve cached rule files."""
    return httpx.Client(
        headers={"User-Agent": USER_AGENT, "Cache-Control": "no-store"},
        timeout=timeout,
        proxy=proxy_url,
        follow_redirects=True,
    )
