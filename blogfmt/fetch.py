"""Remote source fetching with httpx."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx


@dataclass
class FetchResult:
    """Result from fetching a URL."""

    html: str
    url: str
    status: int
    headers: dict[str, str] = field(default_factory=dict)


async def fetch_static(
    url: str,
    timeout: int = 30,
    follow_redirects: bool = True,
    headers: dict[str, str] | None = None,
    verify_ssl: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchResult:
    """Fetch a page's HTML (no JS rendering)."""
    default_headers = {
        "User-Agent": "blogfmt/0.1 (+content formatting)",
        "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9,*/*;q=0.8",
    }
    if headers:
        default_headers.update(headers)

    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=follow_redirects,
        headers=default_headers,
        verify=verify_ssl,
        transport=transport,
    ) as client:
        response = await client.get(url)
        return FetchResult(
            html=response.text,
            url=str(response.url),
            status=response.status_code,
            headers=dict(response.headers),
        )
