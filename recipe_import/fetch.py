import ipaddress
import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

from . import config
from .errors import FetchFailure

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5

HEADERS = {
    "User-Agent": config.USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def is_safe_url(url: str) -> bool:
    """Reject anything that could reach the host's own network."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in {"http", "https"}:
        return False
    host = (parsed.hostname or "").lower()
    if not host:
        return False
    try:
        ipaddress.ip_address(host)
        return False  # IP literals are never fetched
    except ValueError:
        pass
    if host == "localhost" or host.endswith(".local") or host.endswith(".localhost"):
        return False
    return True


class PageFetcher:
    """Fetches a page directly, then through PAGE_PROXY_URL if one is set."""

    def __init__(
        self,
        proxy_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.proxy_url = proxy_url if proxy_url is not None else config.PAGE_PROXY_URL
        self.timeout = timeout if timeout is not None else config.FETCH_TIMEOUT
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, follow_redirects=False, transport=self.transport)

    async def fetch(self, url: str) -> str:
        if not is_safe_url(url):
            raise FetchFailure(f"Access to {url} is blocked.")
        try:
            return await self._fetch_direct(url)
        except FetchFailure as e:
            if not self.proxy_url:
                raise
            logger.warning("direct fetch of %s failed (%s), trying proxy", url, e)
            try:
                return await self._fetch_via_proxy(url)
            except FetchFailure as proxy_err:
                raise FetchFailure(f"{e.message} (proxy: {proxy_err.message})") from proxy_err

    async def _fetch_direct(self, url: str) -> str:
        current = url
        async with self._client() as client:
            # every hop is re-checked, redirects are not followed blindly
            for _ in range(MAX_REDIRECTS + 1):
                if not is_safe_url(current):
                    raise FetchFailure(f"Access to {current} is blocked.")
                try:
                    r = await client.get(current, headers=HEADERS)
                except httpx.HTTPError as e:
                    raise FetchFailure(f"Failed to fetch URL: {e}") from e

                if 300 <= r.status_code < 400:
                    location = r.headers.get("location")
                    if not location:
                        raise FetchFailure("Redirect response missing Location header")
                    current = urljoin(current, location)
                    continue

                if r.status_code >= 400:
                    raise FetchFailure(f"Failed to fetch URL ({r.status_code} {r.reason_phrase})")
                return r.text

        raise FetchFailure("Too many redirects")

    async def _fetch_via_proxy(self, url: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = await client.get(self.proxy_url, params={"url": url})
                r.raise_for_status()
            except httpx.HTTPError as e:
                raise FetchFailure(f"Proxy fetch failed: {e}") from e

        if "application/json" in r.headers.get("content-type", ""):
            try:
                data = r.json()
            except ValueError as e:
                raise FetchFailure("Proxy returned invalid JSON") from e
            html = (data.get("html") or data.get("contents")) if isinstance(data, dict) else None
            if not isinstance(html, str):
                raise FetchFailure("Proxy returned no page content")
            return html
        return r.text
