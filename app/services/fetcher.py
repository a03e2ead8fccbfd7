import logging
import re

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 12.0
_DEFAULT_MAX_BODY = 2 * 1024 * 1024  # 2 MB

_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

_HTML_TYPES = ("text/html", "application/xhtml+xml")
# Untyped bodies count as HTML when they open with a doctype or <html>
_HTML_SNIFF_RE = re.compile(rb"(?:\xef\xbb\xbf)?\s*(?:<!--.*?-->\s*)*<(?:!doctype\s+html|html)\b", re.I | re.S)


class PageFetcher:
    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = _DEFAULT_TIMEOUT,
        max_bytes: int = _DEFAULT_MAX_BODY,
    ):
        self._client = client
        self._timeout = timeout
        self._max_bytes = max_bytes

    async def fetch_page(self, url: str) -> str | None:
        """Fetch a page, return its HTML or None. Never raises."""
        try:
            resp = await self._client.get(
                url,
                follow_redirects=True,
                timeout=self._timeout,
                headers=_HEADERS,
            )
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL):
            logger.debug("Failed to fetch %s", url)
            return None

        content_type = resp.headers.get("content-type", "").lower()
        if not content_type:
            if not _HTML_SNIFF_RE.match(resp.content[:1024]):
                logger.debug("Skipping untyped non-HTML %s", url)
                return None
        elif not any(t in content_type for t in _HTML_TYPES):
            logger.debug("Skipping non-HTML %s (content-type: %s)", url, content_type)
            return None

        if len(resp.content) > self._max_bytes:
            logger.debug("Skipping oversized page %s (%d bytes)", url, len(resp.content))
            return None

        return resp.text
