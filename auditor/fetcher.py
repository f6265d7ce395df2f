"""
HTTP fetching for the audit checks.
Plain requests first; pages that are SPA shells are re-fetched through the browser.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from auditor.content import extract_article_text
from auditor.core import AuditConfig
from auditor.renderer import JSIntelligence, PlaywrightError, PlaywrightRenderer

logger = logging.getLogger("auditor.fetcher")
_LOG = {"context": "PageFetcher"}


@dataclass(frozen=True)
class FetchedPage:
    url: str
    final_url: str
    status_code: int
    content_type: str
    html: str


class PageFetcher(ABC):
    """
    Interface every check uses to read remote pages.
    Implementations raise requests.RequestException (or a subclass) on failure.
    """

    @abstractmethod
    async def fetch(self, url: str, timeout: Optional[float] = None,
                    headers: Optional[Dict[str, str]] = None) -> FetchedPage:
        pass

    @abstractmethod
    async def fetch_html(self, url: str) -> str:
        """HTML of the page, rendered by a browser when the raw markup is an empty shell."""
        pass

    async def fetch_text(self, url: str) -> str:
        """Readable article text, paragraphs separated by blank lines."""
        return extract_article_text(await self.fetch_html(url))


class HttpPageFetcher(PageFetcher):

    def __init__(self, config: Optional[AuditConfig] = None,
                 session: Optional[requests.Session] = None,
                 renderer: Optional[PlaywrightRenderer] = None):
        self._config = config or AuditConfig.from_env()
        self._session = session or requests.Session()
        self._renderer = renderer

    async def fetch(self, url, timeout=None, headers=None):
        return await asyncio.to_thread(self._get, url, timeout, headers)

    async def fetch_html(self, url):
        page = await self.fetch(url)
        if self._renderer is None or not JSIntelligence.needs_js_rendering(page.html):
            return page.html

        logger.info(f"[FETCH] Escalating to browser render: {url}", extra=_LOG)
        try:
            rendered = await self._renderer.render(url)
        except PlaywrightError as e:
            logger.warning(f"[FETCH] Browser render failed for {url}, using raw HTML: {e}", extra=_LOG)
            return page.html
        return rendered.html

    def _get(self, url, timeout, headers) -> FetchedPage:
        request_headers = {
            "User-Agent": self._config.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        if headers:
            request_headers.update(headers)

        r = self._session.get(
            url,
            timeout=timeout or self._config.request_timeout,
            headers=request_headers,
            allow_redirects=True,
        )
        # Non-2xx is a fetch failure for every caller
        r.raise_for_status()
        logger.debug(f"[FETCH] {r.status_code} {url} ({len(r.content)} bytes)", extra=_LOG)
        return FetchedPage(
            url=url,
            final_url=r.url or url,
            status_code=r.status_code,
            content_type=r.headers.get("Content-Type", "").lower(),
            html=r.text,
        )
