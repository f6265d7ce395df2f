"""
FILE DESCRIPTION: Headless browser access for pages that need JavaScript.
KEY FUNCTIONS/CLASSES: JSIntelligence, PlaywrightRenderer, RenderedPage
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Iterable, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from auditor.core import AuditConfig, JS_GOTO_TIMEOUT

logger = logging.getLogger("auditor.renderer")
_LOG = {"context": "PlaywrightRenderer"}

BROWSER_ARGS = ["--disable-gpu", "--no-sandbox", "--disable-dev-shm-usage"]
VIEWPORT = {"width": 1280, "height": 800}


# === JS INTELLIGENCE ===

class JSIntelligence:
    """
    FLOW: Scans HTML for SPA mount points (React/Vue/Next.js/Angular) ->
    Checks if the body is a shell without semantic content -> True when a browser render is needed.
    """
    _SPA_ROOTS = ('<div id="root"', '<div id="app"', '<app-root', '<div id="__next"')
    _CONTENT_MARKERS = ("<a ", "<p", "<main", "<article", "<section")

    @classmethod
    def needs_js_rendering(cls, html: str) -> bool:
        if not html:
            return True

        h = html.lower()
        if any(root in h for root in cls._SPA_ROOTS):
            return True

        body_start = h.find("<body")
        if body_start != -1:
            body = h[body_start:]
            if not any(marker in body for marker in cls._CONTENT_MARKERS):
                return True
        return False


# === BROWSER ACCESS ===

@dataclass(frozen=True)
class RenderedPage:
    url: str
    final_url: str
    status_code: int
    html: str


class PlaywrightRenderer:
    """
    One short-lived Chromium per call. Each audit owns its browser, so
    concurrent audits never share pages or contexts.
    """

    def __init__(self, config: Optional[AuditConfig] = None, goto_timeout: float = JS_GOTO_TIMEOUT):
        self._config = config or AuditConfig.from_env()
        self._goto_timeout_ms = int(goto_timeout * 1000)

    @property
    def goto_timeout_ms(self) -> int:
        return self._goto_timeout_ms

    @asynccontextmanager
    async def open_page(self, blocked_resources: Iterable[str] = ()) -> AsyncIterator[Page]:
        blocked = frozenset(blocked_resources)
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True, args=BROWSER_ARGS)
            try:
                context = await browser.new_context(
                    user_agent=self._config.user_agent,
                    viewport=VIEWPORT,
                    extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
                )
                page = await context.new_page()
                if blocked:
                    async def route_intercept(route):
                        if route.request.resource_type in blocked:
                            await route.abort()
                        else:
                            await route.continue_()
                    await page.route("**/*", route_intercept)
                yield page
            finally:
                await browser.close()

    async def render(self, url: str) -> RenderedPage:
        """
        Two-stage load: 'domcontentloaded' must succeed, 'networkidle' is best effort.
        Raises PlaywrightError when the page cannot be reached at all.
        """
        logger.info(f"[RENDER] Rendering {url}", extra=_LOG)
        async with self.open_page(blocked_resources=("image", "font", "media")) as page:
            response = await page.goto(url, wait_until="domcontentloaded", timeout=self._goto_timeout_ms)
            status_code = response.status if response else 0
            try:
                await page.wait_for_load_state("networkidle", timeout=10000)
            except PlaywrightTimeoutError:
                logger.debug(f"[RENDER] Network never went idle for {url}", extra=_LOG)
            html = await page.content()
            return RenderedPage(url=url, final_url=page.url, status_code=status_code, html=html)


__all__ = ["JSIntelligence", "PlaywrightRenderer", "RenderedPage", "PlaywrightError", "PlaywrightTimeoutError"]
