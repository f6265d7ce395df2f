"""
Browser-side collection of ad signals.
One page load yields every NetworkSignal, ImageSignal and AdElement the classifier sees.
"""

import asyncio
import logging
from typing import List, Optional

from auditor.core import AuditConfig, JS_AD_SETTLE_TIME, JS_SCROLL_SETTLE_TIME
from auditor.renderer import PlaywrightRenderer, PlaywrightTimeoutError
from ads.models import AdElement, AdSignals, ImageSignal, NetworkSignal
from ads.registry import AD_ELEMENT_SELECTORS, ANCESTOR_DEPTH

logger = logging.getLogger("auditor.ads")
_LOG = {"context": "AdSignalCollector"}

AUTO_SCROLL_JS = """
async () => {
    await new Promise((resolve) => {
        let total = 0;
        const distance = 100;
        const timer = setInterval(() => {
            window.scrollBy(0, distance);
            total += distance;
            if (total >= document.body.scrollHeight) {
                clearInterval(timer);
                resolve();
            }
        }, 100);
    });
}
"""

IMAGE_DATA_JS = """
(maxDepth) => Array.from(document.querySelectorAll('img')).map((img) => {
    const style = window.getComputedStyle(img);
    let context = '';
    let inContent = false;
    let inAd = false;
    let parent = img.parentElement;
    for (let depth = 0; parent && depth < maxDepth; depth++) {
        const id = parent.id || '';
        const cls = typeof parent.className === 'string' ? parent.className : '';
        if (id) context += `#${id} `;
        if (cls) context += `.${cls.replace(/\\s+/g, '.')} `;
        if (!inContent && (parent.tagName === 'ARTICLE' || parent.tagName === 'MAIN' ||
                ['article', 'content', 'story', 'post'].some((k) => cls.includes(k)))) {
            inContent = true;
        }
        if (!inAd && ['ad', 'banner', 'sponsor'].some((k) => id.includes(k) || cls.includes(k))) {
            inAd = true;
        }
        parent = parent.parentElement;
    }
    return {
        src: img.src || '', alt: img.alt || '',
        width: img.width, height: img.height,
        naturalWidth: img.naturalWidth, naturalHeight: img.naturalHeight,
        display: style.display, visibility: style.visibility,
        opacity: style.opacity, position: style.position,
        parentContext: context.trim(), inContent: inContent, inAd: inAd,
    };
})
"""

AD_ELEMENTS_JS = """
(selectors) => {
    const results = [];
    for (const selector of selectors) {
        let elements = [];
        try { elements = document.querySelectorAll(selector); } catch (e) { continue; }
        elements.forEach((el) => {
            const style = window.getComputedStyle(el);
            results.push({
                selector: selector, id: el.id || '',
                cls: typeof el.className === 'string' ? el.className : '',
                src: el.src || '', width: el.offsetWidth, height: el.offsetHeight,
                display: style.display, visibility: style.visibility, position: style.position,
            });
        });
    }
    return results;
}
"""


def _image_signal(raw: dict) -> ImageSignal:
    return ImageSignal(
        src=raw.get("src", ""),
        alt=raw.get("alt", ""),
        width=int(raw.get("width") or 0),
        height=int(raw.get("height") or 0),
        natural_width=int(raw.get("naturalWidth") or 0),
        natural_height=int(raw.get("naturalHeight") or 0),
        display=raw.get("display", ""),
        visibility=raw.get("visibility", ""),
        opacity=str(raw.get("opacity", "1")),
        position=raw.get("position", ""),
        parent_context=raw.get("parentContext", ""),
        in_content_container=bool(raw.get("inContent")),
        in_ad_container=bool(raw.get("inAd")),
    )


def _ad_element(raw: dict) -> AdElement:
    return AdElement(
        selector=raw.get("selector", ""),
        element_id=raw.get("id", ""),
        css_class=raw.get("cls", ""),
        src=raw.get("src", ""),
        width=int(raw.get("width") or 0),
        height=int(raw.get("height") or 0),
        display=raw.get("display", ""),
        visibility=raw.get("visibility", ""),
        position=raw.get("position", ""),
    )


class AdSignalCollector:
    """
    FLOW: Load DOM -> Best-effort network idle -> Wait for delayed ad calls -> Auto-scroll for lazy slots ->
    Wait again -> Snapshot images and ad elements. Requests are recorded from the first byte.
    """

    def __init__(self, renderer: Optional[PlaywrightRenderer] = None, config: Optional[AuditConfig] = None,
                 ad_settle_time: float = JS_AD_SETTLE_TIME, scroll_settle_time: float = JS_SCROLL_SETTLE_TIME):
        self._config = config or AuditConfig.from_env()
        self._renderer = renderer or PlaywrightRenderer(self._config)
        self._ad_settle_time = ad_settle_time
        self._scroll_settle_time = scroll_settle_time

    async def collect(self, url: str) -> AdSignals:
        requests_seen: List[NetworkSignal] = []

        async with self._renderer.open_page() as page:
            page.on("request", lambda request: requests_seen.append(
                NetworkSignal(url=request.url, resource_type=request.resource_type)
            ))

            await page.goto(url, wait_until="domcontentloaded", timeout=self._renderer.goto_timeout_ms)
            try:
                await page.wait_for_load_state("networkidle", timeout=self._renderer.goto_timeout_ms)
            except PlaywrightTimeoutError:
                # Ad-heavy pages poll forever; keep the requests recorded so far.
                logger.info(f"[ADS] Network never went idle for {url}; continuing", extra=_LOG)
            await asyncio.sleep(self._ad_settle_time)
            await page.evaluate(AUTO_SCROLL_JS)
            await asyncio.sleep(self._scroll_settle_time)

            images = await page.evaluate(IMAGE_DATA_JS, ANCESTOR_DEPTH)
            elements = await page.evaluate(AD_ELEMENTS_JS, list(AD_ELEMENT_SELECTORS))

        signals = AdSignals(
            requests=tuple(requests_seen),
            images=tuple(_image_signal(raw) for raw in images),
            elements=tuple(_ad_element(raw) for raw in elements),
        )
        logger.info(
            f"[ADS] Collected {len(signals.requests)} requests, {len(signals.images)} images, "
            f"{len(signals.elements)} ad elements from {url}",
            extra=_LOG,
        )
        return signals
