import logging
from typing import List, Optional

from auditor.core import AuditConfig
from auditor.models import ADS_CHECK, CheckResult
from auditor.renderer import PlaywrightError
from ads.collector import AdSignalCollector
from ads.models import (
    AdClassification, AdSignals, ClassifiedImage, ImageKind, ImageSignal, NetworkMatch,
)
from ads.registry import (
    AD_CREATIVE_PATTERNS, CONTENT_IMAGE_PATTERNS, IMPRESSION_PATTERNS,
    PREMIUM_AD_NETWORKS, TRACKING_DOMAINS,
)

logger = logging.getLogger("auditor.ads")
_LOG = {"context": "AdNetworkClassifier"}

DETAIL_SAMPLE_SIZE = 10
PIXEL_SCALE = 3


def _contains_any(value: str, patterns) -> bool:
    return any(p in value for p in patterns)


def match_networks(requests) -> List[NetworkMatch]:
    """Distinct premium networks, in order of first matching request."""
    found = {}
    for request in requests:
        request_url = request.url.lower()
        for name, patterns in PREMIUM_AD_NETWORKS:
            if name in found:
                continue
            if _contains_any(request_url, patterns):
                found[name] = NetworkMatch(name=name, matched_url=request.url)
    return list(found.values())


def tracking_reasons(image: ImageSignal) -> List[str]:
    src = image.src.lower()
    reasons = []
    if (image.width <= PIXEL_SCALE and image.height <= PIXEL_SCALE) or \
            (image.natural_width <= PIXEL_SCALE and image.natural_height <= PIXEL_SCALE):
        reasons.append("small dimensions")
    if image.display == "none" or image.visibility == "hidden" or image.opacity == "0" or \
            (image.position == "absolute" and (image.width == 0 or image.height == 0)):
        reasons.append("hidden element")
    if _contains_any(src, TRACKING_DOMAINS):
        reasons.append("tracking domain")
    if _contains_any(src, IMPRESSION_PATTERNS):
        reasons.append("impression pattern in URL")
    return reasons


def classify_image(image: ImageSignal) -> ClassifiedImage:
    """
    Tracking pixel wins over content, content wins over ad creative.
    """
    reasons = tracking_reasons(image)
    if reasons:
        return ClassifiedImage(image, ImageKind.TRACKING_PIXEL, tuple(reasons))

    src = image.src.lower()
    if image.in_content_container or _contains_any(src, CONTENT_IMAGE_PATTERNS):
        return ClassifiedImage(image, ImageKind.CONTENT)
    if image.in_ad_container or _contains_any(src, AD_CREATIVE_PATTERNS):
        return ClassifiedImage(image, ImageKind.AD_CREATIVE, ("ad container",) if image.in_ad_container else ())
    return ClassifiedImage(image, ImageKind.UNCLASSIFIED)


def classify(signals: AdSignals) -> AdClassification:
    images = [classify_image(image) for image in signals.images]
    return AdClassification(
        networks=tuple(match_networks(signals.requests)),
        tracking_pixels=tuple(i for i in images if i.kind is ImageKind.TRACKING_PIXEL),
        creatives=tuple(i for i in images if i.kind is ImageKind.AD_CREATIVE),
        content_images=tuple(i for i in images if i.kind is ImageKind.CONTENT),
        elements=tuple(signals.elements),
        total_requests=len(signals.requests),
    )


def decide(classification: AdClassification, min_premium_networks: int = 2) -> CheckResult:
    """
    Decision table, first matching row wins:
    - >= min premium networks                         -> pass
    - some premium network + tracking pixel/creative  -> pass
    - some premium network alone                      -> fail (limited)
    - no premium network, any other ad signal         -> fail (activity without premium)
    - nothing                                         -> fail (no activity)
    """
    premium = len(classification.networks)
    supporting = bool(classification.tracking_pixels or classification.creatives)
    any_activity = supporting or bool(classification.elements)
    details = _details(classification)

    if premium >= min_premium_networks:
        return CheckResult.passed(ADS_CHECK, "Sufficient premium ad networks detected", details)
    if premium > 0 and supporting:
        return CheckResult.passed(ADS_CHECK, "Premium ad network with ad activity detected", details)
    if premium > 0:
        return CheckResult.failed(ADS_CHECK, "Limited premium ad networks", details)
    if any_activity:
        return CheckResult.failed(ADS_CHECK, "Ad activity without premium networks", details)
    return CheckResult.failed(ADS_CHECK, "No ad activity detected", details)


def _details(c: AdClassification) -> dict:
    return {
        "total_requests": c.total_requests,
        "premium_ad_networks": len(c.networks),
        "tracking_pixel_count": len(c.tracking_pixels),
        "ad_creative_count": len(c.creatives),
        "content_image_count": len(c.content_images),
        "ad_element_count": len(c.elements),
        "networks": [{"name": n.name, "matched_url": n.matched_url} for n in c.networks],
        "tracking_pixels": [
            {
                "src": t.image.src,
                "dimensions": t.image.dimensions,
                "natural_dimensions": t.image.natural_dimensions,
                "reasons": list(t.reasons),
                "parent_context": t.image.parent_context,
            }
            for t in c.tracking_pixels[:DETAIL_SAMPLE_SIZE]
        ],
        "creatives": [
            {
                "src": a.image.src,
                "dimensions": a.image.dimensions,
                "alt": a.image.alt,
                "in_ad_container": a.image.in_ad_container,
            }
            for a in c.creatives[:DETAIL_SAMPLE_SIZE]
        ],
        "elements": [
            {
                "selector": e.selector,
                "id": e.element_id,
                "class": e.css_class,
                "dimensions": f"{e.width}x{e.height}",
            }
            for e in c.elements[:DETAIL_SAMPLE_SIZE]
        ],
    }


class AdNetworkClassifier:

    def __init__(self, collector: Optional[AdSignalCollector] = None, config: Optional[AuditConfig] = None):
        self._config = config or AuditConfig.from_env()
        self._collector = collector or AdSignalCollector(config=self._config)

    async def check(self, url: str) -> CheckResult:
        logger.info(f"[ADS] Analyzing ad implementation for {url}", extra=_LOG)
        try:
            signals = await self._collector.collect(url)
        except PlaywrightError as e:
            logger.error(f"[ADS] Ad analysis failed for {url}: {e}", extra=_LOG)
            return CheckResult.error(ADS_CHECK, "Ad analysis failed", {"error": str(e)})

        result = decide(classify(signals), self._config.min_premium_networks)
        logger.info(f"[ADS] {result.status.value}: {result.reason}", extra=_LOG)
        return result
