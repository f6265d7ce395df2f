import asyncio
import logging
import random
from typing import List, Optional

import requests

from auditor.content import extract_image_sources
from auditor.core import AuditConfig
from auditor.errors import CheckError
from auditor.fetcher import PageFetcher
from auditor.models import CheckResult, IMAGES_CHECK
from screening.classifiers import ImageClassifier

logger = logging.getLogger("auditor.screening")
_LOG = {"context": "ImageSafetyChecker"}


class ImageSafetyChecker:
    """
    Samples page images and runs SafeSearch on each.
    An image is inappropriate when adult or violence is LIKELY or VERY_LIKELY.
    """

    def __init__(self, fetcher: PageFetcher, classifier: ImageClassifier,
                 config: Optional[AuditConfig] = None, rng: Optional[random.Random] = None):
        self._fetcher = fetcher
        self._classifier = classifier
        self._config = config or AuditConfig.from_env()
        self._rng = rng or random.Random()

    def _sample(self, sources: List[str]) -> List[str]:
        limit = self._config.max_image_api_calls
        if len(sources) <= limit:
            return list(sources)
        return self._rng.sample(sources, limit)

    async def check(self, url: str) -> CheckResult:
        logger.info(f"[IMAGES] Extracting images from {url}", extra=_LOG)
        try:
            page = await self._fetcher.fetch(url)
        except requests.RequestException as e:
            logger.error(f"[IMAGES] Could not fetch {url}: {e}", extra=_LOG)
            return CheckResult.error(IMAGES_CHECK, "Image analysis failed", {"error": str(e)})

        sources = extract_image_sources(page.html, page.final_url)
        if not sources:
            return CheckResult.passed(
                IMAGES_CHECK, "No images found to analyze",
                {"message": "Page contained no suitable images for analysis"},
            )

        selected = self._sample(sources)
        verdicts = await asyncio.gather(*(self._analyze(src) for src in selected))

        analyzed = [v for v in verdicts if "error" not in v]
        flagged = [v for v in analyzed if v["inappropriate"]]
        details = {
            "total_images": len(sources),
            "images_analyzed": len(selected),
            "results": verdicts,
        }

        if flagged:
            details["flagged_images"] = [v["src"] for v in flagged]
            logger.info(f"[IMAGES] {len(flagged)} inappropriate image(s) on {url}", extra=_LOG)
            return CheckResult.failed(IMAGES_CHECK, "Inappropriate image content detected", details)
        if not analyzed:
            return CheckResult.error(IMAGES_CHECK, "Image analysis failed", details)
        return CheckResult.passed(IMAGES_CHECK, "No inappropriate images detected", details)

    async def _analyze(self, src: str) -> dict:
        try:
            annotation = await self._classifier.safe_search(src)
        except (requests.RequestException, CheckError) as e:
            logger.warning(f"[IMAGES] SafeSearch failed for {src}: {e}", extra=_LOG)
            return {"src": src, "error": str(e)}
        return {"src": src, "inappropriate": annotation.inappropriate, "safe_search": annotation.to_dict()}
