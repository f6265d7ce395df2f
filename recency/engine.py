import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence

import requests

from auditor.core import AuditConfig, SITEMAP_USER_AGENT
from auditor.fetcher import PageFetcher
from auditor.models import CheckResult, RECENCY_CHECK
from auditor.url_utils import base_url
from recency.extraction import dates_from_markup, dates_from_sitemap
from recency.models import DateEvidence, RecencyAssessment, RecencyVerdict

logger = logging.getLogger("auditor.recency")
_LOG = {"context": "RecencyEvaluator"}

PRIMARY_SITEMAPS = ("/sitemap.xml", "/sitemap_index.xml")

FALLBACK_SITEMAPS = (
    "/wp-sitemap.xml", "/sitemap/sitemap.xml", "/sitemaps/sitemap.xml",
    "/sitemap/index.xml", "/sitemap.php", "/sitemap_news.xml",
    "/sitemap/web.xml", "/sitemap/category.xml", "/sitemap/post.xml",
    "/sitemap/page.xml",
)

AUXILIARY_PATHS = (
    "/archive", "/archives", "/blog", "/news", "/articles", "/older-news",
    "/history", "/about", "/about-us", "/company", "/tos", "/legal",
)

SECONDS_PER_DAY = 86400.0

REASONS = {
    RecencyVerdict.FRESH: "Content is recent with sufficient history",
    RecencyVerdict.TOO_NEW: "Lacking recent content",
    RecencyVerdict.LACKS_HISTORY: "Lacking 4 months of content history",
    RecencyVerdict.NO_DATES: "No dates found in any source",
}


def age_in_days(moment: datetime, now: datetime) -> float:
    return (now - moment).total_seconds() / SECONDS_PER_DAY


def assess(evidence: Sequence[DateEvidence], now: datetime,
           recent_max_days: int = 30, history_min_days: int = 95) -> RecencyAssessment:
    """
    Freshness rule over the whole evidence set.
    `> recent_max_days` fails as too new, `< history_min_days` fails as lacking history;
    equality passes both bounds.
    """
    if not evidence:
        return RecencyAssessment(RecencyVerdict.NO_DATES)

    newest = max(e.moment for e in evidence)
    oldest = min(e.moment for e in evidence)
    most_recent_days = age_in_days(newest, now)
    oldest_days = age_in_days(oldest, now)

    if most_recent_days > recent_max_days:
        verdict = RecencyVerdict.TOO_NEW
    elif oldest_days < history_min_days:
        verdict = RecencyVerdict.LACKS_HISTORY
    else:
        verdict = RecencyVerdict.FRESH
    return RecencyAssessment(verdict, newest, oldest, most_recent_days, oldest_days)


class RecencyEvaluator:
    """
    Gathers DateEvidence from progressively more expensive sources:
    primary sitemaps -> fallback sitemaps -> target page markup -> auxiliary paths.
    The freshness rule is re-checked at every checkpoint and evaluation stops
    as soon as it passes.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        config: Optional[AuditConfig] = None,
        now: Optional[Callable[[], datetime]] = None,
        primary_sitemaps: Iterable[str] = PRIMARY_SITEMAPS,
        fallback_sitemaps: Iterable[str] = FALLBACK_SITEMAPS,
        auxiliary_paths: Iterable[str] = AUXILIARY_PATHS,
    ):
        self._fetcher = fetcher
        self._config = config or AuditConfig.from_env()
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._primary = tuple(primary_sitemaps)
        self._fallback = tuple(fallback_sitemaps)
        self._auxiliary = tuple(auxiliary_paths)

    def _assess(self, evidence, now) -> RecencyAssessment:
        return assess(evidence, now, self._config.recent_max_days, self._config.history_min_days)

    async def evaluate(self, url: str) -> CheckResult:
        logger.info(f"[RECENCY] Checking content recency for {url}", extra=_LOG)
        now = self._now()
        root = base_url(url)
        evidence: List[DateEvidence] = []
        sources: List[str] = []

        # 1. Primary sitemaps, concurrently
        batches = await asyncio.gather(*(self._sitemap_evidence(root + path) for path in self._primary))
        for source, found in zip(self._primary, batches):
            sources.append(f"sitemap:{source}")
            evidence.extend(found)

        # 2. Early exit
        if self._assess(evidence, now).passed:
            return self._result(evidence, now, sources, "primary_sitemaps")

        # 3. Fallback sitemaps, re-checked in completion order
        if await self._collect_fallback(root, evidence, sources, now):
            return self._result(evidence, now, sources, "fallback_sitemaps")

        # 4. Target page markup
        sources.append("page")
        evidence.extend(await self._markup_evidence(url, "page"))
        if self._assess(evidence, now).passed:
            return self._result(evidence, now, sources, "page_markup")

        # 5. Auxiliary paths, in order
        for path in self._auxiliary:
            sources.append(f"path:{path}")
            evidence.extend(await self._markup_evidence(root + path, path))
            if self._assess(evidence, now).passed:
                return self._result(evidence, now, sources, "auxiliary_paths")

        # 6. Exhausted every source
        return self._result(evidence, now, sources, "exhausted")

    async def _collect_fallback(self, root, evidence, sources, now) -> bool:
        if not self._fallback:
            return False
        tasks = {
            asyncio.ensure_future(self._sitemap_evidence(root + path)): path
            for path in self._fallback
        }
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    sources.append(f"sitemap:{tasks[task]}")
                    evidence.extend(task.result())
                    if self._assess(evidence, now).passed:
                        return True
            return False
        finally:
            for task in pending:
                task.cancel()

    async def _sitemap_evidence(self, sitemap_url: str) -> List[DateEvidence]:
        try:
            page = await self._fetcher.fetch(
                sitemap_url,
                timeout=self._config.sitemap_timeout,
                headers={"User-Agent": SITEMAP_USER_AGENT},
            )
        except requests.RequestException as e:
            logger.warning(f"[RECENCY] Sitemap unavailable {sitemap_url}: {e}", extra=_LOG)
            return []
        found = [DateEvidence(moment, sitemap_url) for moment in dates_from_sitemap(page.html)]
        logger.info(f"[RECENCY] {len(found)} dates from {sitemap_url}", extra=_LOG)
        return found

    async def _markup_evidence(self, page_url: str, label: str) -> List[DateEvidence]:
        try:
            html = await self._fetcher.fetch_html(page_url)
        except requests.RequestException as e:
            logger.warning(f"[RECENCY] Could not read {page_url}: {e}", extra=_LOG)
            return []
        found = [DateEvidence(moment, label) for moment in dates_from_markup(html)]
        logger.info(f"[RECENCY] {len(found)} dates from {page_url}", extra=_LOG)
        return found

    def _result(self, evidence, now, sources, stage) -> CheckResult:
        assessment = self._assess(evidence, now)
        reason = REASONS[assessment.verdict]
        details = {
            "verdict": assessment.verdict.value,
            "stage": stage,
            "sources_checked": list(sources),
            "total_dates": len(evidence),
        }
        if assessment.verdict is not RecencyVerdict.NO_DATES:
            details.update({
                "newest_date": assessment.newest.isoformat(),
                "oldest_date": assessment.oldest.isoformat(),
                "most_recent_days": round(assessment.most_recent_days),
                "oldest_days": round(assessment.oldest_days),
                "recent_max_days": self._config.recent_max_days,
                "history_min_days": self._config.history_min_days,
            })

        logger.info(f"[RECENCY] {assessment.verdict.value} after {stage}: {reason}", extra=_LOG)
        if assessment.passed:
            return CheckResult.passed(RECENCY_CHECK, reason, details)
        return CheckResult.failed(RECENCY_CHECK, reason, details)
