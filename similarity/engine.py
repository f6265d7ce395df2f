import asyncio
import logging
import re
from difflib import SequenceMatcher
from typing import List, Optional

import requests

from auditor.content import truncate_at_sentence
from auditor.core import AuditConfig
from auditor.errors import CheckError
from auditor.fetcher import PageFetcher
from auditor.models import CheckResult, CheckStatus, PLAGIARISM_CHECK
from auditor.url_utils import registrable_domain
from similarity.models import ExcerptVerdict, SimilarityCandidate
from similarity.search import SearchService

logger = logging.getLogger("auditor.similarity")
_LOG = {"context": "SimilarityChecker"}

MIN_PARAGRAPH_LENGTH = 100
MAX_EXCERPT_LENGTH = 500
SEARCH_QUERY_LENGTH = 128
MAX_CANDIDATES_PER_EXCERPT = 5
MIN_MATCHED_WORDS = 6

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_NON_TEXT_RE = re.compile(r"^[\s\d.,:;!?()\[\]{}'\"<>]+$")

# Excerpt statuses, strongest first, when rolling up into one CheckResult
_EXCERPT_PRECEDENCE = (CheckStatus.FAIL, CheckStatus.REVIEW, CheckStatus.ERROR)


def significant_words(text: str) -> set:
    return {w for w in text.lower().split() if len(w) > 3}


def jaccard_similarity(a: str, b: str) -> float:
    """Intersection over union of the words longer than 3 characters."""
    words_a, words_b = significant_words(a), significant_words(b)
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def longest_common_run(a: str, b: str) -> str:
    """Longest run of consecutive words (case-insensitive) shared by both texts."""
    words_a, words_b = a.split(), b.split()
    matcher = SequenceMatcher(None, [w.lower() for w in words_a], [w.lower() for w in words_b], autojunk=False)
    match = matcher.find_longest_match(0, len(words_a), 0, len(words_b))
    if match.size < MIN_MATCHED_WORDS:
        return ""
    return " ".join(words_b[match.b:match.b + match.size])


def representative_paragraphs(content: str, limit: int) -> List[str]:
    """Longest qualifying paragraphs first, at most `limit` of them."""
    paragraphs = [
        p.strip() for p in _PARAGRAPH_SPLIT_RE.split(content or "")
        if len(p.strip()) > MIN_PARAGRAPH_LENGTH and not _NON_TEXT_RE.match(p)
    ]
    paragraphs.sort(key=len, reverse=True)
    return paragraphs[:limit]


class SimilarityChecker:
    """
    FLOW: Extract article text -> Pick the longest paragraphs as excerpts ->
    Search the web for each excerpt -> Fetch and score every hit -> Roll up per-excerpt verdicts.
    Hits on the audited site's own registrable domain are ignored.
    """

    def __init__(self, fetcher: PageFetcher, search: SearchService,
                 config: Optional[AuditConfig] = None,
                 max_candidates: int = MAX_CANDIDATES_PER_EXCERPT):
        self._fetcher = fetcher
        self._search = search
        self._config = config or AuditConfig.from_env()
        self._max_candidates = max_candidates

    async def check(self, url: str) -> CheckResult:
        logger.info(f"[PLAGIARISM] Starting plagiarism check for URL: {url}", extra=_LOG)
        try:
            content = await self._fetcher.fetch_text(url)
        except requests.RequestException as e:
            logger.error(f"[PLAGIARISM] Content extraction failed for {url}: {e}", extra=_LOG)
            return CheckResult.error(PLAGIARISM_CHECK, "No content extracted", {"error": str(e)})

        if not content or len(content.strip()) < 10:
            logger.warning(f"[PLAGIARISM] No content extracted from URL: {url}", extra=_LOG)
            return CheckResult.error(
                PLAGIARISM_CHECK, "No content extracted",
                {"message": "Could not extract meaningful content from the provided URL"},
            )

        excerpts = representative_paragraphs(content, self._config.max_plagiarism_api_calls)
        if not excerpts:
            logger.info("[PLAGIARISM] No substantial paragraphs found", extra=_LOG)
            return CheckResult.passed(PLAGIARISM_CHECK, "No substantial paragraphs to compare")

        own_domain = registrable_domain(url)
        verdicts = []
        for paragraph in excerpts:
            verdicts.append(await self._check_excerpt(truncate_at_sentence(paragraph, MAX_EXCERPT_LENGTH), own_domain))
        return self._roll_up(verdicts)

    async def _check_excerpt(self, excerpt: str, own_domain: str) -> ExcerptVerdict:
        try:
            links = await self._search.search(excerpt[:SEARCH_QUERY_LENGTH])
        except (requests.RequestException, CheckError) as e:
            logger.error(f"[PLAGIARISM] Search failed: {e}", extra=_LOG)
            return ExcerptVerdict(excerpt, CheckStatus.ERROR, error=f"Error checking similarity: {e}")

        links = [link for link in links if registrable_domain(link) != own_domain][:self._max_candidates]
        if not links:
            return ExcerptVerdict(excerpt, CheckStatus.PASS)

        scored = await asyncio.gather(*(self._score(excerpt, link) for link in links))
        candidates = [c for c in scored if c is not None]
        if not candidates:
            return ExcerptVerdict(excerpt, CheckStatus.PASS)

        best = max(candidates, key=lambda c: c.score)
        return ExcerptVerdict(excerpt, self._status_for(best.score), best)

    async def _score(self, excerpt: str, link: str) -> Optional[SimilarityCandidate]:
        try:
            text = await self._fetcher.fetch_text(link)
        except requests.RequestException as e:
            logger.warning(f"[PLAGIARISM] Could not fetch candidate {link}: {e}", extra=_LOG)
            return None
        if not text:
            return None

        # Score against the closest paragraph as well as the whole page
        blocks = [text] + [p for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()]
        score = max(jaccard_similarity(excerpt, block) for block in blocks)
        matched = longest_common_run(excerpt, text) if score > self._config.plagiarism_review_threshold else ""
        return SimilarityCandidate(excerpt=excerpt, url=link, score=score, matched_text=matched)

    def _status_for(self, score: float) -> CheckStatus:
        if score > self._config.plagiarism_fail_threshold:
            return CheckStatus.FAIL
        if score > self._config.plagiarism_review_threshold:
            return CheckStatus.REVIEW
        return CheckStatus.PASS

    def _roll_up(self, verdicts: List[ExcerptVerdict]) -> CheckResult:
        total = len(verdicts)
        counts = {}
        for v in verdicts:
            counts[v.status.value] = counts.get(v.status.value, 0) + 1

        details = {
            "average_similarity_score": round(sum(v.score for v in verdicts) / total, 4),
            "paragraphs_checked": total,
            "max_api_calls": self._config.max_plagiarism_api_calls,
            "status_counts": counts,
            "results": [v.summary() for v in verdicts],
        }

        fail_pct = int(round(self._config.plagiarism_fail_threshold * 100))
        reasons = {
            CheckStatus.FAIL: f"Content similarity above {fail_pct}% threshold",
            CheckStatus.REVIEW: "Content similarity requires review",
            CheckStatus.ERROR: "Unable to verify content originality",
        }
        for status in _EXCERPT_PRECEDENCE:
            n = counts.get(status.value, 0)
            if n:
                reason = f"{reasons[status]} ({n} of {total} excerpts)"
                logger.info(f"[PLAGIARISM] {status.value}: {reason}", extra=_LOG)
                return CheckResult(PLAGIARISM_CHECK, status, reason, details)

        logger.info("[PLAGIARISM] No plagiarism detected", extra=_LOG)
        return CheckResult.passed(PLAGIARISM_CHECK, "No plagiarism detected", details)
