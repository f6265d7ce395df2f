import asyncio
import logging
import re
from typing import List, Optional

import requests

from auditor.content import collapse_whitespace
from auditor.core import AuditConfig
from auditor.errors import CheckError
from auditor.fetcher import PageFetcher
from auditor.models import CheckResult, HATE_SPEECH_CHECK
from screening.classifiers import TextClassifier
from screening.models import TextAnalysis

logger = logging.getLogger("auditor.screening")
_LOG = {"context": "HateSpeechScreener"}

PROBLEMATIC_PHRASES = (
    "kill all",
    "death to",
    "should die",
    "was right about",
    "was right abt",
    "deserve to",
    "hate all",
    "eliminate all",
)

CONTEXT_RADIUS = 50
MAX_CHUNK_SIZE = 1000
NEGATIVE_SENTIMENT_THRESHOLD = -0.7
TARGETED_ENTITY_TYPES = frozenset({"PERSON", "ORGANIZATION", "OTHER"})
SENSITIVE_CATEGORY_MARKERS = ("/Sensitive", "/Adult", "/Hate")

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def quick_scan(content: str) -> List[dict]:
    """First occurrence of every listed phrase, with surrounding context."""
    lower = content.lower()
    hits = []
    for phrase in PROBLEMATIC_PHRASES:
        index = lower.find(phrase)
        if index == -1:
            continue
        hits.append({
            "phrase": phrase,
            "index": index,
            "context": content[max(0, index - CONTEXT_RADIUS):index + CONTEXT_RADIUS],
        })
    return hits


def split_into_chunks(content: str, max_chunk_size: int = MAX_CHUNK_SIZE) -> List[str]:
    """
    Greedy sentence packing. A single sentence longer than the limit becomes its own chunk.
    """
    chunks = []
    current = ""
    for sentence in _SENTENCE_SPLIT_RE.split(content):
        if not sentence:
            continue
        if current and len(current) + len(sentence) + 1 > max_chunk_size:
            chunks.append(current)
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence
    if current:
        chunks.append(current)
    return chunks


def chunk_findings(analysis: TextAnalysis) -> List[str]:
    findings = []
    if analysis.document_score < NEGATIVE_SENTIMENT_THRESHOLD:
        findings.append(f"Strongly negative sentiment ({analysis.document_score:.2f})")
    for entity in analysis.entities:
        if entity.entity_type in TARGETED_ENTITY_TYPES and entity.score < NEGATIVE_SENTIMENT_THRESHOLD:
            findings.append(f"Strongly negative sentiment toward {entity.entity_type.lower()} '{entity.name}' ({entity.score:.2f})")
    for category in analysis.categories:
        if any(marker in category for marker in SENSITIVE_CATEGORY_MARKERS):
            findings.append(f"Sensitive category: {category}")
    return findings


class HateSpeechScreener:
    """
    FLOW: Extract text -> Phrase quick scan (fail fast, no remote calls) ->
    Sentence chunks -> Classify up to the call cap -> Fail on any finding.
    Individual chunk failures are skipped; only a total failure is an error.
    """

    def __init__(self, fetcher: PageFetcher, classifier: TextClassifier, config: Optional[AuditConfig] = None):
        self._fetcher = fetcher
        self._classifier = classifier
        self._config = config or AuditConfig.from_env()

    async def check(self, url: str) -> CheckResult:
        logger.info(f"[HATE] Screening content of {url}", extra=_LOG)
        try:
            content = collapse_whitespace(await self._fetcher.fetch_text(url))
        except requests.RequestException as e:
            logger.error(f"[HATE] Content extraction failed for {url}: {e}", extra=_LOG)
            return CheckResult.error(HATE_SPEECH_CHECK, "No content extracted", {"error": str(e)})

        if len(content) < 10:
            return CheckResult.error(
                HATE_SPEECH_CHECK, "No content extracted",
                {"message": "Could not extract meaningful content from the provided URL"},
            )

        hits = quick_scan(content)
        if hits:
            logger.info(f"[HATE] Quick scan matched {len(hits)} phrase(s)", extra=_LOG)
            return CheckResult.failed(
                HATE_SPEECH_CHECK,
                "Problematic content detected",
                {
                    "message": f"Found {len(hits)} instances of problematic phrases",
                    "problematic_phrases": [{"phrase": h["phrase"], "context": h["context"]} for h in hits],
                },
            )

        chunks = split_into_chunks(content)[:self._config.max_hate_speech_api_calls]
        analyses = await asyncio.gather(*(self._analyze_chunk(i, chunk) for i, chunk in enumerate(chunks)))
        completed = [(i, a) for i, a in enumerate(analyses) if a is not None]

        if not completed:
            logger.error(f"[HATE] All {len(chunks)} chunk(s) failed classification", extra=_LOG)
            return CheckResult.error(HATE_SPEECH_CHECK, "Analysis failed", {"chunks_submitted": len(chunks)})

        flagged = []
        for index, analysis in completed:
            findings = chunk_findings(analysis)
            if findings:
                flagged.append({"chunk": index, "excerpt": chunks[index][:100] + "...", "findings": findings})

        details = {
            "chunks_submitted": len(chunks),
            "chunks_analyzed": len(completed),
            "max_api_calls": self._config.max_hate_speech_api_calls,
        }
        if flagged:
            details["flagged_chunks"] = flagged
            logger.info(f"[HATE] {len(flagged)} chunk(s) flagged", extra=_LOG)
            return CheckResult.failed(HATE_SPEECH_CHECK, "Hate speech detected", details)

        logger.info("[HATE] No hate speech detected", extra=_LOG)
        return CheckResult.passed(HATE_SPEECH_CHECK, "No hate speech detected", details)

    async def _analyze_chunk(self, index: int, chunk: str) -> Optional[TextAnalysis]:
        try:
            return await self._classifier.analyze(chunk)
        except (requests.RequestException, CheckError) as e:
            logger.warning(f"[HATE] Chunk {index} classification failed: {e}", extra=_LOG)
            return None
