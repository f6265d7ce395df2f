"""
Remote classification collaborators.
Google Cloud Natural Language and Vision, both over their REST endpoints.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

from auditor.core import AuditConfig, GOOGLE_API_KEY, GOOGLE_VISION_API_KEY
from auditor.errors import CheckError
from screening.models import EntitySentiment, Likelihood, SafeSearchAnnotation, TextAnalysis

logger = logging.getLogger("auditor.screening")
_LOG = {"context": "Classifiers"}

LANGUAGE_ENDPOINT = "https://language.googleapis.com/v1/documents:{method}"
VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"


class TextClassifier(ABC):

    @abstractmethod
    async def analyze(self, text: str) -> TextAnalysis:
        pass


class ImageClassifier(ABC):

    @abstractmethod
    async def safe_search(self, image_url: str) -> SafeSearchAnnotation:
        pass


class GoogleNaturalLanguage(TextClassifier):
    """
    FLOW: analyzeSentiment -> analyzeEntitySentiment -> classifyText.
    Sentiment calls must succeed; classifyText rejects short documents, so its failure
    only drops the category signal.
    """

    def __init__(self, api_key: str = GOOGLE_API_KEY, config: Optional[AuditConfig] = None,
                 session: Optional[requests.Session] = None):
        self._api_key = api_key
        self._config = config or AuditConfig.from_env()
        self._session = session or requests.Session()

    async def analyze(self, text):
        if not self._api_key:
            raise CheckError("Natural Language API key is not configured")
        return await asyncio.to_thread(self._analyze, text)

    def _call(self, method: str, text: str) -> dict:
        r = self._session.post(
            LANGUAGE_ENDPOINT.format(method=method),
            params={"key": self._api_key},
            json={"document": {"type": "PLAIN_TEXT", "content": text}, "encodingType": "UTF8"},
            timeout=self._config.request_timeout,
        )
        r.raise_for_status()
        try:
            return r.json()
        except ValueError as e:
            raise CheckError(f"Malformed {method} response: {e}") from e

    def _analyze(self, text: str) -> TextAnalysis:
        sentiment = self._call("analyzeSentiment", text)
        entities = self._call("analyzeEntitySentiment", text)
        try:
            categories = self._call("classifyText", text).get("categories") or []
        except (requests.RequestException, CheckError, AttributeError) as e:
            logger.warning(f"[NLP] classifyText unavailable for chunk: {e}", extra=_LOG)
            categories = []

        try:
            return TextAnalysis(
                document_score=float((sentiment.get("documentSentiment") or {}).get("score", 0.0)),
                entities=tuple(
                    EntitySentiment(
                        name=e.get("name", ""),
                        entity_type=e.get("type", "UNKNOWN"),
                        score=float((e.get("sentiment") or {}).get("score", 0.0)),
                    )
                    for e in entities.get("entities") or []
                ),
                categories=tuple(c.get("name", "") for c in categories),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise CheckError(f"Malformed Natural Language response: {e}") from e


class GoogleVision(ImageClassifier):

    def __init__(self, api_key: str = GOOGLE_VISION_API_KEY, config: Optional[AuditConfig] = None,
                 session: Optional[requests.Session] = None):
        self._api_key = api_key
        self._config = config or AuditConfig.from_env()
        self._session = session or requests.Session()

    async def safe_search(self, image_url):
        if not self._api_key:
            raise CheckError("Vision API key is not configured")
        return await asyncio.to_thread(self._safe_search, image_url)

    def _safe_search(self, image_url: str) -> SafeSearchAnnotation:
        r = self._session.post(
            VISION_ENDPOINT,
            params={"key": self._api_key},
            json={"requests": [{
                "image": {"source": {"imageUri": image_url}},
                "features": [{"type": "SAFE_SEARCH_DETECTION"}],
            }]},
            timeout=self._config.request_timeout,
        )
        r.raise_for_status()
        try:
            response = r.json()["responses"][0]
        except (ValueError, KeyError, IndexError) as e:
            raise CheckError(f"Malformed Vision response: {e}") from e

        if "error" in response:
            raise CheckError(response["error"].get("message", "Vision API error"))
        annotation = response.get("safeSearchAnnotation")
        if annotation is None:
            raise CheckError("Vision response has no safeSearchAnnotation")

        return SafeSearchAnnotation(
            adult=Likelihood.parse(annotation.get("adult")),
            violence=Likelihood.parse(annotation.get("violence")),
            racy=Likelihood.parse(annotation.get("racy")),
            medical=Likelihood.parse(annotation.get("medical")),
            spoof=Likelihood.parse(annotation.get("spoof")),
        )
