import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import requests

from auditor.core import AuditConfig, GOOGLE_SEARCH_API_KEY, GOOGLE_SEARCH_ENGINE_ID
from auditor.errors import CheckError

logger = logging.getLogger("auditor.similarity")
_LOG = {"context": "WebSearch"}

CUSTOM_SEARCH_ENDPOINT = "https://www.googleapis.com/customsearch/v1"


class SearchService(ABC):
    """Finds pages that may contain a given text. Returns result URLs in rank order."""

    @abstractmethod
    async def search(self, query: str) -> List[str]:
        pass


class GoogleCustomSearch(SearchService):
    """
    Google Custom Search JSON API.
    Raises CheckError when unconfigured or when the response is not usable,
    requests.RequestException on transport failures.
    """

    def __init__(self, api_key: str = GOOGLE_SEARCH_API_KEY, engine_id: str = GOOGLE_SEARCH_ENGINE_ID,
                 config: Optional[AuditConfig] = None, session: Optional[requests.Session] = None):
        self._api_key = api_key
        self._engine_id = engine_id
        self._config = config or AuditConfig.from_env()
        self._session = session or requests.Session()

    async def search(self, query):
        if not self._api_key or not self._engine_id:
            raise CheckError("Search API is not configured")
        return await asyncio.to_thread(self._search, query)

    def _search(self, query: str) -> List[str]:
        r = self._session.get(
            CUSTOM_SEARCH_ENDPOINT,
            params={"key": self._api_key, "cx": self._engine_id, "q": query},
            timeout=self._config.request_timeout,
        )
        r.raise_for_status()
        try:
            payload = r.json()
        except ValueError as e:
            raise CheckError(f"Malformed search response: {e}") from e

        try:
            links = [item["link"] for item in payload.get("items") or [] if item.get("link")]
        except (AttributeError, TypeError) as e:
            raise CheckError(f"Malformed search response: {e}") from e
        logger.info(f"[SEARCH] {len(links)} results for query {query[:40]!r}", extra=_LOG)
        return links
