import asyncio
import logging
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests

from auditor.core import AuditConfig
from auditor.models import CheckResult, REDIRECT_CHECK
from auditor.url_utils import hostname_of, registrable_domain

logger = logging.getLogger("auditor.redirect")
_LOG = {"context": "RedirectInspector"}


class RedirectInspector:
    """
    Issues exactly one HEAD request with redirect-following disabled and
    classifies the answer:
    - non-3xx: no redirect (None)
    - 3xx without Location: review
    - 3xx to the same hostname: allowed (None)
    - 3xx to another hostname: fail
    Network failures surface as an `error` result, never as a silent pass.
    """

    def __init__(self, config: Optional[AuditConfig] = None, session: Optional[requests.Session] = None):
        self._config = config or AuditConfig.from_env()
        self._session = session or requests.Session()

    async def check(self, url: str) -> Optional[CheckResult]:
        logger.info(f"[REDIRECT] Checking for redirects in URL: {url}", extra=_LOG)
        try:
            response = await asyncio.to_thread(self._head, url)
        except requests.RequestException as e:
            logger.error(f"[REDIRECT] HEAD request failed for {url}: {e}", extra=_LOG)
            return CheckResult.error(REDIRECT_CHECK, "Redirect check failed", {"error": str(e)})

        status = response.status_code
        if not (300 <= status < 400):
            logger.info(f"[REDIRECT] No redirect detected ({status})", extra=_LOG)
            return None

        location = response.headers.get("Location")
        if not location:
            logger.warning(f"[REDIRECT] Redirect ({status}) without Location header", extra=_LOG)
            return CheckResult.review(
                REDIRECT_CHECK,
                "Redirect without destination",
                {"http_status": status, "message": f"The URL redirects ({status}) but no destination was specified"},
            )

        destination = urljoin(url, location.strip())
        try:
            parsed = urlparse(destination)
            destination_host = (parsed.hostname or "").lower()
        except ValueError:
            destination_host = ""
        if not destination_host:
            logger.warning(f"[REDIRECT] Invalid redirect location: {location}", extra=_LOG)
            return CheckResult.review(
                REDIRECT_CHECK,
                "Invalid redirect",
                {"http_status": status, "location": location},
            )

        original_host = hostname_of(url)
        if destination_host != original_host:
            logger.info(f"[REDIRECT] External redirect detected: {original_host} -> {destination_host}", extra=_LOG)
            return CheckResult.failed(
                REDIRECT_CHECK,
                "External redirect",
                {
                    "http_status": status,
                    "destination": destination,
                    "destination_host": destination_host,
                    "destination_domain": registrable_domain(destination),
                },
            )

        logger.info(f"[REDIRECT] Internal redirect detected: {url} -> {destination}", extra=_LOG)
        return None

    def _head(self, url: str) -> requests.Response:
        return self._session.head(
            url,
            allow_redirects=False,
            timeout=self._config.redirect_timeout,
            headers={"User-Agent": self._config.user_agent},
        )
