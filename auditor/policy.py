"""
Centralized URL policy for rejecting URLs on banned terms and TLDs.

All term and TLD rules live in auditor.banned_terms. Other modules should use
PolicyFilter instead of duplicating term lists or ad-hoc checks.
"""

import logging
from typing import Iterable, Optional, Tuple
from urllib.parse import urlparse

from auditor.banned_terms import BANNED_TERMS, BANNED_TLDS
from auditor.models import CheckResult, POLICY_CHECK

logger = logging.getLogger("auditor.policy")
_LOG = {"context": "PolicyFilter"}


class PolicyFilter:
    """
    Stateless lexical check of a URL string. No I/O.

    Order of evaluation:
    - TLD (last hostname label) against the banned TLD set
    - each category in declaration order; per term: hostname, then path, then full URL
    First match wins.
    """

    def __init__(
        self,
        banned_terms: Iterable[Tuple[str, Tuple[str, ...]]] = BANNED_TERMS,
        banned_tlds=BANNED_TLDS,
    ):
        self._banned_terms = tuple(banned_terms)
        self._banned_tlds = frozenset(banned_tlds)

    def check(self, url: str) -> Optional[CheckResult]:
        logger.info(f"[POLICY] Checking for banned words in URL: {url}", extra=_LOG)
        try:
            parsed = urlparse(url)
            hostname = (parsed.hostname or "").lower()
            pathname = (parsed.path or "").lower()
            full_url = url.lower()
        except (ValueError, AttributeError) as e:
            # Filter bugs must not block the remaining checks
            logger.error(f"[POLICY] Error parsing URL {url!r}: {e}", extra=_LOG)
            return None

        tld = hostname.rsplit(".", 1)[-1] if hostname else ""
        if tld and tld in self._banned_tlds:
            logger.info(f"[POLICY] Banned TLD detected: .{tld}", extra=_LOG)
            return CheckResult.failed(
                POLICY_CHECK,
                "Banned TLD detected",
                {
                    "category": "bannedTLD",
                    "term": tld,
                    "location": "tld",
                    "message": f"The domain uses a banned top-level domain: .{tld}",
                },
            )

        for category, terms in self._banned_terms:
            for term in terms:
                location = self._locate(term, hostname, pathname, full_url)
                if location is None:
                    continue
                logger.info(
                    f"[POLICY] Banned term {term!r} detected in {location} (category: {category})",
                    extra=_LOG,
                )
                return CheckResult.failed(
                    POLICY_CHECK,
                    f"Banned content detected ({category})",
                    {
                        "category": category,
                        "term": term,
                        "location": location,
                        "message": f"The {location} contains banned term: {term}",
                    },
                )

        logger.info("[POLICY] No banned words detected in URL", extra=_LOG)
        return None

    @staticmethod
    def _locate(term: str, hostname: str, pathname: str, full_url: str) -> Optional[str]:
        if term in hostname:
            return "hostname"
        if term in pathname:
            return "path"
        if term in full_url:
            return "url"
        return None
