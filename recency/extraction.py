"""
Date extraction from sitemaps and page markup.

Candidate strings are run through the text parsers in a fixed precedence:
"Month Day, Year" -> "Updated Month Year" -> "Month Year" -> generic parse.
The first parser that yields a date wins for that candidate.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from bs4 import BeautifulSoup
from dateutil import parser as dateparser

logger = logging.getLogger("auditor.recency")

MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7, "aug": 8,
    "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

_MONTH_DAY_YEAR_RE = re.compile(r"([A-Za-z]+)\s+(\d{1,2})(?:,|\s+)?\s*(\d{4})")
_UPDATED_MONTH_YEAR_RE = re.compile(r"Updated\s+([A-Za-z]+)\s+(\d{4})", re.IGNORECASE)
_MONTH_YEAR_RE = re.compile(r"([A-Za-z]+)\s+(\d{4})")
_LASTMOD_RE = re.compile(r"<lastmod>\s*(.*?)\s*</lastmod>", re.IGNORECASE | re.DOTALL)

DATE_CLASS_SELECTORS = (
    ".post-info", ".date", ".published-date", ".entry-date",
    ".article-date", '[class*="date"]', '[class*="time"]',
)
ARTICLE_DATE_ATTRIBUTES = ("data-date", "data-published", "data-modified", "pubdate")

# Generic parsing of long free text produces nonsense; only short candidates qualify.
MAX_GENERIC_CANDIDATE = 64


def to_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _month(name: str) -> Optional[int]:
    return MONTHS.get(name.lower())


def _safe_date(year: int, month: int, day: int = 1) -> Optional[datetime]:
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def parse_month_day_year(text: str) -> Optional[datetime]:
    for match in _MONTH_DAY_YEAR_RE.finditer(text):
        month = _month(match.group(1))
        if month:
            return _safe_date(int(match.group(3)), month, int(match.group(2)))
    return None


def parse_updated_month_year(text: str) -> Optional[datetime]:
    for match in _UPDATED_MONTH_YEAR_RE.finditer(text):
        month = _month(match.group(1))
        if month:
            return _safe_date(int(match.group(2)), month)
    return None


def parse_month_year(text: str) -> Optional[datetime]:
    for match in _MONTH_YEAR_RE.finditer(text):
        month = _month(match.group(1))
        if month:
            return _safe_date(int(match.group(2)), month)
    return None


def parse_generic(text: str) -> Optional[datetime]:
    candidate = text.strip()
    if not candidate or len(candidate) > MAX_GENERIC_CANDIDATE:
        return None
    try:
        return to_utc(dateparser.parse(candidate))
    except (ValueError, OverflowError, TypeError):
        return None


DATE_TEXT_PARSERS: Tuple[Callable[[str], Optional[datetime]], ...] = (
    parse_month_day_year,
    parse_updated_month_year,
    parse_month_year,
    parse_generic,
)


def parse_date_text(text: str) -> Optional[datetime]:
    if not text:
        return None
    for parse in DATE_TEXT_PARSERS:
        moment = parse(text)
        if moment is not None:
            return moment
    return None


def dates_from_sitemap(xml: str) -> List[datetime]:
    """Every parseable <lastmod> value, in document order."""
    dates = []
    for raw in _LASTMOD_RE.findall(xml or ""):
        moment = parse_generic(raw)
        if moment is not None:
            dates.append(moment)
    return dates


def _markup_candidates(soup: BeautifulSoup) -> List[str]:
    candidates = []

    for tag in soup.select("time"):
        if tag.get("datetime"):
            candidates.append(tag["datetime"])
        text = tag.get_text(" ", strip=True)
        if text:
            candidates.append(text)

    for selector in DATE_CLASS_SELECTORS:
        for tag in soup.select(selector):
            text = tag.get_text(" ", strip=True)
            if text:
                candidates.append(text)

    for meta in soup.find_all("meta"):
        key = (meta.get("property") or meta.get("name") or "").lower()
        if ("date" in key or "time" in key) and meta.get("content"):
            candidates.append(meta["content"])

    # <time> inside articles is already covered above
    for article in soup.find_all("article"):
        for attr in ARTICLE_DATE_ATTRIBUTES:
            if article.get(attr):
                candidates.append(article[attr])

    return candidates


def dates_from_markup(html: str) -> List[datetime]:
    """
    FLOW: <time> elements -> date-flavoured class names -> date/time meta tags ->
    <article> attributes. Duplicate candidate strings are parsed once.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    seen = set()
    dates = []
    for candidate in _markup_candidates(soup):
        candidate = candidate.strip()
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        moment = parse_date_text(candidate)
        if moment is not None:
            dates.append(moment)
    return dates
