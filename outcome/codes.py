"""
Failure reason -> rejection code table used by downstream enforcement.

Lookup is exact match, then "reason contains key" in declaration order, then the
default code. Declaration order resolves reasons that contain more than one key.
"""

from typing import Iterable, Tuple

DEFAULT_REJECTION_CODE = "298"

REJECTION_CODES: Tuple[Tuple[str, str], ...] = (
    # URL policy
    ("Banned word detected in URL", "261"),
    ("Banned content detected", "261"),
    ("Banned TLD detected", "261"),

    # Redirect
    ("External redirect detected", "277"),
    ("External redirect", "277"),

    # Availability
    ("Site failed to load", "298"),
    ("Geo-blocking detected", "298"),

    # Recency
    ("Content too old", "284"),
    ("Lacking 4 months or recent content", "284"),
    ("Lacking 4 months", "284"),
    ("Lacking recent content", "284"),
    ("No date information found", "298"),
    ("No dates found in any source", "284"),
    ("Unable to extract dates from content", "284"),

    # Hate speech
    ("Hate speech detected", "272"),
    ("Problematic content detected", "272"),
    ("Multiple instances of concerning content", "272"),
    ("Explicit harmful content detected", "272"),

    # Plagiarism
    ("Content similarity above 85% threshold", "64"),
    ("Content similarity above", "64"),
    ("Multiple paragraphs appear to be plagiarized", "64"),
    # Unverifiable originality, e.g. no search API key, is rejected under the plagiarism code downstream expects.
    ("Unable to verify content originality", "64"),

    # Images
    ("Adult content detected in images", "272"),
    ("Violent content detected in images", "272"),
    ("Inappropriate imagery detected", "272"),
    ("Inappropriate image content detected", "272"),

    # Ads
    ("No ad implementation detected", "298"),
    ("No ad activity detected", "298"),
    ("Insufficient premium ad partners", "298"),
    ("Ad activity without premium networks", "298"),
    ("Limited premium ad networks", "298"),

    # Technical
    ("Timeout during analysis", "298"),
    ("Unable to access site content", "298"),
    ("Technical error during analysis", "298"),
)


class RejectionCodeTable:
    """Immutable ordered association list. Safe to share between concurrent audits."""

    def __init__(self, entries: Iterable[Tuple[str, str]] = REJECTION_CODES,
                 default: str = DEFAULT_REJECTION_CODE):
        self._entries = tuple((str(k), str(v)) for k, v in entries)
        self._exact = dict(self._entries[::-1])
        self._default = default

    @property
    def entries(self) -> Tuple[Tuple[str, str], ...]:
        return self._entries

    @property
    def default(self) -> str:
        return self._default

    def lookup(self, reason: str) -> str:
        """Empty reason (a passed audit) has no code."""
        if not reason:
            return ""
        if reason in self._exact:
            return self._exact[reason]
        for key, code in self._entries:
            if key in reason:
                return code
        return self._default


REJECTION_CODE_TABLE = RejectionCodeTable()
