from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class RecencyVerdict(Enum):
    FRESH = "fresh"
    TOO_NEW = "too_new"
    LACKS_HISTORY = "lacks_history"
    NO_DATES = "no_dates"


@dataclass(frozen=True)
class DateEvidence:
    """
    One publication/modification date observed on the site.
    Invariant: `moment` is timezone-aware UTC.
    """
    moment: datetime
    source: str


@dataclass(frozen=True)
class RecencyAssessment:
    """Freshness rule applied to an evidence set at one point in time."""
    verdict: RecencyVerdict
    newest: Optional[datetime] = None
    oldest: Optional[datetime] = None
    most_recent_days: Optional[float] = None
    oldest_days: Optional[float] = None

    @property
    def passed(self) -> bool:
        return self.verdict is RecencyVerdict.FRESH
