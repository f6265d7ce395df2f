from dataclasses import dataclass
from typing import Optional

from auditor.models import CheckStatus


@dataclass(frozen=True)
class SimilarityCandidate:
    """A search hit scored against one excerpt. Score is in [0, 1]."""
    excerpt: str
    url: str
    score: float
    matched_text: str = ""


@dataclass(frozen=True)
class ExcerptVerdict:
    """
    Outcome for one representative excerpt.
    `best` is None when the search produced no usable candidate or failed.
    """
    excerpt: str
    status: CheckStatus
    best: Optional[SimilarityCandidate] = None
    error: Optional[str] = None

    @property
    def score(self) -> float:
        return self.best.score if self.best else 0.0

    def summary(self) -> dict:
        data = {
            "excerpt": self.excerpt[:100] + "...",
            "similarity_score": round(self.score, 4),
            "matched_url": self.best.url if self.best else None,
            "status": self.status.value,
        }
        if self.best and self.best.matched_text:
            data["matched_text"] = self.best.matched_text[:200]
        if self.error:
            data["error"] = self.error
        return data
