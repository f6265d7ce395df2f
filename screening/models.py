from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Likelihood(Enum):
    UNKNOWN = "UNKNOWN"
    VERY_UNLIKELY = "VERY_UNLIKELY"
    UNLIKELY = "UNLIKELY"
    POSSIBLE = "POSSIBLE"
    LIKELY = "LIKELY"
    VERY_LIKELY = "VERY_LIKELY"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Likelihood":
        try:
            return cls(value or "UNKNOWN")
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_likely(self) -> bool:
        return self in (Likelihood.LIKELY, Likelihood.VERY_LIKELY)


@dataclass(frozen=True)
class EntitySentiment:
    name: str
    entity_type: str
    score: float


@dataclass(frozen=True)
class TextAnalysis:
    """Combined sentiment, entity and category signals for one chunk of text."""
    document_score: float = 0.0
    entities: Tuple[EntitySentiment, ...] = ()
    categories: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SafeSearchAnnotation:
    adult: Likelihood = Likelihood.UNKNOWN
    violence: Likelihood = Likelihood.UNKNOWN
    racy: Likelihood = Likelihood.UNKNOWN
    medical: Likelihood = Likelihood.UNKNOWN
    spoof: Likelihood = Likelihood.UNKNOWN

    @property
    def inappropriate(self) -> bool:
        return self.adult.is_likely or self.violence.is_likely

    def to_dict(self) -> dict:
        return {
            "adult": self.adult.value,
            "violence": self.violence.value,
            "racy": self.racy.value,
            "medical": self.medical.value,
            "spoof": self.spoof.value,
        }
