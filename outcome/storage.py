from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from outcome.models import PersistenceCommand


class AuditResultStore(ABC):
    """
    Abstract persistence interface for audit outcomes.
    Writes arrive only as command batches emitted by OutcomeMapper.
    """

    @abstractmethod
    def apply(self, commands: Sequence[PersistenceCommand]) -> None:
        """Apply every command atomically; raise PersistenceError on failure."""
        pass

    @abstractmethod
    def latest_results(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recent audit per URL, newest first."""
        pass

    @abstractmethod
    def site_history(self, url: str) -> List[Dict[str, Any]]:
        """All audits of one URL, newest first."""
        pass

    @abstractmethod
    def check_results(self, url: str, timestamp: str) -> List[Dict[str, Any]]:
        """Per-check rows of one audit."""
        pass

    @abstractmethod
    def statistics(self) -> Dict[str, Any]:
        """Totals: audits, unique sites, passed, failed."""
        pass
