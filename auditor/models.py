from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class CheckStatus(Enum):
    PASS = "pass"
    FAIL = "fail"
    REVIEW = "review"
    ERROR = "error"


# Overall status precedence. Fixed; never derived from execution order.
STATUS_PRECEDENCE = (CheckStatus.FAIL, CheckStatus.ERROR, CheckStatus.REVIEW)

# Report slot names, in execution order.
POLICY_CHECK = "bannedWords"
REDIRECT_CHECK = "redirect"
RECENCY_CHECK = "contentRecency"
HATE_SPEECH_CHECK = "hateSpeech"
PLAGIARISM_CHECK = "plagiarism"
IMAGES_CHECK = "images"
ADS_CHECK = "ads"

CONCURRENT_CHECKS = (HATE_SPEECH_CHECK, PLAGIARISM_CHECK, IMAGES_CHECK, ADS_CHECK)


@dataclass(frozen=True)
class CheckResult:
    """
    Immutable outcome of one named check.
    Owned by the AuditReport that records it.
    """
    name: str
    status: CheckStatus
    reason: str
    details: Optional[Any] = None

    @classmethod
    def passed(cls, name: str, reason: str, details: Optional[Any] = None) -> "CheckResult":
        return cls(name, CheckStatus.PASS, reason, details)

    @classmethod
    def failed(cls, name: str, reason: str, details: Optional[Any] = None) -> "CheckResult":
        return cls(name, CheckStatus.FAIL, reason, details)

    @classmethod
    def review(cls, name: str, reason: str, details: Optional[Any] = None) -> "CheckResult":
        return cls(name, CheckStatus.REVIEW, reason, details)

    @classmethod
    def error(cls, name: str, reason: str, details: Optional[Any] = None) -> "CheckResult":
        return cls(name, CheckStatus.ERROR, reason, details)

    def to_dict(self) -> Dict[str, Any]:
        data = {"status": self.status.value, "reason": self.reason}
        if self.details is not None:
            data["details"] = self.details
        return data


def overall_status(results) -> CheckStatus:
    statuses = {r.status for r in results}
    for status in STATUS_PRECEDENCE:
        if status in statuses:
            return status
    return CheckStatus.PASS


@dataclass
class AuditReport:
    """
    Aggregate of every CheckResult produced for one URL.
    Mutated only by the orchestrator while checks complete, then frozen.
    """
    url: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    checks: "OrderedDict[str, CheckResult]" = field(default_factory=OrderedDict)
    _frozen: bool = field(default=False, repr=False, compare=False)

    def record(self, result: CheckResult) -> None:
        # INVARIANT: A frozen report is never modified again.
        if self._frozen:
            raise RuntimeError(f"AuditReport for {self.url} is frozen")
        self.checks[result.name] = result

    def freeze(self) -> "AuditReport":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def status(self) -> CheckStatus:
        return overall_status(self.checks.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
            "checks": {name: result.to_dict() for name, result in self.checks.items()},
        }
