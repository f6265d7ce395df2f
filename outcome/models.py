from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from auditor.models import AuditReport


class OutcomeStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"


class ApprovalState:
    """Site approval states understood by the enforcement system."""
    PENDING = 32
    APPROVED = 92
    REJECTED = 2


@dataclass(frozen=True)
class InsertAuditResult:
    url: str
    timestamp: datetime
    status: OutcomeStatus
    failure_reason: str
    rejection_code: str
    full_result: Dict[str, Any]


@dataclass(frozen=True)
class UpsertCheckResult:
    url: str
    timestamp: datetime
    check_name: str
    status: str
    reason: str
    details: Optional[Any] = None


@dataclass(frozen=True)
class UpdateSiteApproval:
    """
    Moves a site out of PENDING only. Rejections stamp the rejection code.
    """
    url: str
    approved: bool
    rejection_code: str = ""

    @property
    def from_state(self) -> int:
        return ApprovalState.PENDING

    @property
    def to_state(self) -> int:
        return ApprovalState.APPROVED if self.approved else ApprovalState.REJECTED


PersistenceCommand = Union[InsertAuditResult, UpsertCheckResult, UpdateSiteApproval]


@dataclass(frozen=True)
class AuditOutcome:
    report: AuditReport
    status: OutcomeStatus
    failure_reason: str
    rejection_code: str
    commands: Tuple[PersistenceCommand, ...] = field(default_factory=tuple)

    def to_response(self, storage: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Report JSON, plus the persistence summary when storage was attempted."""
        response = self.report.to_dict()
        if storage is not None:
            response["databaseStorage"] = storage
        return response
