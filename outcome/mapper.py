import logging
from typing import Any, Dict, Optional

from auditor.errors import PersistenceError
from auditor.models import AuditReport, CheckStatus, STATUS_PRECEDENCE
from outcome.codes import REJECTION_CODE_TABLE, RejectionCodeTable
from outcome.models import (
    AuditOutcome, InsertAuditResult, OutcomeStatus, UpdateSiteApproval, UpsertCheckResult,
)
from outcome.storage import AuditResultStore

logger = logging.getLogger("auditor.outcome")
_LOG = {"context": "OutcomeMapper"}


class OutcomeMapper:
    """
    FLOW: Frozen AuditReport -> overall status + failure reason -> rejection code ->
    persistence commands. Mapping is pure; only store() touches the database.
    """

    def __init__(self, table: RejectionCodeTable = REJECTION_CODE_TABLE, store: Optional[AuditResultStore] = None):
        self._table = table
        self._store = store

    @staticmethod
    def failure_reason(report: AuditReport) -> str:
        """Reason of the first check, in report order, carrying the strongest status."""
        for status in STATUS_PRECEDENCE:
            for result in report.checks.values():
                if result.status is status:
                    return result.reason
        return ""

    def map(self, report: AuditReport) -> AuditOutcome:
        passed = report.status is CheckStatus.PASS
        status = OutcomeStatus.PASSED if passed else OutcomeStatus.FAILED
        reason = "" if passed else self.failure_reason(report)
        code = "" if passed else self._table.lookup(reason)

        commands = [
            InsertAuditResult(
                url=report.url,
                timestamp=report.timestamp,
                status=status,
                failure_reason=reason,
                rejection_code=code,
                full_result=report.to_dict(),
            )
        ]
        for name, result in report.checks.items():
            commands.append(UpsertCheckResult(
                url=report.url,
                timestamp=report.timestamp,
                check_name=name,
                status=result.status.value,
                reason=result.reason,
                details=result.details,
            ))
        commands.append(UpdateSiteApproval(url=report.url, approved=passed, rejection_code=code))

        logger.info(f"[OUTCOME] {report.url} -> {status.value} (code={code or '-'}) {reason}", extra=_LOG)
        return AuditOutcome(report, status, reason, code, tuple(commands))

    def store(self, outcome: AuditOutcome) -> Dict[str, Any]:
        """
        Apply the outcome's commands. Never raises: a storage failure is reported
        in the returned summary and leaves the verdict untouched.
        """
        if self._store is None:
            return {"success": False, "error": "No result store configured"}
        try:
            self._store.apply(outcome.commands)
        except PersistenceError as e:
            logger.error(f"[OUTCOME] Failed to store audit of {outcome.report.url}: {e}", extra=_LOG)
            return {"success": False, "error": str(e)}

        logger.info(f"[OUTCOME] Stored audit of {outcome.report.url}", extra=_LOG)
        return {
            "success": True,
            "status": outcome.status.value,
            "rejectionCode": outcome.rejection_code,
        }
