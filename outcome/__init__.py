from outcome.codes import DEFAULT_REJECTION_CODE, REJECTION_CODE_TABLE, RejectionCodeTable
from outcome.models import (
    ApprovalState, AuditOutcome, InsertAuditResult, OutcomeStatus, UpdateSiteApproval, UpsertCheckResult,
)
from outcome.storage import AuditResultStore
from outcome.mapper import OutcomeMapper
