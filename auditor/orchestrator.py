"""
FILE DESCRIPTION: Sequences every compliance check for one URL into a frozen AuditReport.
KEY FUNCTIONS/CLASSES: CheckOrchestrator, PipelineState
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from auditor.core import AuditConfig
from auditor.deadline import with_deadline
from auditor.models import (
    ADS_CHECK, AuditReport, CheckResult, CheckStatus, HATE_SPEECH_CHECK, IMAGES_CHECK,
    PLAGIARISM_CHECK, POLICY_CHECK, RECENCY_CHECK, REDIRECT_CHECK,
)
from auditor.url_utils import validate_url

logger = logging.getLogger("auditor.orchestrator")
_LOG = {"context": "CheckOrchestrator"}

TIMEOUT_REASON = "Check timed out"
TECHNICAL_ERROR_REASON = "Technical error during analysis"


class PipelineState(Enum):
    INIT = "Init"
    POLICY = "PolicyPhase"
    REDIRECT = "RedirectPhase"
    RECENCY = "RecencyPhase"
    CONCURRENT = "ConcurrentPhase"
    AGGREGATED = "Aggregated"


class CheckOrchestrator:
    """
    FLOW: Validate URL -> Policy (short-circuit on fail) -> Redirect (short-circuit on fail) ->
    Recency (always recorded) -> Hate speech, plagiarism, images and ads concurrently,
    each under its own deadline -> Freeze report.

    INVARIANT: Every started check ends up in the report, as its own result or a
    synthetic `error`. Only URL validation raises to the caller.
    """

    def __init__(self, policy, redirect, recency, hate_speech, plagiarism, images, ads,
                 config: Optional[AuditConfig] = None):
        self._policy = policy
        self._redirect = redirect
        self._recency = recency
        self._config = config or AuditConfig.from_env()
        # Concurrent branches in report order
        self._branches = (
            (HATE_SPEECH_CHECK, hate_speech.check),
            (PLAGIARISM_CHECK, plagiarism.check),
            (IMAGES_CHECK, images.check),
            (ADS_CHECK, ads.check),
        )

    def _enter(self, state: PipelineState, url: str) -> PipelineState:
        logger.info(f"[PIPELINE] {state.value} :: {url}", extra=_LOG)
        return state

    async def audit_url(self, url: str) -> AuditReport:
        url = validate_url(url)
        report = AuditReport(url=url)
        self._enter(PipelineState.INIT, url)

        # 1. Policy
        self._enter(PipelineState.POLICY, url)
        result = self._run_policy(url)
        if result is not None:
            report.record(result)
            if result.status is CheckStatus.FAIL:
                return self._aggregate(report)

        # 2. Redirect
        self._enter(PipelineState.REDIRECT, url)
        result = await self._guarded(REDIRECT_CHECK, lambda: self._redirect.check(url))
        if result is not None:
            report.record(result)
            if result.status is CheckStatus.FAIL:
                return self._aggregate(report)

        # 3. Recency
        self._enter(PipelineState.RECENCY, url)
        report.record(await self._run_with_deadline(RECENCY_CHECK, lambda: self._recency.evaluate(url)))

        # 4. Concurrent checks, all-settle
        self._enter(PipelineState.CONCURRENT, url)
        results = await asyncio.gather(*(
            self._run_with_deadline(name, lambda check=check: check(url))
            for name, check in self._branches
        ))
        for result in results:
            report.record(result)

        return self._aggregate(report)

    def _aggregate(self, report: AuditReport) -> AuditReport:
        self._enter(PipelineState.AGGREGATED, report.url)
        report.freeze()
        logger.info(f"[PIPELINE] Overall status {report.status.value} for {report.url}", extra=_LOG)
        return report

    def _run_policy(self, url: str) -> Optional[CheckResult]:
        try:
            return self._policy.check(url)
        except Exception as e:
            logger.error(f"[PIPELINE] Policy filter crashed: {e}", exc_info=True, extra=_LOG)
            return CheckResult.error(POLICY_CHECK, TECHNICAL_ERROR_REASON, {"error": str(e)})

    async def _guarded(self, name: str, start: Callable[[], Awaitable[Optional[CheckResult]]]) -> Optional[CheckResult]:
        try:
            return await start()
        except Exception as e:
            logger.error(f"[PIPELINE] {name} failed: {e}", exc_info=True, extra=_LOG)
            return CheckResult.error(name, TECHNICAL_ERROR_REASON, {"error": str(e)})

    async def _run_with_deadline(self, name: str, start: Callable[[], Awaitable[CheckResult]]) -> CheckResult:
        seconds = self._config.deadline_for(name)
        try:
            outcome = await with_deadline(start(), seconds)
        except Exception as e:
            logger.error(f"[PIPELINE] {name} failed: {e}", exc_info=True, extra=_LOG)
            return CheckResult.error(name, TECHNICAL_ERROR_REASON, {"error": str(e)})

        if outcome.timed_out:
            logger.warning(f"[PIPELINE] {name} timed out after {seconds}s", extra=_LOG)
            return CheckResult.error(name, TIMEOUT_REASON, {"timeout_seconds": seconds})
        if outcome.value is None:
            return CheckResult.error(name, TECHNICAL_ERROR_REASON, {"error": "Check returned no result"})
        logger.info(f"[PIPELINE] {name} -> {outcome.value.status.value} in {outcome.elapsed:.1f}s", extra=_LOG)
        return outcome.value
