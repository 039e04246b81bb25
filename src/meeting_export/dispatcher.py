"""
Export dispatcher: fans a user's latest meeting out to every configured step.

Flow:
1. Load the most recent TranscriptData and the user's credential bundle
   (failure of either aborts the run)
2. List automations and their steps; drop disabled automations and
   automations whose trigger tags do not match the meeting
3. For every remaining step, look up the credential (missing -> not
   connected, no provider call) and invoke the step type's adapter under a
   bounded timeout
4. Record one StepResult per step

Fault isolation guarantee: a failing step is logged and recorded, never
raised, so sibling steps always run. In concurrent mode the steps run under
asyncio.gather(return_exceptions=True).
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

import structlog

from .adapters.base import ExportContext, RunCache
from .adapters.registry import AdapterRegistry
from .config import config
from .errors import (
    IncompleteIntegrationError,
    InvalidCredentialError,
    MeetingExportError,
    PartialSuccessResult,
    ProviderTimeoutError,
    RunError,
    StepConfigError,
)
from .logging import ExportTimer, logging_context
from .models.automation import Automation, Step, StepType, TriggerConfig
from .models.credentials import CredentialBundle
from .models.transcript import TranscriptData
from .repository import ExportRepository

logger = structlog.get_logger(__name__)


# =============================================================================
# Result Models
# =============================================================================


class StepStatus(str, Enum):
    SUCCEEDED = 'succeeded'
    PARTIAL = 'partial'
    FAILED = 'failed'
    MISCONFIGURED = 'misconfigured'
    NOT_CONNECTED = 'not_connected'
    SKIPPED = 'skipped'


_OK_STATUSES = frozenset({StepStatus.SUCCEEDED, StepStatus.SKIPPED, StepStatus.NOT_CONNECTED})

# Errors meaning the user has to fix the integration or the step
_MISCONFIGURED_ERRORS = (InvalidCredentialError, IncompleteIntegrationError, StepConfigError)


@dataclass
class StepResult:
    """Outcome of one automation step."""

    step_id: str
    automation_id: str
    type: str
    status: StepStatus
    error: str | None = None
    reason: str | None = None
    items: dict[str, Any] | None = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status in _OK_STATUSES

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'step_id': self.step_id,
            'automation_id': self.automation_id,
            'type': self.type,
            'status': self.status.value,
            'ok': self.ok,
            'duration_ms': self.duration_ms,
        }
        if self.error:
            data['error'] = self.error
        if self.reason:
            data['reason'] = self.reason
        if self.items is not None:
            data['items'] = self.items
        return data


@dataclass
class ExportResult:
    """
    Aggregate result of one export run.

    ``success`` only reflects transcript and user resolution; individual
    step failures are reported in ``steps``.
    """

    user_id: str
    run_id: str
    success: bool = False
    error: str | None = None
    error_type: str | None = None
    transcript_id: str | None = None
    steps: list[StepResult] = field(default_factory=list)

    started_at: datetime | None = None
    completed_at: datetime | None = None
    export_time_ms: int | None = None
    timings: dict[str, Any] = field(default_factory=dict)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging / API responses."""
        return {
            'user_id': self.user_id,
            'run_id': self.run_id,
            'success': self.success,
            'error': self.error,
            'error_type': self.error_type,
            'transcript_id': self.transcript_id,
            'steps': [s.to_dict() for s in self.steps],
            'export_time_ms': self.export_time_ms,
        }


@dataclass
class _PlannedStep:
    automation: Automation
    step: Step
    skip_reason: str | None = None


def _trigger_tags(steps: list[Step]) -> set[str]:
    tags: set[str] = set()
    for step in steps:
        if step.step_type is not StepType.TRIGGER:
            continue
        try:
            trigger = step.parse_config()
        except StepConfigError:
            continue
        if isinstance(trigger, TriggerConfig):
            tags.update(t.strip().lower() for t in trigger.tags if t.strip())
    return tags


def _status_for(items: PartialSuccessResult) -> StepStatus:
    if items.total_count and items.all_failed:
        return StepStatus.FAILED
    if items.partial_success:
        return StepStatus.PARTIAL
    return StepStatus.SUCCEEDED


def _failure_summary(items: PartialSuccessResult) -> str | None:
    if not items.failed:
        return None
    first = items.failed[0].error
    detail = f": {first.message}" if first else ''
    return f"{items.failure_count} of {items.total_count} items failed{detail}"


# =============================================================================
# ExportDispatcher
# =============================================================================


class ExportDispatcher:
    """
    Runs every configured automation step for a user's latest meeting.

    Steps run sequentially in stored order by default; ``concurrent=True``
    runs all steps of the run together with per-step fault isolation.
    """

    def __init__(
        self,
        repository: ExportRepository,
        registry: AdapterRegistry,
        concurrent: bool | None = None,
        step_timeout: float | None = None,
    ):
        """
        Args:
            repository: Document repository
            registry: Adapters keyed by step type
            concurrent: Run steps concurrently (defaults to EXPORT_CONCURRENT)
            step_timeout: Per-step time budget in seconds (defaults to STEP_TIMEOUT_SECONDS)
        """
        self.repository = repository
        self.registry = registry
        self.concurrent = config.EXPORT_CONCURRENT if concurrent is None else concurrent
        self.step_timeout = config.STEP_TIMEOUT_SECONDS if step_timeout is None else step_timeout

    async def export(self, user_id: str) -> ExportResult:
        """
        Export the user's most recent meeting to every configured step.

        Run-level failures (no transcript, unknown user, storage errors) are
        returned in the result with ``success=False``, never raised.
        """
        run_id = uuid4().hex
        result = ExportResult(
            user_id=user_id,
            run_id=run_id,
            started_at=datetime.now(timezone.utc),
        )
        timer = ExportTimer()

        with logging_context(run_id=run_id, user_id=user_id):
            log = logger.bind(run_id=run_id, user_id=user_id)
            log.info('dispatcher.started', concurrent=self.concurrent)

            try:
                with timer.stage('load_transcript'):
                    transcript = await self.repository.get_latest_transcript(user_id)
                with timer.stage('load_credentials'):
                    credentials = await self.repository.get_credentials(user_id)
                with timer.stage('load_automations'):
                    planned = await self._plan(user_id, transcript)
            except RunError as e:
                log.error(
                    'dispatcher.run_failed',
                    error=e.message,
                    error_type=type(e).__name__,
                    context=e.context,
                )
                result.error = e.message
                result.error_type = type(e).__name__
                return self._finalize(result, timer, log)

            result.success = True
            result.transcript_id = transcript.id
            cache = RunCache()

            with timer.stage('steps'):
                if self.concurrent:
                    outcomes = await asyncio.gather(
                        *(
                            self._run_step(run_id, user_id, p, transcript, credentials, cache)
                            for p in planned
                        ),
                        return_exceptions=True,
                    )
                    for plan, outcome in zip(planned, outcomes):
                        if isinstance(outcome, BaseException):
                            log.error(
                                'dispatcher.step_crashed',
                                step_id=plan.step.id,
                                error=str(outcome),
                                error_type=type(outcome).__name__,
                            )
                            outcome = StepResult(
                                step_id=plan.step.id,
                                automation_id=plan.automation.id,
                                type=plan.step.type,
                                status=StepStatus.FAILED,
                                error=str(outcome),
                            )
                        result.steps.append(outcome)
                else:
                    for plan in planned:
                        result.steps.append(
                            await self._run_step(
                                run_id, user_id, plan, transcript, credentials, cache
                            )
                        )

        return self._finalize(result, timer, log)

    def _finalize(self, result: ExportResult, timer: ExportTimer, log: Any) -> ExportResult:
        result.completed_at = datetime.now(timezone.utc)
        result.export_time_ms = int(timer.total_ms)
        result.timings = timer.summary()

        counts: dict[str, int] = {}
        for step in result.steps:
            counts[step.status.value] = counts.get(step.status.value, 0) + 1
        log.info(
            'dispatcher.complete',
            success=result.success,
            step_count=len(result.steps),
            statuses=counts,
            export_time_ms=result.export_time_ms,
        )
        return result

    async def _plan(self, user_id: str, transcript: TranscriptData) -> list[_PlannedStep]:
        """List every step of every automation, marking the ones that will not run."""
        meeting_tags = {t.strip().lower() for t in transcript.tags}
        planned: list[_PlannedStep] = []

        for automation in await self.repository.list_automations(user_id):
            steps = await self.repository.list_steps(user_id, automation.id)

            automation_skip: str | None = None
            if not automation.enabled:
                automation_skip = 'automation_disabled'
            else:
                tags = _trigger_tags(steps)
                if tags and not tags & meeting_tags:
                    automation_skip = 'tags_not_matched'

            if automation_skip:
                logger.info(
                    'dispatcher.automation_skipped',
                    automation_id=automation.id,
                    reason=automation_skip,
                )

            for step in steps:
                reason = automation_skip
                if reason is None and step.step_type is StepType.TRIGGER:
                    reason = 'trigger'
                planned.append(_PlannedStep(automation=automation, step=step, skip_reason=reason))

        return planned

    async def _run_step(
        self,
        run_id: str,
        user_id: str,
        plan: _PlannedStep,
        transcript: TranscriptData,
        credentials: CredentialBundle,
        cache: RunCache,
    ) -> StepResult:
        """Run one step; every failure becomes a StepResult."""
        step = plan.step
        t0 = time.monotonic()
        result = StepResult(
            step_id=step.id,
            automation_id=plan.automation.id,
            type=step.type,
            status=StepStatus.SKIPPED,
        )
        log = logger.bind(
            run_id=run_id,
            user_id=user_id,
            automation_id=plan.automation.id,
            step_id=step.id,
            step_type=step.type,
        )

        if plan.skip_reason:
            result.reason = plan.skip_reason
            return result

        step_type = step.step_type
        if step_type is None:
            log.warning('dispatcher.step_unsupported')
            result.reason = 'unsupported_step_type'
            return result

        adapter = self.registry.get(step_type)
        if adapter is None:
            log.info('dispatcher.step_adapter_unavailable')
            result.reason = 'adapter_unavailable'
            return result

        credential = None
        record = None
        if adapter.requires_credential:
            record = credentials.raw(step_type)
            if record is None:
                log.info('dispatcher.step_not_connected')
                result.status = StepStatus.NOT_CONNECTED
                result.reason = f"{step_type.value} is not connected"
                return result

        ctx = ExportContext(
            run_id=run_id,
            user_id=user_id,
            automation_id=plan.automation.id,
            step_id=step.id,
            step_type=step_type,
            repository=self.repository,
            cache=cache,
            log=log,
        )

        try:
            if record is not None:
                credential = adapter.load_credential(record)
            step_config = step.parse_config()
            log.info('dispatcher.step_started')
            try:
                items = await asyncio.wait_for(
                    adapter.export(ctx, transcript, step_config, credential),
                    timeout=self.step_timeout,
                )
            except asyncio.TimeoutError as e:
                raise ProviderTimeoutError(
                    f"{adapter.provider_name or step_type.value} step timed out after {self.step_timeout}s",
                    provider=adapter.provider_name,
                ) from e
        except _MISCONFIGURED_ERRORS as e:
            result.status = StepStatus.MISCONFIGURED
            result.error = e.message
            log.warning(
                'dispatcher.step_misconfigured',
                error=e.message,
                error_type=type(e).__name__,
                context=e.context,
            )
        except MeetingExportError as e:
            result.status = StepStatus.FAILED
            result.error = e.message
            log.error(
                'dispatcher.step_failed',
                error=e.message,
                error_type=type(e).__name__,
                provider=getattr(e, 'provider', None),
                status_code=getattr(e, 'status_code', None),
                payload=getattr(e, 'payload', None),
                context=e.context,
            )
        except Exception as e:
            result.status = StepStatus.FAILED
            result.error = str(e)
            log.exception('dispatcher.step_crashed', error_type=type(e).__name__)
        else:
            result.status = _status_for(items)
            result.items = items.to_dict()
            result.error = _failure_summary(items)
            log.info(
                'dispatcher.step_complete',
                status=result.status.value,
                succeeded=items.success_count,
                failed=items.failure_count,
            )

        result.duration_ms = int((time.monotonic() - t0) * 1000)
        return result
