"""
Adapter interface shared by every provider.

A ProviderAdapter turns one TranscriptData into provider-specific records for
one configured step. Adapters receive an ExportContext carrying the run's
identifiers, a bound logger, the repository (for the few write-backs) and a
run-scoped cache used to memoize work across steps of the same run.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, ClassVar

import structlog
from pydantic import ValidationError

from ..errors import IncompleteIntegrationError, PartialSuccessResult
from ..models.automation import StepConfig, StepType
from ..models.credentials import Credential
from ..models.transcript import TranscriptData
from ..repository import ExportRepository


class RunCache:
    """
    Per-run memo of awaited results keyed by string.

    The first caller for a key starts the factory as a task; every caller,
    including later ones, awaits that same task. The task is shielded, so a
    caller cancelled by its step timeout does not cancel the work for the
    others, and each factory runs at most once per run whatever its outcome.
    """

    def __init__(self):
        self._tasks: dict[str, asyncio.Task] = {}

    async def get_or_create(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            task.add_done_callback(_retrieve_exception)
            self._tasks[key] = task
        return await asyncio.shield(task)

    def __contains__(self, key: str) -> bool:
        return key in self._tasks


def _retrieve_exception(task: asyncio.Task) -> None:
    # Every awaiting caller may have been cancelled before the task finished.
    if not task.cancelled():
        task.exception()


@dataclass
class ExportContext:
    """Everything an adapter needs besides the transcript, config and credential."""

    run_id: str
    user_id: str
    automation_id: str
    step_id: str
    step_type: StepType
    repository: ExportRepository
    cache: RunCache = field(default_factory=RunCache)
    log: Any = None

    def __post_init__(self):
        if self.log is None:
            self.log = structlog.get_logger(__name__).bind(
                run_id=self.run_id,
                user_id=self.user_id,
                automation_id=self.automation_id,
                step_id=self.step_id,
                step_type=self.step_type.value,
            )


class ProviderAdapter(ABC):
    """
    Export capability for one step type.

    Subclasses set ``step_type`` and, when the provider needs a user
    credential, ``credential_model``.
    """

    step_type: ClassVar[StepType]
    credential_model: ClassVar[type[Credential] | None] = None
    provider_name: ClassVar[str] = ''

    @property
    def requires_credential(self) -> bool:
        return self.credential_model is not None

    def load_credential(self, record: dict[str, Any]) -> Credential | None:
        """
        Parse a stored credential record.

        Raises:
            IncompleteIntegrationError: If the record does not match the model
        """
        if self.credential_model is None:
            return None
        try:
            return self.credential_model.model_validate(record)
        except ValidationError as e:
            raise IncompleteIntegrationError(
                f"{self.provider_name} integration is incomplete. "
                f"Please reconnect {self.provider_name} in your integrations settings.",
                provider=self.provider_name,
                context={'errors': e.error_count()},
            ) from e

    @abstractmethod
    async def export(
        self,
        ctx: ExportContext,
        transcript: TranscriptData,
        config: StepConfig,
        credential: Credential | None,
    ) -> PartialSuccessResult:
        """
        Export the transcript for one step.

        Step-level failures are raised; sub-item failures are recorded in the
        returned PartialSuccessResult.
        """
        ...
