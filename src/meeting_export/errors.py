"""
Custom exceptions and error handling for the meeting export pipeline.

Provides:
- Typed exception hierarchy separating run-level from step-level failures
- Error context preservation for debugging
- Partial success handling for per-action-item loops
"""

from dataclasses import dataclass, field
from typing import Any

import httpx


class MeetingExportError(Exception):
    """Base exception for all meeting export errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Run Errors (abort the whole export)
# =============================================================================


class RunError(MeetingExportError):
    """Base class for errors that abort an entire export run."""

    pass


class NoTranscriptError(RunError):
    """The user has no transcript to export."""

    pass


class UserNotFoundError(RunError):
    """The user record holding integration credentials is missing."""

    pass


class RepositoryError(RunError):
    """Error reading from or writing to the document store."""

    pass


# =============================================================================
# Step Errors (abort only the current step)
# =============================================================================


class StepError(MeetingExportError):
    """Base class for errors local to a single automation step."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.provider = provider


class InvalidCredentialError(StepError):
    """The provider rejected the stored credential; the user must reconnect."""

    pass


class IncompleteIntegrationError(StepError):
    """The stored integration is missing fields needed to export."""

    pass


class StepConfigError(StepError):
    """The step configuration does not match its step type."""

    pass


class TokenRefreshError(StepError):
    """Refreshing an expiring OAuth token failed."""

    pass


class ProviderApiError(StepError):
    """A provider API call failed (transport, 4xx, 5xx or API-level error)."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        payload: Any = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, provider=provider, context=context)
        self.status_code = status_code
        self.payload = payload


class TransientProviderError(ProviderApiError):
    """A provider failure worth retrying (429, 5xx, connection error)."""

    pass


class ProviderTimeoutError(TransientProviderError):
    """A provider call or adapter invocation exceeded its time budget."""

    pass


def reconnect_message(provider: str) -> str:
    """User-facing instruction attached to credential failures."""
    return f"{provider} authorization is no longer valid. Please reconnect {provider} in your integrations settings."


# =============================================================================
# Partial Success Handling
# =============================================================================


@dataclass
class ItemResult:
    """Result for a single item in a batch operation."""

    item_id: str | None
    success: bool
    error: MeetingExportError | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class PartialSuccessResult:
    """
    Result of a batch operation that may partially succeed.

    Allows processing to continue even when some items fail,
    while preserving error context for debugging.
    """

    succeeded: list[ItemResult] = field(default_factory=list)
    failed: list[ItemResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return self.success_count + self.failure_count

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    @property
    def all_failed(self) -> bool:
        return self.success_count == 0

    @property
    def partial_success(self) -> bool:
        return self.success_count > 0 and self.failure_count > 0

    def add_success(
        self,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a successful item."""
        self.succeeded.append(
            ItemResult(item_id=item_id, success=True, data=data or {})
        )

    def add_failure(
        self,
        error: MeetingExportError,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a failed item."""
        self.failed.append(
            ItemResult(item_id=item_id, success=False, error=error, data=data or {})
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'success_count': self.success_count,
            'failure_count': self.failure_count,
            'total_count': self.total_count,
            'all_succeeded': self.all_succeeded,
            'succeeded_ids': [r.item_id for r in self.succeeded if r.item_id],
            'failed_ids': [r.item_id for r in self.failed if r.item_id],
            'errors': [
                {'item_id': r.item_id, 'error': r.error.message}
                for r in self.failed
                if r.error
            ],
        }


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_http_error(
    exc: Exception,
    provider: str,
    context: dict[str, Any] | None = None,
) -> ProviderApiError:
    """
    Wrap an httpx transport exception in our typed error hierarchy.

    Args:
        exc: The original exception
        provider: Provider name for messages and logs
        context: Additional context for debugging

    Returns:
        Typed ProviderApiError subclass
    """
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    if isinstance(exc, httpx.TimeoutException):
        return ProviderTimeoutError(
            f"{provider} request timed out: {exc}",
            provider=provider,
            context=ctx,
        )
    elif isinstance(exc, httpx.TransportError):
        return TransientProviderError(
            f"{provider} connection failed: {exc}",
            provider=provider,
            context=ctx,
        )
    else:
        return ProviderApiError(
            f"{provider} request failed: {exc}",
            provider=provider,
            context=ctx,
        )


def error_for_status(
    provider: str,
    status_code: int,
    payload: Any,
    context: dict[str, Any] | None = None,
) -> StepError:
    """
    Map a non-2xx provider response to a typed error.

    401/403 mean the credential is no longer usable, 429 and 5xx are
    transient, everything else is a plain API error.
    """
    ctx = context or {}
    ctx['status_code'] = status_code

    if status_code in (401, 403):
        return InvalidCredentialError(
            reconnect_message(provider),
            provider=provider,
            context={**ctx, 'payload': payload},
        )
    if status_code == 429 or status_code >= 500:
        return TransientProviderError(
            f"{provider} API returned {status_code}",
            provider=provider,
            status_code=status_code,
            payload=payload,
            context=ctx,
        )
    return ProviderApiError(
        f"{provider} API returned {status_code}",
        provider=provider,
        status_code=status_code,
        payload=payload,
        context=ctx,
    )
