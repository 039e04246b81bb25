"""
Meeting Export Pipeline

Fans a meeting's summary, notes and action items out to the integrations a
user has configured in their automations: Notion, Slack, HubSpot, Linear,
Monday.com, Salesforce and AI insight steps.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .dispatcher import ExportDispatcher, ExportResult, StepResult, StepStatus
from .repository import ExportRepository
from .adapters import AdapterRegistry, ProviderAdapter, build_adapter_registry
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    ExportTimer,
)
from .errors import (
    MeetingExportError,
    RunError,
    NoTranscriptError,
    UserNotFoundError,
    RepositoryError,
    StepError,
    InvalidCredentialError,
    IncompleteIntegrationError,
    StepConfigError,
    TokenRefreshError,
    ProviderApiError,
    TransientProviderError,
    ProviderTimeoutError,
    PartialSuccessResult,
)

__all__ = [
    '__version__',
    # Dispatcher
    'ExportDispatcher',
    'ExportResult',
    'StepResult',
    'StepStatus',
    'ExportRepository',
    # Adapters
    'AdapterRegistry',
    'ProviderAdapter',
    'build_adapter_registry',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'ExportTimer',
    # Errors
    'MeetingExportError',
    'RunError',
    'NoTranscriptError',
    'UserNotFoundError',
    'RepositoryError',
    'StepError',
    'InvalidCredentialError',
    'IncompleteIntegrationError',
    'StepConfigError',
    'TokenRefreshError',
    'ProviderApiError',
    'TransientProviderError',
    'ProviderTimeoutError',
    'PartialSuccessResult',
]
