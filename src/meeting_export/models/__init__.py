"""
Data models for the meeting export pipeline.
"""

from .transcript import ActionItem, Attendee, TranscriptData, normalize_timestamp
from .automation import (
    Automation,
    HubSpotStepConfig,
    InsightStepConfig,
    LinearStepConfig,
    MondayStepConfig,
    NotionStepConfig,
    SalesforceStepConfig,
    SlackStepConfig,
    Step,
    StepConfig,
    StepType,
    TriggerConfig,
)
from .credentials import (
    Credential,
    CredentialBundle,
    HubSpotCredential,
    LinearCredential,
    LinearTeam,
    MondayCredential,
    NotionCredential,
    SalesforceCredential,
    SlackCredential,
    SlackWorkspace,
)

__all__ = [
    'ActionItem',
    'Attendee',
    'TranscriptData',
    'normalize_timestamp',
    'Automation',
    'Step',
    'StepType',
    'StepConfig',
    'TriggerConfig',
    'NotionStepConfig',
    'SlackStepConfig',
    'HubSpotStepConfig',
    'LinearStepConfig',
    'MondayStepConfig',
    'SalesforceStepConfig',
    'InsightStepConfig',
    'Credential',
    'CredentialBundle',
    'NotionCredential',
    'SlackCredential',
    'SlackWorkspace',
    'HubSpotCredential',
    'LinearCredential',
    'LinearTeam',
    'MondayCredential',
    'SalesforceCredential',
]
