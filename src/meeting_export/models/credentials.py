"""
Per-provider integration credentials.

Credentials live as one field per provider on the user document
(``users/{user}.notionIntegration`` etc.) and are written at OAuth-callback
time by the dashboard. This subsystem only reads them, except for HubSpot
where a refreshed access token is written back.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .automation import StepType
from .transcript import normalize_timestamp


class Credential(BaseModel):
    """Base for provider credentials: an opaque access token plus identifiers."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)

    access_token: str = Field(..., alias='accessToken', min_length=1)


class NotionCredential(Credential):
    workspace_id: str | None = Field(default=None, alias='workspaceId')
    workspace_name: str | None = Field(default=None, alias='workspaceName')


class SlackCredential(Credential):
    team_id: str | None = Field(default=None, alias='teamId')
    team_name: str | None = Field(default=None, alias='teamName')
    bot_user_id: str | None = Field(default=None, alias='botUserId')
    bot_email: str | None = Field(default=None, alias='botEmail')


class SlackWorkspace(BaseModel):
    """Workspace-scoped bot installation, keyed by team id."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)

    team_id: str = Field(..., alias='teamId')
    team_name: str | None = Field(default=None, alias='teamName')
    bot_access_token: str | None = Field(default=None, alias='botAccessToken')
    bot_user_id: str | None = Field(default=None, alias='botUserId')


class HubSpotCredential(Credential):
    refresh_token: str = Field(..., alias='refreshToken', min_length=1)
    expires_at: datetime = Field(..., alias='expiresAt')
    portal_id: str | None = Field(default=None, alias='portalId')
    account_type: str | None = Field(default=None, alias='accountType')

    @field_validator('expires_at', mode='before')
    @classmethod
    def _normalize_expiry(cls, value: Any) -> datetime:
        return normalize_timestamp(value)

    @field_validator('portal_id', mode='before')
    @classmethod
    def _portal_id_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    def expires_within(self, seconds: float, now: datetime | None = None) -> bool:
        """True when ``now >= expires_at - seconds``."""
        current = now or datetime.now(timezone.utc)
        return current.timestamp() >= self.expires_at.timestamp() - seconds


class LinearTeam(BaseModel):
    model_config = ConfigDict(extra='ignore', frozen=True)

    id: str
    name: str = ''


class LinearCredential(Credential):
    teams: tuple[LinearTeam, ...] = ()


class MondayCredential(Credential):
    account_id: str | None = Field(default=None, alias='accountId')

    @field_validator('account_id', mode='before')
    @classmethod
    def _account_id_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class SalesforceCredential(Credential):
    instance_url: str = Field(..., alias='instanceUrl', min_length=1)
    refresh_token: str | None = Field(default=None, alias='refreshToken')


CREDENTIAL_MODELS: dict[StepType, type[Credential]] = {
    StepType.NOTION: NotionCredential,
    StepType.SLACK: SlackCredential,
    StepType.HUBSPOT: HubSpotCredential,
    StepType.LINEAR: LinearCredential,
    StepType.MONDAY: MondayCredential,
    StepType.SALESFORCE: SalesforceCredential,
}

# User-document field names per provider, preferred name first
CREDENTIAL_FIELDS: dict[StepType, tuple[str, ...]] = {
    StepType.NOTION: ('notionIntegration',),
    StepType.SLACK: ('slackIntegration',),
    StepType.HUBSPOT: ('hubspotIntegration',),
    StepType.LINEAR: ('linearIntegration',),
    StepType.MONDAY: ('mondayIntegration', 'monday'),
    StepType.SALESFORCE: ('salesforceIntegration', 'salesforce'),
}


class CredentialBundle(BaseModel):
    """
    All raw integration records found on a user document.

    Records are kept raw so that "never connected" (no record, or no access
    token) can be told apart from "connected but misconfigured" (a record that
    does not parse into its credential model).
    """

    user_id: str
    records: dict[StepType, dict[str, Any]] = Field(default_factory=dict)

    def raw(self, step_type: StepType) -> dict[str, Any] | None:
        """Return the stored record for a provider, or None if not connected."""
        record = self.records.get(step_type)
        if not record or not record.get('accessToken'):
            return None
        return record

    def is_connected(self, step_type: StepType) -> bool:
        return self.raw(step_type) is not None

    @classmethod
    def from_user_document(cls, user_id: str, data: dict[str, Any]) -> 'CredentialBundle':
        records: dict[StepType, dict[str, Any]] = {}
        for step_type, fields in CREDENTIAL_FIELDS.items():
            for name in fields:
                value = data.get(name)
                if isinstance(value, dict):
                    records[step_type] = value
                    break
        return cls(user_id=user_id, records=records)
