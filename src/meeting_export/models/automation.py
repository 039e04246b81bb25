"""
Automation and Step models.

An Automation is a named, user-owned ordered list of Steps. Each Step carries
a ``type`` and a type-specific ``config``; the config schema is fully
determined by the type, so configs are modelled as one pydantic class per
step type and parsed through ``STEP_CONFIG_MODELS``.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import StepConfigError
from .transcript import normalize_timestamp


class StepType(str, Enum):
    """Closed set of step types an automation may contain."""

    TRIGGER = 'trigger'
    NOTION = 'notion'
    SLACK = 'slack'
    HUBSPOT = 'hubspot'
    LINEAR = 'linear'
    MONDAY = 'monday'
    SALESFORCE = 'salesforce'
    AI_INSIGHTS = 'ai-insights'


class StepConfig(BaseModel):
    """Base for step configs; unknown keys written by the dashboard are ignored."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)


class TriggerConfig(StepConfig):
    """Metadata-only step; restricts the automation to meetings with these tags."""

    tags: list[str] = Field(default_factory=list)


class NotionStepConfig(StepConfig):
    page_id: str = Field(..., alias='pageId', min_length=1)
    page_title: str = Field(default='', alias='pageTitle')
    export_notes: bool = Field(default=True, alias='exportNotes')
    export_action_items: bool = Field(default=True, alias='exportActionItems')


class SlackStepConfig(StepConfig):
    channel_id: str = Field(..., alias='channelId', min_length=1)
    channel_name: str = Field(default='', alias='channelName')
    send_notes: bool = Field(default=True, alias='sendNotes')
    send_action_items: bool = Field(default=True, alias='sendActionItems')


class HubSpotStepConfig(StepConfig):
    portal_id: str | None = Field(default=None, alias='portalId')
    account_type: str | None = Field(default=None, alias='accountType')
    contacts: bool = False
    deals: bool = False
    include_meeting_notes: bool = Field(default=True, alias='includeMeetingNotes')
    include_action_items: bool = Field(default=True, alias='includeActionItems')

    @field_validator('portal_id', mode='before')
    @classmethod
    def _portal_id_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class LinearStepConfig(StepConfig):
    team_id: str | None = Field(default=None, alias='teamId')
    team_name: str = Field(default='', alias='teamName')


class MondayStepConfig(StepConfig):
    board: str = Field(..., min_length=1)
    board_name: str = Field(default='', alias='boardName')
    group: str = Field(..., min_length=1)
    group_name: str = Field(default='', alias='groupName')

    @field_validator('board', mode='before')
    @classmethod
    def _board_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class SalesforceStepConfig(StepConfig):
    include_meeting_notes: bool = Field(default=True, alias='includeMeetingNotes')
    include_action_items: bool = Field(default=True, alias='includeActionItems')
    update_contacts: bool = Field(default=False, alias='updateContacts')


class InsightStepConfig(StepConfig):
    name: str = ''
    description: str = Field(..., min_length=1)
    count: str | None = None

    @field_validator('count', mode='before')
    @classmethod
    def _count_str(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


STEP_CONFIG_MODELS: dict[StepType, type[StepConfig]] = {
    StepType.TRIGGER: TriggerConfig,
    StepType.NOTION: NotionStepConfig,
    StepType.SLACK: SlackStepConfig,
    StepType.HUBSPOT: HubSpotStepConfig,
    StepType.LINEAR: LinearStepConfig,
    StepType.MONDAY: MondayStepConfig,
    StepType.SALESFORCE: SalesforceStepConfig,
    StepType.AI_INSIGHTS: InsightStepConfig,
}

# Keys on a step document that belong to the step itself, not its config
_STEP_KEYS = frozenset({'id', 'type', 'order', 'config', 'createdAt', 'updatedAt', 'responses'})


class Step(BaseModel):
    """
    One configured action within an Automation.

    ``type`` is kept as the raw stored string so that unknown step types can
    be reported instead of failing the whole automation; ``step_type`` is the
    parsed enum (None when unsupported).
    """

    id: str
    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    order: int | None = None

    @property
    def step_type(self) -> StepType | None:
        try:
            return StepType(self.type)
        except ValueError:
            return None

    def parse_config(self) -> StepConfig:
        """
        Parse the raw config into the model for this step's type.

        Raises:
            StepConfigError: If the type is unknown or the config is invalid
        """
        step_type = self.step_type
        if step_type is None:
            raise StepConfigError(
                f"Unsupported step type '{self.type}'",
                context={'step_id': self.id},
            )
        model = STEP_CONFIG_MODELS[step_type]
        try:
            return model.model_validate(self.config)
        except ValidationError as e:
            raise StepConfigError(
                f"Invalid {step_type.value} step configuration: {e.error_count()} error(s)",
                provider=step_type.value,
                context={'step_id': self.id, 'errors': e.errors(include_url=False)},
            ) from e

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> 'Step':
        """
        Build from a stored step document.

        The dashboard has stored step configs both nested under ``config``
        and flattened onto the step document; both are accepted.
        """
        config = data.get('config')
        if not isinstance(config, dict):
            config = {k: v for k, v in data.items() if k not in _STEP_KEYS}
        order = data.get('order')
        return cls(
            id=doc_id,
            type=str(data.get('type', '')),
            config=config,
            order=order if isinstance(order, int) and not isinstance(order, bool) else None,
        )


class Automation(BaseModel):
    """A named automation owned by one user; steps are a sub-resource."""

    id: str
    name: str = ''
    created_at: datetime | None = None
    enabled: bool = True

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> 'Automation':
        created = data.get('createdAt')
        return cls(
            id=doc_id,
            name=str(data.get('name') or ''),
            created_at=normalize_timestamp(created) if created is not None else None,
            enabled=data.get('enabled', True) is not False,
        )
